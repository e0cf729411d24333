import pytest

from printshop.core.config import settings
from printshop.core.store import SqlStore, StoreError
from printshop.services.order_service import (
    InFlightGuard,
    OrderBoard,
    create_order,
    update_order,
)
from printshop.services.quotation_config import QuotationConfig


@pytest.fixture
def shop(store):
    roll = store.insert("inventory", [{"name": "PLA Negro", "type": "Filamento", "stock_grams": 1000}])[0]
    product = store.insert("products", [{"name": "Soporte", "base_price": 8000, "weight_grams": 300}])[0]
    return roll, product


def _stock(store, roll):
    return store.query("inventory", {"id": roll["id"]})[0]["stock_grams"]


def test_create_order_freezes_quotation(store, owner, shop):
    _, product = shop
    order = create_order(
        store,
        {"product_id": product["id"], "quoted_grams": 100, "quoted_hours": 2, "quoted_mins": 30},
        QuotationConfig(),
        owner,
    )
    assert order["status"] == "pendiente"
    assert order["price"] == 8000
    assert order["quoted_material_price"] == 15000
    assert order["quoted_power_watts"] == 100
    assert order["cost"] == pytest.approx(1512.5)
    assert order["suggested_price"] == pytest.approx(6806.25)
    assert order["date"] is not None

    audit = store.query("audit_logs", {"record_id": order["id"]})
    assert audit[0]["action"] == "CREATE_ORDER"


def test_create_order_without_technical_data_uses_flat_rate(store, owner, shop):
    _, product = shop
    order = create_order(store, {"product_id": product["id"]}, QuotationConfig(), owner)
    assert order["cost"] == 300 * 20
    assert order["quoted_grams"] is None


def test_client_and_free_name_are_exclusive(store, owner):
    client = store.insert("clients", [{"full_name": "Ana"}])[0]
    with pytest.raises(ValueError):
        create_order(store, {"client_id": client["id"], "custom_client_name": "Ana"}, QuotationConfig(), owner)


def test_recalculate_keeps_charged_price(store, owner, shop):
    _, product = shop
    order = create_order(store, {"product_id": product["id"], "price": 9000, "quoted_grams": 100}, QuotationConfig(), owner)
    updated = update_order(store, order["id"], {"quoted_grams": 200}, recalculate=True, electricity_cost=50)
    assert updated["price"] == 9000
    assert updated["cost"] == pytest.approx(3000)
    assert updated["suggested_price"] == pytest.approx(3000 * 1.5 * 3)


def test_deduction_happens_once(store, owner, shop):
    roll, product = shop
    order = create_order(store, {"product_id": product["id"], "inventory_id": roll["id"], "quantity": 2}, QuotationConfig(), owner)
    board = OrderBoard(store, owner, guard=InFlightGuard())

    result = board.update_status(order["id"], "terminado")
    assert result.ok and result.changed
    assert _stock(store, roll) == 400

    assert board.advance(order["id"]).order["status"] == "entregado"
    assert board.retreat(order["id"]).order["status"] == "terminado"
    assert _stock(store, roll) == 400


def test_transition_records_history_and_audit(store, owner, shop):
    _, product = shop
    order = create_order(store, {"product_id": product["id"]}, QuotationConfig(), owner)
    board = OrderBoard(store, owner, guard=InFlightGuard())
    board.advance(order["id"])

    history = store.query("order_status_history", {"order_id": order["id"]})
    assert [(h["old_status"], h["new_status"]) for h in history] == [("pendiente", "en_proceso")]
    assert history[0]["user_email"] == "owner@test.com"
    actions = [a["action"] for a in store.query("audit_logs", {"record_id": order["id"]})]
    assert "UPDATE_ORDER_STATUS" in actions


def test_zero_rows_rolls_back(db, store, owner, reader, shop):
    _, product = shop
    order = create_order(store, {"product_id": product["id"]}, QuotationConfig(), owner)

    board = OrderBoard(SqlStore(db, reader), reader, guard=InFlightGuard())
    board.load()
    result = board.advance(order["id"])

    assert not result.ok
    assert not result.changed
    assert result.order["status"] == "pendiente"
    assert board.orders[order["id"]]["status"] == "pendiente"
    assert result.notifications[0]["level"] == "error"
    assert "0 filas afectadas" in result.notifications[0]["description"]
    assert store.query("orders", {"id": order["id"]})[0]["status"] == "pendiente"
    assert store.query("order_status_history", {"order_id": order["id"]}) == []


def test_duplicate_update_is_ignored(store, owner, shop):
    _, product = shop
    order = create_order(store, {"product_id": product["id"]}, QuotationConfig(), owner)
    guard = InFlightGuard()
    board = OrderBoard(store, owner, guard=guard)

    assert guard.acquire(order["id"])
    result = board.advance(order["id"])
    assert result.ignored
    assert not result.ok
    assert store.query("orders", {"id": order["id"]})[0]["status"] == "pendiente"

    guard.release(order["id"])
    assert board.advance(order["id"]).ok
    assert order["id"] not in guard


def test_cancelled_order_cannot_move(store, owner, shop):
    _, product = shop
    order = create_order(store, {"product_id": product["id"]}, QuotationConfig(), owner)
    board = OrderBoard(store, owner, guard=InFlightGuard())
    assert board.cancel(order["id"]).ok

    result = board.update_status(order["id"], "pendiente")
    assert not result.ok
    assert result.notifications[0]["message"] == "Cambio de estado no permitido"


def test_deduction_failure_keeps_status(store, owner, shop, monkeypatch):
    roll, product = shop
    order = create_order(store, {"product_id": product["id"], "inventory_id": roll["id"]}, QuotationConfig(), owner)

    def broken(*args, **kwargs):
        raise StoreError("permission denied for table inventory", "inventory")

    monkeypatch.setattr(store, "decrement_stock", broken)
    monkeypatch.setattr(settings, "atomic_stock_deduction", True)
    board = OrderBoard(store, owner, guard=InFlightGuard())
    result = board.update_status(order["id"], "terminado")

    assert result.ok
    assert result.order["status"] == "terminado"
    levels = [n["level"] for n in result.notifications]
    assert levels == ["warning", "success"]
    assert _stock(store, roll) == 1000
