import pytest

from printshop.core.inventory_rules import apply_deduction, deduction_grams, inventory_value, select_fallback_roll
from printshop.core.notifications import Notifier
from printshop.core.store import SqlStore
from printshop.services.inventory_service import consume_for_order, restock


def test_deduction_grams():
    assert deduction_grams(300, 2) == 600
    assert deduction_grams(300, 0) == 300
    assert deduction_grams(0, 5) == 0
    assert deduction_grams(None, 5) == 0


def test_stock_never_negative():
    assert apply_deduction(1000, 600) == 400
    assert apply_deduction(100, 600) == 0


def test_fallback_roll_is_first_filament():
    rows = [{"id": "a", "type": "Repuesto"}, {"id": "b", "type": "Filamento"}, {"id": "c", "type": "Filamento"}]
    assert select_fallback_roll(rows)["id"] == "b"
    assert select_fallback_roll([{"id": "a", "type": "Resina"}]) is None


def test_inventory_value_by_weight():
    rows = [{"stock_grams": 500, "price_per_kg": 20000}, {"stock_grams": 1000, "price_per_kg": None}]
    assert inventory_value(rows) == 10000


def _setup(store, stock=1000, weight=300):
    roll = store.insert("inventory", [{"name": "PLA Negro", "type": "Filamento", "stock_grams": stock}])[0]
    product = store.insert("products", [{"name": "Pieza", "weight_grams": weight}])[0]
    return roll, product


@pytest.mark.parametrize("atomic", [False, True])
def test_consume_for_order(store, atomic):
    roll, product = _setup(store)
    order = {"id": "o1", "product_id": product["id"], "inventory_id": roll["id"], "quantity": 2}
    notifier = Notifier()

    assert consume_for_order(store, order, notifier, atomic=atomic) == 400
    assert store.query("inventory", {"id": roll["id"]})[0]["stock_grams"] == 400
    assert notifier.to_list()[0]["message"] == "Stock descontado: -600g (2 unidades)"


@pytest.mark.parametrize("atomic", [False, True])
def test_consume_floors_at_zero(store, atomic):
    roll, product = _setup(store, stock=100)
    order = {"id": "o1", "product_id": product["id"], "inventory_id": roll["id"], "quantity": 2}
    assert consume_for_order(store, order, Notifier(), atomic=atomic) == 0


def test_consume_uses_first_filament_roll_when_unset(store):
    store.insert("inventory", [{"name": "Imán", "type": "Repuesto", "stock_grams": 10, "measurement_unit": "units"}])
    roll, product = _setup(store)
    order = {"id": "o1", "product_id": product["id"], "quantity": 1}
    assert consume_for_order(store, order, Notifier(), atomic=False) == 700
    assert store.query("inventory", {"id": roll["id"]})[0]["stock_grams"] == 700


def test_consume_skips_weightless_product(store):
    roll, product = _setup(store, weight=0)
    order = {"id": "o1", "product_id": product["id"], "inventory_id": roll["id"], "quantity": 1}
    notifier = Notifier()
    assert consume_for_order(store, order, notifier) is None
    assert notifier.items == []
    assert store.query("inventory", {"id": roll["id"]})[0]["stock_grams"] == 1000


def test_consume_warns_when_update_matches_zero_rows(db, store, reader):
    roll, product = _setup(store)
    order = {"id": "o1", "product_id": product["id"], "inventory_id": roll["id"], "quantity": 1}
    notifier = Notifier()

    assert consume_for_order(SqlStore(db, reader), order, notifier, atomic=False) is None
    assert notifier.items[0].level == "warning"
    assert notifier.items[0].message == "No se pudo descontar el stock"
    assert store.query("inventory", {"id": roll["id"]})[0]["stock_grams"] == 1000


def test_restock(store):
    roll, _ = _setup(store, stock=250)
    result = restock(store, roll["id"], 1000)
    assert result["stock_grams"] == 1250
    assert result["description"] == "Recarga de Stock: PLA Negro (+1000g)"
