import pytest

from printshop.core.notifications import Notifier
from printshop.core.store import SqlStore, StoreError
from printshop.services import client_service, tag_service


def test_rename_tag_everywhere(store):
    store.insert("tags", [{"name": "Feria"}])
    order = store.insert("orders", [{"price": 1000, "tags": ["Feria", "Navidad"]}])[0]
    dup = store.insert("orders", [{"price": 1000, "tags": ["Feria", "Expo"]}])[0]
    expense = store.insert("expenses", [{"category": "luz", "amount": 10, "tags": ["Feria"]}])[0]
    notifier = Notifier()

    assert tag_service.rename_tag(store, "Feria", "Expo", notifier)

    assert store.query("orders", {"id": order["id"]})[0]["tags"] == ["Expo", "Navidad"]
    assert store.query("orders", {"id": dup["id"]})[0]["tags"] == ["Expo"]
    assert store.query("expenses", {"id": expense["id"]})[0]["tags"] == ["Expo"]
    assert [t["name"] for t in tag_service.list_tags(store)] == ["Expo"]
    assert notifier.items[0].level == "success"


def test_rename_tag_without_master_row_still_succeeds(store):
    store.insert("orders", [{"price": 1000, "tags": ["Viejo"]}])
    assert tag_service.rename_tag(store, "Viejo", "Nuevo", Notifier())
    assert tag_service.unique_tags(store) == ["Nuevo"]


def test_rename_tag_requires_new_name(store):
    with pytest.raises(ValueError):
        tag_service.rename_tag(store, "Feria", "  ", Notifier())


def test_unique_tags_merges_sources(store):
    store.insert("tags", [{"name": "Zeta"}])
    store.insert("orders", [{"price": 1, "tags": ["Beta", "Alfa"]}])
    store.insert("expenses", [{"category": "x", "amount": 1, "tags": ["Alfa"]}])
    assert tag_service.unique_tags(store) == ["Alfa", "Beta", "Zeta"]


def test_orphaned_names_and_rescue(store):
    store.insert("clients", [{"full_name": "Ana"}])
    store.insert(
        "orders",
        [
            {"price": 1000, "custom_client_name": "ana "},
            {"price": 2000, "custom_client_name": "Pedro"},
            {"price": 3000, "custom_client_name": "Pedro"},
        ],
    )
    assert client_service.find_orphaned_names(store) == ["Pedro"]

    result = client_service.rescue_client(store, "Pedro")
    assert result["linked_orders"] == 2
    linked = store.query("orders", {"client_id": result["client"]["id"]})
    assert all(o["custom_client_name"] is None for o in linked)
    assert client_service.find_orphaned_names(store) == []

    history = client_service.client_history(store, result["client"]["id"])
    assert history["stats"]["order_count"] == 2


def test_reader_cannot_write(db, store, reader):
    client = store.insert("clients", [{"full_name": "Ana"}])[0]
    read_only = SqlStore(db, reader)

    with pytest.raises(StoreError) as exc:
        read_only.insert("clients", [{"full_name": "Otro"}])
    assert "row-level security" in exc.value.message

    assert read_only.update("clients", {"full_name": "Cambio"}, {"id": client["id"]}) == []
    read_only.delete("clients", {"id": client["id"]})
    assert store.query("clients", {"id": client["id"]})[0]["full_name"] == "Ana"


def test_operator_cannot_delete(db, store, operator):
    tag = store.insert("tags", [{"name": "Feria"}])[0]
    tag_service.delete_tag(SqlStore(db, operator), tag["id"])
    assert store.query("tags", {"id": tag["id"]})
    tag_service.delete_tag(store, tag["id"])
    assert store.query("tags", {"id": tag["id"]}) == []


def test_store_filters(store):
    store.insert("orders", [{"price": 100, "status": "pendiente"}, {"price": 200, "status": "entregado"}])
    assert len(store.query("orders", {"price__gte": 150})) == 1
    assert len(store.query("orders", {"status": ["pendiente", "entregado"]})) == 2
    assert len(store.query("orders", {"status__ne": "pendiente"})) == 1
    with pytest.raises(StoreError):
        store.query("orders", {"nope": 1})
    with pytest.raises(StoreError):
        store.query("missing_table")


def test_reader_rename_is_reported_as_failure(db, store, reader):
    store.insert("tags", [{"name": "viejo"}])
    order = store.insert("orders", [{"price": 1000, "tags": ["viejo"]}])[0]
    notifier = Notifier()

    assert tag_service.rename_tag(SqlStore(db, reader), "viejo", "nuevo", notifier) is False

    assert [n.level for n in notifier.items] == ["error"]
    assert store.query("orders", {"id": order["id"]})[0]["tags"] == ["viejo"]
    assert [t["name"] for t in tag_service.list_tags(store)] == ["viejo"]


def test_rescue_links_case_and_whitespace_variants(store):
    store.insert(
        "orders",
        [
            {"price": 1000, "custom_client_name": "Pedro"},
            {"price": 2000, "custom_client_name": "pedro"},
            {"price": 3000, "custom_client_name": "  PEDRO "},
            {"price": 4000, "custom_client_name": "Pedro Pablo"},
        ],
    )
    assert client_service.find_orphaned_names(store) == ["Pedro", "Pedro Pablo"]

    result = client_service.rescue_client(store, "Pedro")

    assert result["linked_orders"] == 3
    assert client_service.find_orphaned_names(store) == ["Pedro Pablo"]
