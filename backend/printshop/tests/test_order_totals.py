from printshop.core.order_totals import (
    build_inventory_item_line,
    calculate_order_total,
    get_additional_costs_total,
    get_real_margin,
    get_total_cost,
)


def test_order_total_includes_additional_costs():
    order = {"price": 5000, "quantity": 3, "additional_costs": [{"amount": 1000}]}
    assert calculate_order_total(order) == 16000


def test_additional_costs_total_includes_inventory_items():
    order = {"additional_costs": [{"amount": 1000}], "inventory_items": [{"calculated_cost": 500}]}
    assert get_additional_costs_total(order) == 1500


def test_order_total_ignores_inventory_items():
    order = {"price": 1000, "quantity": 1, "inventory_items": [{"calculated_cost": 500}]}
    assert calculate_order_total(order) == 1000


def test_falsy_quantity_counts_as_one():
    assert calculate_order_total({"price": 2000, "quantity": 0}) == 2000
    assert calculate_order_total({"price": 2000, "quantity": None}) == 2000
    assert calculate_order_total({"price": 2000}) == 2000


def test_missing_fields_are_zero():
    assert calculate_order_total({}) == 0
    assert get_additional_costs_total({"additional_costs": [{"amount": None}]}) == 0


def test_real_margin():
    order = {
        "price": 5000,
        "quantity": 2,
        "cost": 3000,
        "additional_costs": [{"amount": 1000}],
        "inventory_items": [{"calculated_cost": 500}],
    }
    # venta 11000, costo 3000 + 1000 + 500
    assert get_total_cost(order) == 4500
    assert get_real_margin(order) == 6500


def test_inventory_item_line_freezes_cost():
    item = {"id": "abc", "name": "Imán 10mm", "price_per_unit": 150}
    line = build_inventory_item_line(item, 4)
    assert line["inventory_id"] == "abc"
    assert line["calculated_cost"] == 600
    assert line["measurement_unit"] == "units"
