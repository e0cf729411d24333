from datetime import date, datetime

import pytest

from printshop.services.analytics_service import (
    client_stats,
    finance_summary,
    in_window,
    order_energy_cost,
    order_material_cost,
    production_daily_series,
    production_stats,
    simulate_product_cost,
    window_start,
)


TODAY = date(2024, 6, 15)


def test_material_cost_from_quoted_fields():
    order = {"quoted_grams": 100, "quoted_material_price": 10000, "quantity": 2, "cost": 2500}
    assert order_material_cost(order) == 2000
    assert order_energy_cost(order) == 500


def test_fallback_split_without_quoted_fields():
    order = {"cost": 1000}
    assert order_material_cost(order) == pytest.approx(900)
    assert order_energy_cost(order) == pytest.approx(100)


def test_energy_never_negative():
    order = {"quoted_grams": 100, "quoted_material_price": 10000, "quantity": 1, "cost": 500}
    assert order_energy_cost(order) == 0


def test_averages_are_zero_without_totals():
    stats = production_stats([{"status": "entregado", "cost": 1000}])
    assert stats["avg_cost_per_gram"] == 0
    assert stats["avg_cost_per_hour"] == 0
    assert stats["production_cost"] == 1000


def test_only_delivered_orders_count():
    orders = [
        {"status": "entregado", "cost": 1000, "quoted_grams": 50, "quoted_material_price": 10000, "quoted_hours": 2},
        {"status": "terminado", "cost": 9999},
        {"status": "cancelado", "cost": 9999},
    ]
    stats = production_stats(orders)
    assert stats["orders"] == 1
    assert stats["material_cost"] == 500
    assert stats["energy_cost"] == 500
    assert stats["avg_cost_per_gram"] == 10
    assert stats["avg_cost_per_hour"] == 250


def test_window_start():
    assert window_start("7d", TODAY) == date(2024, 6, 8)
    assert window_start("30d", TODAY) == date(2024, 5, 16)
    assert window_start("month", TODAY) == date(2024, 6, 1)
    assert window_start("all", TODAY) is None
    with pytest.raises(ValueError):
        window_start("1y", TODAY)


def test_window_matches_date_or_created_at():
    start = date(2024, 6, 1)
    assert in_window({"date": date(2024, 5, 1), "created_at": datetime(2024, 6, 2, 10)}, start)
    assert in_window({"date": "2024-06-03", "created_at": datetime(2024, 5, 1)}, start)
    assert not in_window({"date": date(2024, 5, 1), "created_at": datetime(2024, 5, 1)}, start)


def test_daily_series_accumulates():
    orders = [
        {"status": "entregado", "cost": 1000, "date": date(2024, 6, 14)},
        {"status": "entregado", "cost": 500, "date": date(2024, 6, 15)},
    ]
    series = production_daily_series(orders, "7d", TODAY)
    assert len(series) == 7
    assert series[-1]["date"] == "2024-06-15"
    assert series[-1]["material_acc"] == pytest.approx(1350)
    assert series[-1]["energy_acc"] == pytest.approx(150)


def test_simulated_product_cost():
    stats = {"avg_cost_per_gram": 10, "avg_cost_per_hour": 200}
    product = {
        "weight_grams": 50,
        "estimated_hours": 1,
        "estimated_mins": 30,
        "inventory_items": [{"calculated_cost": 100}],
        "additional_costs": [{"amount": 200}],
    }
    result = simulate_product_cost(product, stats, suggested_price=2000)
    assert result["total_cost"] == pytest.approx(500 + 300 + 100 + 200)
    assert result["margin"] == pytest.approx((2000 - 1100) / 2000)
    assert simulate_product_cost(product, stats, suggested_price=0)["margin"] == 0


def test_finance_summary():
    orders = [
        {"status": "entregado", "price": 5000, "quantity": 2, "cost": 3000},
        {"status": "terminado", "price": 1000, "cost": 200, "suggested_price": 1500},
        {"status": "pendiente", "price": 7000, "cost": 100},
        {"status": "terminado", "description": "Inyección de Capital", "price": 50000, "cost": 0},
    ]
    expenses = [
        {"category": "luz", "amount": 1000},
        {"category": "inversion", "amount": 20000},
        {"category": "retiro", "amount": 5000},
    ]
    stats = finance_summary(orders, expenses)
    assert stats["income"] == 11000
    assert stats["suggested_income"] == 11500
    assert stats["floating"] == 7000
    assert stats["operational_expenses"] == 1000
    assert stats["production_cost"] == 3200
    assert stats["profit"] == 11000 - 1000 - 3200
    assert stats["balance"] == stats["profit"] + 50000 - 20000 - 5000


def test_client_stats():
    orders = [
        {"status": "entregado", "price": 1000, "quantity": 2, "cost": 300},
        {"status": "terminado", "price": 500, "cost": 100},
        {"status": "cancelado", "price": 900, "cost": 900},
    ]
    stats = client_stats(orders)
    assert stats["total_charged"] == 2000
    assert stats["pending_payment"] == 500
    assert stats["direct_cost"] == 400
    assert stats["order_count"] == 3
