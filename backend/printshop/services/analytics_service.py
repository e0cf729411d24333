"""
Agregaciones de producción y finanzas sobre la colección de pedidos.

Las funciones de cálculo reciben listas de filas (dicts) y son puras; las
funciones *_overview leen del almacén y delegan en ellas.
"""
import logging
from collections import OrderedDict
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional

from printshop.core.inventory_rules import inventory_value
from printshop.core.order_lifecycle import INCOME_STATUSES, PENDING_STATUSES, REALIZED_STATUSES, OrderStatus
from printshop.core.order_totals import order_quantity
from printshop.core.serialization_helpers import as_date, row_day
from printshop.core.store import DataStore

logger = logging.getLogger(__name__)

TIMEFRAMES = ("7d", "30d", "month", "all")

# Proporción de material asumida cuando el pedido no tiene datos técnicos
MATERIAL_SHARE_FALLBACK = 0.9

CAPITAL_INJECTION = "Inyección de Capital"
NON_OPERATIONAL_CATEGORIES = {"retiro", "inversion"}

_REALIZED = {s.value for s in REALIZED_STATUSES}
_INCOME = {s.value for s in INCOME_STATUSES}
_PENDING = {s.value for s in PENDING_STATUSES}


def window_start(timeframe: str, today: Optional[date] = None) -> Optional[date]:
    today = today or date.today()
    if timeframe == "7d":
        return today - timedelta(days=7)
    if timeframe == "30d":
        return today - timedelta(days=30)
    if timeframe == "month":
        return today.replace(day=1)
    if timeframe == "all":
        return None
    raise ValueError(f"Periodo desconocido: {timeframe}")


def in_window(order: Mapping[str, Any], start: Optional[date]) -> bool:
    """Coincide si 'date' O 'created_at' cae en o después del inicio"""
    if start is None:
        return True
    order_date = as_date(order.get("date"))
    created = as_date(order.get("created_at"))
    return (order_date is not None and order_date >= start) or (created is not None and created >= start)


def filter_window(orders: Iterable[Mapping[str, Any]], start: Optional[date]) -> List[Mapping[str, Any]]:
    return [o for o in orders if in_window(o, start)]


def series_days(timeframe: str, today: Optional[date] = None) -> List[date]:
    today = today or date.today()
    days = 7 if timeframe == "7d" else 30
    return [today - timedelta(days=days - 1 - i) for i in range(days)]


# --- producción -----------------------------------------------------------

def order_material_cost(order: Mapping[str, Any]) -> float:
    grams = order.get("quoted_grams")
    material_price = order.get("quoted_material_price")
    if grams and material_price:
        return grams * (material_price / 1000) * order_quantity(order)
    return (order.get("cost") or 0) * MATERIAL_SHARE_FALLBACK


def order_energy_cost(order: Mapping[str, Any]) -> float:
    return max(0, (order.get("cost") or 0) - order_material_cost(order))


def order_grams(order: Mapping[str, Any]) -> float:
    return (order.get("quoted_grams") or 0) * order_quantity(order)


def order_hours(order: Mapping[str, Any]) -> float:
    hours = order.get("quoted_hours") or 0
    minutes = order.get("quoted_mins") or 0
    return (hours + minutes / 60) * order_quantity(order)


def realized(orders: Iterable[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    return [o for o in orders if o.get("status") in _REALIZED]


def production_stats(orders: Iterable[Mapping[str, Any]]) -> Dict[str, float]:
    """Totales de costo directo sobre pedidos entregados"""
    done = realized(orders)
    material = sum(order_material_cost(o) for o in done)
    energy = sum(order_energy_cost(o) for o in done)
    total_grams = sum(order_grams(o) for o in done)
    total_hours = sum(order_hours(o) for o in done)
    return {
        "production_cost": sum((o.get("cost") or 0) for o in done),
        "material_cost": material,
        "energy_cost": energy,
        "total_grams": total_grams,
        "total_hours": total_hours,
        "avg_cost_per_gram": material / total_grams if total_grams > 0 else 0,
        "avg_cost_per_hour": energy / total_hours if total_hours > 0 else 0,
        "orders": len(done),
    }


def production_daily_series(
    orders: Iterable[Mapping[str, Any]], timeframe: str, today: Optional[date] = None
) -> List[Dict[str, Any]]:
    done = realized(orders)
    by_day: Dict[date, List[Mapping[str, Any]]] = {}
    for order in done:
        by_day.setdefault(row_day(order), []).append(order)

    series = []
    material_acc = 0.0
    energy_acc = 0.0
    for day in series_days(timeframe, today):
        day_orders = by_day.get(day, [])
        material = sum(order_material_cost(o) for o in day_orders)
        energy = sum(order_energy_cost(o) for o in day_orders)
        material_acc += material
        energy_acc += energy
        series.append(
            {
                "date": day.isoformat(),
                "costo_directo": sum((o.get("cost") or 0) for o in day_orders),
                "material_cost": material,
                "energy_cost": energy,
                "material_acc": material_acc,
                "energy_acc": energy_acc,
            }
        )
    return series


def product_print_hours(product: Mapping[str, Any]) -> float:
    if product.get("estimated_hours") is not None or product.get("estimated_mins") is not None:
        return (product.get("estimated_hours") or 0) + (product.get("estimated_mins") or 0) / 60
    return (product.get("print_time_mins") or 0) / 60


def simulate_product_cost(
    product: Mapping[str, Any],
    stats: Mapping[str, float],
    suggested_price: Optional[float] = None,
) -> Dict[str, float]:
    """
    Costo de fabricar un producto con la eficiencia real observada.
    El margen es 0 cuando no hay precio sugerido.
    """
    material = (product.get("weight_grams") or 0) * stats.get("avg_cost_per_gram", 0)
    energy = product_print_hours(product) * stats.get("avg_cost_per_hour", 0)
    items = sum((i.get("calculated_cost") or 0) for i in product.get("inventory_items") or [])
    additional = sum((c.get("amount") or 0) for c in product.get("additional_costs") or [])
    total = material + energy + items + additional
    price = suggested_price if suggested_price is not None else (product.get("base_price") or 0)
    return {
        "material_cost": material,
        "energy_cost": energy,
        "inventory_items_cost": items,
        "additional_costs": additional,
        "total_cost": total,
        "suggested_price": price,
        "margin": (price - total) / price if price else 0,
    }


def production_overview(store: DataStore, timeframe: str = "30d", today: Optional[date] = None) -> Dict[str, Any]:
    start = window_start(timeframe, today)
    orders = filter_window(store.query("orders"), start)
    return {
        "timeframe": timeframe,
        "stats": production_stats(orders),
        "daily": production_daily_series(orders, timeframe, today),
    }


# --- finanzas -------------------------------------------------------------

def is_capital_injection(order: Mapping[str, Any]) -> bool:
    return not order.get("product_id") and order.get("description") == CAPITAL_INJECTION


def _sale_amount(order: Mapping[str, Any]) -> float:
    return (order.get("price") or 0) * order_quantity(order)


def _suggested_amount(order: Mapping[str, Any]) -> float:
    return (order.get("suggested_price") or order.get("price") or 0) * order_quantity(order)


def _is_operational(expense: Mapping[str, Any]) -> bool:
    return expense.get("category") not in NON_OPERATIONAL_CATEGORIES


def finance_summary(
    orders: Iterable[Mapping[str, Any]],
    expenses: Iterable[Mapping[str, Any]],
) -> Dict[str, float]:
    orders = list(orders)
    expenses = list(expenses)
    income_orders = [o for o in orders if o.get("status") in _INCOME]
    pending_orders = [o for o in orders if o.get("status") in _PENDING]
    sales = [o for o in income_orders if not is_capital_injection(o)]

    income = sum(_sale_amount(o) for o in sales)
    suggested_income = sum(_suggested_amount(o) for o in sales)
    floating = sum(_sale_amount(o) for o in pending_orders)
    op_expenses = sum((e.get("amount") or 0) for e in expenses if _is_operational(e))
    production_cost = sum((o.get("cost") or 0) for o in income_orders)
    injections = sum(_sale_amount(o) for o in income_orders if is_capital_injection(o))
    inversions = sum((e.get("amount") or 0) for e in expenses if e.get("category") == "inversion")
    withdrawals = sum((e.get("amount") or 0) for e in expenses if e.get("category") == "retiro")

    profit = income - op_expenses - production_cost
    return {
        "income": income,
        "suggested_income": suggested_income,
        "floating": floating,
        "expenses": op_expenses + production_cost,
        "operational_expenses": op_expenses,
        "production_cost": production_cost,
        "profit": profit,
        "margin": (profit / income) * 100 if income > 0 else 0,
        "balance": profit + injections - inversions - withdrawals,
        "injections": injections,
        "inversions": inversions,
        "withdrawals": withdrawals,
    }


def expense_categories(expenses: Iterable[Mapping[str, Any]]) -> List[Dict[str, Any]]:
    totals: "OrderedDict[str, float]" = OrderedDict()
    for expense in expenses:
        if not _is_operational(expense):
            continue
        name = expense.get("category") or "Otros"
        totals[name] = totals.get(name, 0) + (expense.get("amount") or 0)
    return [{"name": name[:1].upper() + name[1:], "value": value} for name, value in totals.items()]


def cash_flow_series(
    orders: Iterable[Mapping[str, Any]],
    expenses: Iterable[Mapping[str, Any]],
    timeframe: str,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    orders = list(orders)
    expenses = list(expenses)
    series = []
    balance = income_acc = suggested_acc = cost_acc = 0.0
    for day in series_days(timeframe, today):
        day_orders = [o for o in orders if row_day(o) == day]
        day_expenses = [e for e in expenses if as_date(e.get("date")) == day]
        day_sales = [o for o in day_orders if not is_capital_injection(o)]

        day_income = sum(_sale_amount(o) for o in day_sales)
        day_suggested = sum(_suggested_amount(o) for o in day_sales)
        day_expense = sum((e.get("amount") or 0) for e in day_expenses if _is_operational(e))
        day_cost = sum((o.get("cost") or 0) for o in day_orders)
        day_injections = sum(
            _sale_amount(o) for o in day_orders if o.get("status") in _INCOME and is_capital_injection(o)
        ) + sum((e.get("amount") or 0) for e in day_expenses if e.get("category") == "inversion")
        day_withdrawals = sum((e.get("amount") or 0) for e in day_expenses if e.get("category") == "retiro")

        net = day_income - day_expense - day_cost + day_injections - day_withdrawals
        balance += net
        income_acc += day_income
        suggested_acc += day_suggested
        cost_acc += day_cost
        series.append(
            {
                "date": day.isoformat(),
                "ingresos": day_income,
                "ingresos_acc": income_acc,
                "sugerido": day_suggested,
                "sugerido_acc": suggested_acc,
                "costo_directo": day_cost,
                "costo_acc": cost_acc,
                "gastos": day_expense,
                "net": net,
                "balance": balance,
            }
        )
    return series


def transactions(
    orders: Iterable[Mapping[str, Any]],
    expenses: Iterable[Mapping[str, Any]],
    authors: Optional[Mapping[int, str]] = None,
) -> List[Dict[str, Any]]:
    """Feed unificado (pedidos como ingresos, gastos), del más reciente al más antiguo"""
    authors = authors or {}

    def author(row):
        email = authors.get(row.get("user_id"))
        return email.split("@")[0] if email else "Socio"

    items = [
        {
            "id": o["id"],
            "type": "income",
            "category": "Capital" if is_capital_injection(o) else "Venta",
            "amount": _sale_amount(o),
            "description": o.get("description") or "Venta",
            "date": row_day(o),
            "author": author(o),
        }
        for o in orders
    ]
    items += [
        {
            "id": e["id"],
            "type": "expense",
            "category": e.get("category"),
            "amount": e.get("amount") or 0,
            "description": e.get("description"),
            "date": as_date(e.get("date")),
            "author": author(e),
        }
        for e in expenses
    ]
    items.sort(key=lambda item: item["date"] or date.min, reverse=True)
    return items


def finance_overview(
    store: DataStore,
    timeframe: str = "30d",
    today: Optional[date] = None,
    authors: Optional[Mapping[int, str]] = None,
) -> Dict[str, Any]:
    start = window_start(timeframe, today)
    orders = filter_window(store.query("orders"), start)
    expense_filters = {"date__gte": start} if start else None
    expenses = store.query("expenses", expense_filters)
    return {
        "timeframe": timeframe,
        "stats": finance_summary(orders, expenses),
        "inventory_value": inventory_value(store.query("inventory")),
        "categories": expense_categories(expenses),
        "daily": cash_flow_series(orders, expenses, timeframe, today),
        "transactions": transactions(orders, expenses, authors),
    }


# --- clientes -------------------------------------------------------------

def client_stats(orders: Iterable[Mapping[str, Any]]) -> Dict[str, Any]:
    """Resumen del historial de un cliente"""
    orders = list(orders)
    delivered = [o for o in orders if o.get("status") == OrderStatus.entregado.value]
    pending = [
        o
        for o in orders
        if o.get("status") in {OrderStatus.pendiente.value, OrderStatus.en_proceso.value, OrderStatus.terminado.value}
    ]
    return {
        "total_charged": sum(_sale_amount(o) for o in delivered),
        "pending_payment": sum(_sale_amount(o) for o in pending),
        "direct_cost": sum((o.get("cost") or 0) for o in orders if o.get("status") != OrderStatus.cancelado.value),
        "order_count": len(orders),
    }
