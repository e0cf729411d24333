"""
Totales de pedido calculados a partir de los campos guardados.

Dos accesores distintos, no intercambiables:
- calculate_order_total: lo que se cobra (precio base + costos adicionales).
- get_additional_costs_total: lo que cuesta además del costo base
  (costos adicionales + ítems de inventario).

El margen real usa ambos: total venta - (costo base + adicionales con inventario).
Una cantidad vacía o 0 se interpreta como 1.
"""
from typing import Any, Dict, Iterable, Mapping


def _sum_field(items: Iterable[Mapping[str, Any]], field: str) -> float:
    return sum((item.get(field) or 0) for item in items)


def order_quantity(order: Mapping[str, Any]) -> int:
    return order.get("quantity") or 1


def calculate_order_total(order: Mapping[str, Any]) -> float:
    """Total amount charged for an order including additional costs"""
    base_total = (order.get("price") or 0) * order_quantity(order)
    additional_total = _sum_field(order.get("additional_costs") or [], "amount")
    return base_total + additional_total


def get_additional_costs_total(order: Mapping[str, Any]) -> float:
    """Additional line costs plus the cost of consumable inventory items"""
    additional_costs = _sum_field(order.get("additional_costs") or [], "amount")
    inventory_items_cost = _sum_field(order.get("inventory_items") or [], "calculated_cost")
    return additional_costs + inventory_items_cost


def get_total_cost(order: Mapping[str, Any]) -> float:
    return (order.get("cost") or 0) + get_additional_costs_total(order)


def get_real_margin(order: Mapping[str, Any]) -> float:
    return calculate_order_total(order) - get_total_cost(order)


def build_inventory_item_line(item: Mapping[str, Any], quantity: float) -> Dict[str, Any]:
    """
    Línea de ítem de inventario (unidades) para un pedido o producto.
    El costo se congela al momento de agregar la línea.
    """
    price_per_unit = item.get("price_per_unit") or 0
    return {
        "inventory_id": item.get("id") or item.get("inventory_id"),
        "name": item.get("name"),
        "quantity": quantity,
        "measurement_unit": "units",
        "price_per_unit": price_per_unit,
        "calculated_cost": price_per_unit * quantity,
    }
