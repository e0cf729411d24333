"""
Reglas de inventario: cuánto filamento se descuenta al completar un pedido y de qué rollo.

Regla general: el descuento se hace una sola vez, al pasar el pedido a 'terminado'
(ver order_lifecycle.triggers_inventory_deduction). El stock nunca queda negativo.
Los ítems en unidades (repuestos) no se descuentan automáticamente: su costo
ya va en la línea del pedido.
"""
from typing import Any, Dict, Iterable, Mapping, Optional


FILAMENT_TYPE = "Filamento"
INVENTORY_TYPES = ("Filamento", "Resina", "Repuesto", "Otro")
MEASUREMENT_UNITS = ("grams", "units")


def deduction_grams(weight_grams: Optional[float], quantity: Optional[int]) -> float:
    """
    Gramos a descontar para un pedido.

    Args:
        weight_grams: Peso unitario del producto
        quantity: Cantidad del pedido (vacío o 0 equivale a 1)

    Returns:
        Gramos totales, 0 si el producto no tiene peso
    """
    if not weight_grams or weight_grams <= 0:
        return 0.0
    return weight_grams * (quantity or 1)


def apply_deduction(stock_grams: Optional[float], deduction: float) -> float:
    """Stock resultante con piso en cero"""
    return max(0, (stock_grams or 0) - deduction)


def should_deduct_stock(weight_grams: Optional[float]) -> bool:
    return bool(weight_grams) and weight_grams > 0


def select_fallback_roll(rows: Iterable[Mapping[str, Any]]) -> Optional[Mapping[str, Any]]:
    """
    Primer rollo de filamento en el orden por defecto del almacén.
    Se usa cuando el pedido no indica de qué rollo descontar.
    """
    for row in rows:
        if row.get("type") == FILAMENT_TYPE:
            return row
    return None


def inventory_value(rows: Iterable[Mapping[str, Any]]) -> float:
    """Valorización actual del inventario por peso: kg en stock x precio por kg"""
    total = 0.0
    for item in rows:
        kg = (item.get("stock_grams") or 0) / 1000
        total += kg * (item.get("price_per_kg") or 0)
    return total


def restock_description(item: Mapping[str, Any], quantity: float) -> str:
    unit = "g" if item.get("measurement_unit", "grams") == "grams" else " un"
    return f"Recarga de Stock: {item.get('name')} (+{quantity:g}{unit})"


def new_item_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Campos por defecto para un ítem de inventario nuevo"""
    return {
        "name": data.get("name"),
        "type": data.get("type") or FILAMENT_TYPE,
        "brand": data.get("brand"),
        "color": data.get("color"),
        "stock_grams": float(data.get("stock_grams") or 0),
        "price_per_kg": data.get("price_per_kg"),
        "price_per_unit": data.get("price_per_unit"),
        "measurement_unit": data.get("measurement_unit") or "grams",
        "status": "disponible",
    }
