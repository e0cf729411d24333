"""
Operaciones de inventario contra el almacén: consumo de filamento al
completar pedidos, recargas de stock y valorización.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from printshop.core.config import settings
from printshop.core.inventory_rules import (
    FILAMENT_TYPE,
    apply_deduction,
    deduction_grams,
    inventory_value,
    new_item_payload,
    restock_description,
    select_fallback_roll,
    should_deduct_stock,
)
from printshop.core.notifications import Notifier
from printshop.core.store import DataStore, StoreError

logger = logging.getLogger(__name__)


def _resolve_roll_id(store: DataStore, order: Mapping[str, Any]) -> Optional[str]:
    if order.get("inventory_id"):
        return order["inventory_id"]
    roll = select_fallback_roll(store.query("inventory", {"type": FILAMENT_TYPE}, order_by="created_at"))
    return roll["id"] if roll else None


def consume_for_order(
    store: DataStore,
    order: Mapping[str, Any],
    notifier: Notifier,
    atomic: Optional[bool] = None,
) -> Optional[float]:
    """
    Descuenta el filamento de un pedido recién terminado.

    Cualquier falla se informa como advertencia; el cambio de estado que
    disparó el consumo no se revierte.

    Returns:
        Nuevo stock del rollo, o None si no hubo descuento
    """
    if atomic is None:
        atomic = settings.atomic_stock_deduction
    if not order.get("product_id"):
        return None
    try:
        products = store.query("products", {"id": order["product_id"]})
        if not products:
            return None
        weight = products[0].get("weight_grams")
        if not should_deduct_stock(weight):
            return None

        roll_id = _resolve_roll_id(store, order)
        if not roll_id:
            logger.info("no filament roll available for order %s", order.get("id"))
            return None

        deduction = deduction_grams(weight, order.get("quantity"))
        if atomic:
            rows = store.decrement_stock(roll_id, deduction)
        else:
            rolls = store.query("inventory", {"id": roll_id})
            if not rolls:
                return None
            new_stock = apply_deduction(rolls[0].get("stock_grams"), deduction)
            rows = store.update("inventory", {"stock_grams": new_stock}, {"id": roll_id})
        if not rows:
            notifier.warning(
                "No se pudo descontar el stock",
                f"El rollo {roll_id} no fue actualizado",
            )
            return None
    except StoreError as e:
        notifier.warning("Pedido actualizado, pero falló el descuento de stock", e.message)
        return None

    quantity = order.get("quantity") or 1
    notifier.success(f"Stock descontado: -{deduction:g}g ({quantity} unidades)")
    logger.info("order %s consumed %sg from roll %s", order.get("id"), deduction, roll_id)
    return rows[0].get("stock_grams")


def list_inventory(store: DataStore, item_type: Optional[str] = None) -> List[Dict[str, Any]]:
    filters = {"type": item_type} if item_type else None
    return store.query("inventory", filters, order_by="name")


def create_item(store: DataStore, data: Mapping[str, Any]) -> Dict[str, Any]:
    return store.insert("inventory", [new_item_payload(data)])[0]


def restock(store: DataStore, inventory_id: str, quantity: float) -> Dict[str, Any]:
    """
    Suma stock a un ítem existente (lectura + escritura).

    Raises:
        StoreError: ítem inexistente o escritura rechazada
    """
    rows = store.query("inventory", {"id": inventory_id})
    if not rows:
        raise StoreError(f"Ítem de inventario no encontrado: {inventory_id}", "inventory")
    item = rows[0]
    new_stock = (item.get("stock_grams") or 0) + quantity
    updated = store.update("inventory", {"stock_grams": new_stock}, {"id": inventory_id})
    if not updated:
        raise StoreError("La recarga no afectó ninguna fila", "inventory")
    result = dict(updated[0])
    result["description"] = restock_description(item, quantity)
    return result


def valuation(store: DataStore) -> float:
    return inventory_value(store.query("inventory"))
