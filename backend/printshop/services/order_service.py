"""
Pedidos: creación con parámetros técnicos congelados, edición con recálculo
y el tablero de estados con actualización optimista.
"""
import copy
import logging
import threading
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Set

from printshop.core.config import settings
from printshop.core.notifications import Notifier
from printshop.core.order_lifecycle import (
    InvalidTransition,
    OrderStatus,
    advance,
    retreat,
    status_label,
    triggers_inventory_deduction,
    validate_transition,
)
from printshop.core.quotation import QuotationParams, calculate_quotation
from printshop.core.store import DataStore, StoreError
from printshop.models.user import User
from printshop.services import audit_service
from printshop.services.inventory_service import consume_for_order
from printshop.services.quotation_config import QuotationConfig

logger = logging.getLogger(__name__)

QUOTED_FIELDS = (
    "quoted_grams",
    "quoted_hours",
    "quoted_mins",
    "quoted_power_watts",
    "quoted_material_price",
    "quoted_op_multiplier",
    "quoted_sales_multiplier",
)

# Valores usados al recalcular pedidos antiguos sin parámetros guardados
RECALC_DEFAULTS = {
    "quoted_power_watts": 100,
    "quoted_op_multiplier": 1.5,
    "quoted_sales_multiplier": 3.0,
    "quoted_material_price": 15000,
}


def _params_from_order(order: Mapping[str, Any], electricity_cost: float) -> QuotationParams:
    def value(name):
        return order.get(name) or RECALC_DEFAULTS.get(name, 0)

    return QuotationParams(
        grams=value("quoted_grams"),
        hours=value("quoted_hours"),
        minutes=value("quoted_mins"),
        material_price_per_kg=value("quoted_material_price"),
        electricity_cost_per_kwh=electricity_cost,
        printer_power_watts=value("quoted_power_watts"),
        op_multiplier=value("quoted_op_multiplier"),
        sales_multiplier=value("quoted_sales_multiplier"),
    )


def _resolve_client(data: Mapping[str, Any]) -> Dict[str, Any]:
    client_id = data.get("client_id")
    custom_name = (data.get("custom_client_name") or "").strip() or None
    if client_id and custom_name:
        raise ValueError("Indica un cliente registrado o un nombre libre, no ambos")
    return {"client_id": client_id, "custom_client_name": custom_name}


def build_order_payload(
    data: Mapping[str, Any],
    config: QuotationConfig,
    product: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Arma la fila de un pedido nuevo.

    - Los valores del producto (descripción, precio, costos por defecto) se
      copian y pueden sobreescribirse.
    - Con datos técnicos (gramos) se congelan los parámetros de cotización y
      se guarda el costo directo y el precio sugerido.
    - Sin datos técnicos el costo es peso x tarifa plana.
    """
    product = product or {}
    payload: Dict[str, Any] = {
        "product_id": product.get("id") or data.get("product_id"),
        "description": data.get("description") or product.get("name"),
        "price": data.get("price") if data.get("price") is not None else (product.get("base_price") or 0),
        "quantity": data.get("quantity") if data.get("quantity") is not None else 1,
        "status": data.get("status") or OrderStatus.pendiente.value,
        "date": data.get("date"),
        "deadline": data.get("deadline"),
        "inventory_id": data.get("inventory_id"),
        "tags": list(data.get("tags") or []),
        "additional_costs": copy.deepcopy(
            data.get("additional_costs") if data.get("additional_costs") is not None else (product.get("additional_costs") or [])
        ),
        "inventory_items": copy.deepcopy(
            data.get("inventory_items") if data.get("inventory_items") is not None else (product.get("inventory_items") or [])
        ),
    }
    payload.update(_resolve_client(data))

    grams = data.get("quoted_grams")
    if grams:
        profile = config.filament(data.get("filament_id"))
        params = QuotationParams(
            grams=grams,
            hours=data.get("quoted_hours") if data.get("quoted_hours") is not None else (product.get("estimated_hours") or 0),
            minutes=data.get("quoted_mins") if data.get("quoted_mins") is not None else (product.get("estimated_mins") or 0),
            material_price_per_kg=data.get("quoted_material_price") or (profile.price_per_kg if profile else 0),
            electricity_cost_per_kwh=config.electricity_cost,
            printer_power_watts=data.get("quoted_power_watts") or (profile.power if profile else 100),
            op_multiplier=data.get("quoted_op_multiplier") or config.operational_multiplier,
            sales_multiplier=data.get("quoted_sales_multiplier") or config.sales_multiplier,
        )
        breakdown = calculate_quotation(params)
        payload.update(
            quoted_grams=params.grams,
            quoted_hours=params.hours,
            quoted_mins=params.minutes,
            quoted_power_watts=params.printer_power_watts,
            quoted_material_price=params.material_price_per_kg,
            quoted_op_multiplier=params.op_multiplier,
            quoted_sales_multiplier=params.sales_multiplier,
            cost=breakdown.direct_cost,
            suggested_price=breakdown.final_price,
        )
    else:
        weight = product.get("weight_grams") or 0
        payload["cost"] = weight * settings.flat_cost_per_gram
        payload["suggested_price"] = data.get("suggested_price")
    return payload


def create_order(
    store: DataStore,
    data: Mapping[str, Any],
    config: QuotationConfig,
    user: Optional[User] = None,
    income: bool = False,
) -> Dict[str, Any]:
    """
    Crea un pedido. Un ingreso manual es un pedido que nace 'terminado'.

    Raises:
        ValueError: datos inválidos (producto inexistente, cliente ambiguo)
        StoreError: el almacén rechazó la escritura
    """
    product = None
    if data.get("product_id"):
        products = store.query("products", {"id": data["product_id"]})
        if not products:
            raise ValueError(f"Producto no encontrado: {data['product_id']}")
        product = products[0]

    payload = build_order_payload(data, config, product)
    if income:
        payload["status"] = OrderStatus.terminado.value
    if user is not None:
        payload["user_id"] = user.id
    if payload.get("date") is None:
        payload["date"] = date.today()

    order = store.insert("orders", [payload])[0]
    logger.info("order %s created status=%s price=%s", order["id"], order["status"], order["price"])

    audit_service.log_audit_action(
        store,
        user.id if user is not None else None,
        audit_service.CREATE_INCOME if income else audit_service.CREATE_ORDER,
        "orders",
        order["id"],
        {"price": order["price"], "product": order.get("description")},
    )
    return order


def update_order(
    store: DataStore,
    order_id: str,
    patch: Mapping[str, Any],
    recalculate: bool = False,
    electricity_cost: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Edita un pedido. Con recalculate=True se recotiza con los parámetros
    técnicos (los del patch sobre los guardados): cambia costo y precio
    sugerido pero nunca el precio cobrado.

    Raises:
        ValueError: pedido inexistente o cliente ambiguo
        StoreError: escritura rechazada o sin filas afectadas
    """
    rows = store.query("orders", {"id": order_id})
    if not rows:
        raise ValueError(f"Pedido no encontrado: {order_id}")
    current = rows[0]
    changes = dict(patch)
    # El estado sólo cambia a través del tablero
    changes.pop("status", None)
    if changes.get("client_id") and "custom_client_name" not in changes:
        changes["custom_client_name"] = None
    if changes.get("custom_client_name") and "client_id" not in changes:
        changes["client_id"] = None
    if "client_id" in changes or "custom_client_name" in changes:
        changes.update(_resolve_client({**current, **changes}))

    if recalculate:
        merged_order = {**current, **changes}
        for name in QUOTED_FIELDS:
            if not merged_order.get(name) and name in RECALC_DEFAULTS:
                changes[name] = RECALC_DEFAULTS[name]
        params = _params_from_order(merged_order, electricity_cost or settings.default_electricity_cost)
        breakdown = calculate_quotation(params)
        changes["cost"] = breakdown.direct_cost
        changes["suggested_price"] = breakdown.final_price

    updated = store.update("orders", changes, {"id": order_id})
    if not updated:
        raise StoreError("El pedido no fue actualizado (0 filas afectadas)", "orders")
    return updated[0]


def list_orders(store: DataStore, status: Optional[str] = None, include_cancelled: bool = True) -> List[Dict[str, Any]]:
    filters: Dict[str, Any] = {}
    if status:
        filters["status"] = status
    elif not include_cancelled:
        filters["status__ne"] = OrderStatus.cancelado.value
    return store.query("orders", filters, order_by="created_at", descending=True)


class InFlightGuard:
    """Conjunto de pedidos con una actualización en curso"""

    def __init__(self):
        self._ids: Set[str] = set()
        self._lock = threading.Lock()

    def acquire(self, order_id: str) -> bool:
        with self._lock:
            if order_id in self._ids:
                return False
            self._ids.add(order_id)
            return True

    def release(self, order_id: str) -> None:
        with self._lock:
            self._ids.discard(order_id)

    def __contains__(self, order_id: str) -> bool:
        with self._lock:
            return order_id in self._ids


# Compartido por todas las peticiones del proceso
IN_FLIGHT = InFlightGuard()


@dataclass
class StatusUpdateResult:
    ok: bool
    order: Optional[Dict[str, Any]] = None
    changed: bool = False
    ignored: bool = False
    notifications: List[Dict[str, Any]] = field(default_factory=list)


class OrderBoard:
    """
    Vista local de los pedidos con cambios de estado optimistas.

    Cada cambio: snapshot -> mutación local -> escritura en el almacén.
    Si la escritura falla o no afecta filas se restaura el snapshot.
    """

    def __init__(
        self,
        store: DataStore,
        user: Optional[User] = None,
        guard: Optional[InFlightGuard] = None,
    ):
        self.store = store
        self.user = user
        self.guard = guard or IN_FLIGHT
        self.orders: Dict[str, Dict[str, Any]] = {}

    def load(self, include_cancelled: bool = True) -> List[Dict[str, Any]]:
        rows = list_orders(self.store, include_cancelled=include_cancelled)
        self.orders = {row["id"]: row for row in rows}
        return rows

    def get(self, order_id: str) -> Optional[Dict[str, Any]]:
        if order_id not in self.orders:
            rows = self.store.query("orders", {"id": order_id})
            if not rows:
                return None
            self.orders[order_id] = rows[0]
        return self.orders[order_id]

    def advance(self, order_id: str) -> StatusUpdateResult:
        order = self.get(order_id)
        if order is None:
            return self._not_found(order_id)
        return self.update_status(order_id, advance(order["status"]).value)

    def retreat(self, order_id: str) -> StatusUpdateResult:
        order = self.get(order_id)
        if order is None:
            return self._not_found(order_id)
        return self.update_status(order_id, retreat(order["status"]).value)

    def cancel(self, order_id: str) -> StatusUpdateResult:
        return self.update_status(order_id, OrderStatus.cancelado.value)

    def _not_found(self, order_id: str) -> StatusUpdateResult:
        notifier = Notifier()
        notifier.error("Pedido no encontrado", order_id)
        return StatusUpdateResult(ok=False, notifications=notifier.to_list())

    def update_status(self, order_id: str, new_status: str) -> StatusUpdateResult:
        notifier = Notifier()
        if not self.guard.acquire(order_id):
            logger.info("status update for %s ignored: already in flight", order_id)
            notifier.info("Actualización en curso", "El pedido ya se está actualizando")
            return StatusUpdateResult(
                ok=False, order=self.orders.get(order_id), ignored=True, notifications=notifier.to_list()
            )
        try:
            return self._update_status(order_id, new_status, notifier)
        finally:
            self.guard.release(order_id)

    def _update_status(self, order_id: str, new_status: str, notifier: Notifier) -> StatusUpdateResult:
        try:
            order = self.get(order_id)
        except StoreError as e:
            notifier.error("Error al actualizar estado", e.message)
            return StatusUpdateResult(ok=False, notifications=notifier.to_list())
        if order is None:
            notifier.error("Pedido no encontrado", order_id)
            return StatusUpdateResult(ok=False, notifications=notifier.to_list())

        old_status = order["status"]
        try:
            target = validate_transition(old_status, new_status).value
        except InvalidTransition as e:
            notifier.error("Cambio de estado no permitido", str(e))
            return StatusUpdateResult(ok=False, order=order, notifications=notifier.to_list())

        if target == old_status:
            return StatusUpdateResult(ok=True, order=order, notifications=notifier.to_list())

        snapshot = copy.deepcopy(order)
        order["status"] = target

        try:
            rows = self.store.update("orders", {"status": target}, {"id": order_id})
        except StoreError as e:
            self.orders[order_id] = snapshot
            notifier.error("Error al actualizar estado", e.message)
            logger.warning("status update %s -> %s rolled back: %s", order_id, target, e.message)
            return StatusUpdateResult(ok=False, order=snapshot, notifications=notifier.to_list())

        if not rows:
            self.orders[order_id] = snapshot
            notifier.error(
                "Error al actualizar estado",
                "No se modificó ningún registro (0 filas afectadas). Revisa tus permisos.",
            )
            logger.warning("status update %s -> %s matched zero rows, rolled back", order_id, target)
            return StatusUpdateResult(ok=False, order=snapshot, notifications=notifier.to_list())

        committed = rows[0]
        self.orders[order_id] = committed
        self._record_transition(committed, old_status, target)

        if triggers_inventory_deduction(old_status, target):
            consume_for_order(self.store, committed, notifier)

        notifier.success(f"Pedido movido a {status_label(target)}")
        return StatusUpdateResult(ok=True, order=committed, changed=True, notifications=notifier.to_list())

    def _record_transition(self, order: Mapping[str, Any], old_status: str, new_status: str) -> None:
        user_id = self.user.id if self.user is not None else None
        try:
            self.store.insert(
                "order_status_history",
                [
                    {
                        "order_id": order["id"],
                        "old_status": old_status,
                        "new_status": new_status,
                        "user_id": user_id,
                        "user_email": self.user.email if self.user is not None else None,
                    }
                ],
            )
        except StoreError:
            logger.exception("Error recording status history for order %s", order["id"])
        audit_service.log_audit_action(
            self.store,
            user_id,
            audit_service.UPDATE_ORDER_STATUS,
            "orders",
            order["id"],
            {"old_status": old_status, "new_status": new_status},
        )
