import datetime as dt
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from printshop.core.deps import get_current_user, get_store
from printshop.core.order_lifecycle import OrderStatus
from printshop.core.order_totals import calculate_order_total, get_additional_costs_total, get_real_margin
from printshop.core.store import SqlStore
from printshop.models.user import User
from printshop.routes.products import AdditionalCost, InventoryItemLine
from printshop.services import order_service
from printshop.services.order_service import OrderBoard, StatusUpdateResult
from printshop.services.quotation_config import load_quotation_config


router = APIRouter()


class OrderCreate(BaseModel):
    product_id: Optional[str] = None
    client_id: Optional[str] = None
    custom_client_name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    date: Optional[dt.date] = None
    deadline: Optional[dt.date] = None
    inventory_id: Optional[str] = None
    tags: List[str] = []
    additional_costs: Optional[List[AdditionalCost]] = None
    inventory_items: Optional[List[InventoryItemLine]] = None

    # Datos técnicos para cotizar (opcionales)
    filament_id: Optional[str] = None
    quoted_grams: Optional[float] = Field(None, ge=0)
    quoted_hours: Optional[float] = Field(None, ge=0)
    quoted_mins: Optional[float] = Field(None, ge=0)
    quoted_power_watts: Optional[float] = Field(None, ge=0)
    quoted_material_price: Optional[float] = Field(None, ge=0)
    quoted_op_multiplier: Optional[float] = Field(None, ge=0)
    quoted_sales_multiplier: Optional[float] = Field(None, ge=0)


class OrderUpdate(BaseModel):
    client_id: Optional[str] = None
    custom_client_name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    quantity: Optional[int] = Field(None, ge=0)
    suggested_price: Optional[float] = Field(None, ge=0)
    cost: Optional[float] = Field(None, ge=0)
    date: Optional[dt.date] = None
    deadline: Optional[dt.date] = None
    inventory_id: Optional[str] = None
    tags: Optional[List[str]] = None
    additional_costs: Optional[List[AdditionalCost]] = None
    inventory_items: Optional[List[InventoryItemLine]] = None
    quoted_grams: Optional[float] = Field(None, ge=0)
    quoted_hours: Optional[float] = Field(None, ge=0)
    quoted_mins: Optional[float] = Field(None, ge=0)
    quoted_power_watts: Optional[float] = Field(None, ge=0)
    quoted_material_price: Optional[float] = Field(None, ge=0)
    quoted_op_multiplier: Optional[float] = Field(None, ge=0)
    quoted_sales_multiplier: Optional[float] = Field(None, ge=0)
    recalculate: bool = False


class StatusChange(BaseModel):
    status: OrderStatus


class StatusChangeResponse(BaseModel):
    ok: bool
    changed: bool
    order: Optional[Dict[str, Any]]
    notifications: List[Dict[str, Any]]


def with_totals(order: Dict[str, Any]) -> Dict[str, Any]:
    result = dict(order)
    result["total_sale"] = calculate_order_total(order)
    result["additional_costs_total"] = get_additional_costs_total(order)
    result["real_margin"] = get_real_margin(order)
    return result


def status_response(result: StatusUpdateResult) -> StatusChangeResponse:
    if result.ignored:
        raise HTTPException(status_code=409, detail="El pedido ya se está actualizando")
    return StatusChangeResponse(
        ok=result.ok,
        changed=result.changed,
        order=with_totals(result.order) if result.order else None,
        notifications=result.notifications,
    )


@router.get("/")
def list_orders(
    status: Optional[OrderStatus] = Query(None),
    include_cancelled: bool = Query(True),
    store: SqlStore = Depends(get_store),
):
    rows = order_service.list_orders(store, status.value if status else None, include_cancelled)
    return [with_totals(row) for row in rows]


@router.get("/{order_id}")
def get_order(order_id: str, store: SqlStore = Depends(get_store)):
    rows = store.query("orders", {"id": order_id})
    if not rows:
        raise HTTPException(status_code=404, detail="Pedido no encontrado")
    return with_totals(rows[0])


@router.post("/")
def create_order(
    data: OrderCreate,
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    config = load_quotation_config(store)
    try:
        order = order_service.create_order(store, data.model_dump(), config, user)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return with_totals(order)


@router.put("/{order_id}")
def update_order(order_id: str, data: OrderUpdate, store: SqlStore = Depends(get_store)):
    if not store.query("orders", {"id": order_id}):
        raise HTTPException(status_code=404, detail="Pedido no encontrado")
    patch = data.model_dump(exclude_unset=True)
    recalculate = patch.pop("recalculate", False)
    config = load_quotation_config(store)
    try:
        order = order_service.update_order(store, order_id, patch, recalculate, config.electricity_cost)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return with_totals(order)


@router.post("/{order_id}/status", response_model=StatusChangeResponse)
def change_status(
    order_id: str,
    data: StatusChange,
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    return status_response(OrderBoard(store, user).update_status(order_id, data.status.value))


@router.post("/{order_id}/advance", response_model=StatusChangeResponse)
def advance_order(order_id: str, store: SqlStore = Depends(get_store), user: User = Depends(get_current_user)):
    return status_response(OrderBoard(store, user).advance(order_id))


@router.post("/{order_id}/retreat", response_model=StatusChangeResponse)
def retreat_order(order_id: str, store: SqlStore = Depends(get_store), user: User = Depends(get_current_user)):
    return status_response(OrderBoard(store, user).retreat(order_id))


@router.post("/{order_id}/cancel", response_model=StatusChangeResponse)
def cancel_order(order_id: str, store: SqlStore = Depends(get_store), user: User = Depends(get_current_user)):
    return status_response(OrderBoard(store, user).cancel(order_id))
