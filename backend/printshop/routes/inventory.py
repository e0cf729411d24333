from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from printshop.core.deps import get_store
from printshop.core.inventory_rules import INVENTORY_TYPES, MEASUREMENT_UNITS
from printshop.core.store import SqlStore
from printshop.services import inventory_service


router = APIRouter()


class InventoryItemCreate(BaseModel):
    name: str
    type: str = "Filamento"
    brand: Optional[str] = None
    color: Optional[str] = None
    stock_grams: float = Field(0, ge=0)
    price_per_kg: Optional[float] = Field(None, ge=0)
    price_per_unit: Optional[float] = Field(None, ge=0)
    measurement_unit: str = "grams"

    @field_validator("type")
    @classmethod
    def valid_type(cls, value):
        if value not in INVENTORY_TYPES:
            raise ValueError(f"Tipo inválido: {value}")
        return value

    @field_validator("measurement_unit")
    @classmethod
    def valid_unit(cls, value):
        if value not in MEASUREMENT_UNITS:
            raise ValueError(f"Unidad inválida: {value}")
        return value


class InventoryItemUpdate(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    color: Optional[str] = None
    stock_grams: Optional[float] = Field(None, ge=0)
    price_per_kg: Optional[float] = Field(None, ge=0)
    price_per_unit: Optional[float] = Field(None, ge=0)
    status: Optional[str] = None


class RestockRequest(BaseModel):
    quantity: float = Field(..., gt=0)


@router.get("/")
def list_inventory(
    type: Optional[str] = Query(None, description="Filamento, Resina, Repuesto, Otro"),
    store: SqlStore = Depends(get_store),
):
    return inventory_service.list_inventory(store, type)


@router.get("/valuation")
def valuation(store: SqlStore = Depends(get_store)):
    return {"inventory_value": inventory_service.valuation(store)}


@router.post("/")
def create_item(data: InventoryItemCreate, store: SqlStore = Depends(get_store)):
    return inventory_service.create_item(store, data.model_dump())


@router.put("/{item_id}")
def update_item(item_id: str, data: InventoryItemUpdate, store: SqlStore = Depends(get_store)):
    if not store.query("inventory", {"id": item_id}):
        raise HTTPException(status_code=404, detail="Ítem no encontrado")
    rows = store.update("inventory", data.model_dump(exclude_unset=True), {"id": item_id})
    if not rows:
        raise HTTPException(status_code=403, detail="El ítem no fue actualizado (0 filas afectadas)")
    return rows[0]


@router.post("/{item_id}/restock")
def restock_item(item_id: str, data: RestockRequest, store: SqlStore = Depends(get_store)):
    return inventory_service.restock(store, item_id, data.quantity)


@router.delete("/{item_id}")
def delete_item(item_id: str, store: SqlStore = Depends(get_store)):
    store.delete("inventory", {"id": item_id})
    if store.query("inventory", {"id": item_id}):
        raise HTTPException(status_code=403, detail="No se eliminó el ítem (sin permisos)")
    return {"deleted": item_id}
