import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from printshop.core.deps import get_store
from printshop.core.store import SqlStore
from printshop.services import analytics_service


router = APIRouter()
logger = logging.getLogger(__name__)


class AdditionalCost(BaseModel):
    description: str = ""
    amount: float = 0


class InventoryItemLine(BaseModel):
    inventory_id: Optional[str] = None
    name: Optional[str] = None
    quantity: float = 0
    measurement_unit: str = "units"
    price_per_unit: float = 0
    calculated_cost: float = 0


class ProductBase(BaseModel):
    name: str
    description: Optional[str] = None
    base_price: float = Field(0, ge=0)
    weight_grams: float = Field(0, ge=0)
    print_time_mins: Optional[float] = None
    estimated_hours: Optional[float] = None
    estimated_mins: Optional[float] = None
    additional_costs: List[AdditionalCost] = []
    inventory_items: List[InventoryItemLine] = []
    active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    base_price: Optional[float] = Field(None, ge=0)
    weight_grams: Optional[float] = Field(None, ge=0)
    print_time_mins: Optional[float] = None
    estimated_hours: Optional[float] = None
    estimated_mins: Optional[float] = None
    additional_costs: Optional[List[AdditionalCost]] = None
    inventory_items: Optional[List[InventoryItemLine]] = None
    active: Optional[bool] = None


def _get_product(store: SqlStore, product_id: str) -> dict:
    rows = store.query("products", {"id": product_id})
    if not rows:
        raise HTTPException(status_code=404, detail="Producto no encontrado")
    return rows[0]


@router.get("/")
def list_products(
    store: SqlStore = Depends(get_store),
    q: Optional[str] = Query(None, description="Search by name"),
    active: Optional[bool] = Query(None, description="Filter by active status"),
):
    logger.info("list_products q=%s active=%s", q, active)
    filters = {"active": active} if active is not None else None
    products = store.query("products", filters, order_by="name")
    if q and q.strip():
        needle = q.strip().lower()
        products = [p for p in products if needle in p["name"].lower()]
    return products


@router.post("/")
def create_product(data: ProductBase, store: SqlStore = Depends(get_store)):
    if not data.name.strip():
        raise HTTPException(status_code=400, detail="El nombre es obligatorio")
    return store.insert("products", [data.model_dump()])[0]


@router.get("/{product_id}")
def get_product(product_id: str, store: SqlStore = Depends(get_store)):
    return _get_product(store, product_id)


@router.put("/{product_id}")
def update_product(product_id: str, data: ProductUpdate, store: SqlStore = Depends(get_store)):
    _get_product(store, product_id)
    rows = store.update("products", data.model_dump(exclude_unset=True), {"id": product_id})
    if not rows:
        raise HTTPException(status_code=403, detail="El producto no fue actualizado (0 filas afectadas)")
    return rows[0]


@router.delete("/{product_id}")
def delete_product(product_id: str, store: SqlStore = Depends(get_store)):
    _get_product(store, product_id)
    store.delete("products", {"id": product_id})
    if store.query("products", {"id": product_id}):
        raise HTTPException(status_code=403, detail="No se eliminó el producto (sin permisos)")
    return {"deleted": product_id}


@router.get("/{product_id}/simulate")
def simulate_product(
    product_id: str,
    timeframe: str = Query("30d"),
    suggested_price: Optional[float] = Query(None, ge=0),
    store: SqlStore = Depends(get_store),
):
    """Costo del producto con la eficiencia real (costo/gramo y costo/hora) del periodo"""
    if timeframe not in analytics_service.TIMEFRAMES:
        raise HTTPException(status_code=400, detail="Periodo inválido")
    product = _get_product(store, product_id)
    stats = analytics_service.production_overview(store, timeframe)["stats"]
    return analytics_service.simulate_product_cost(product, stats, suggested_price)
