import datetime as dt
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from printshop.core.database import get_db
from printshop.core.deps import get_current_user, get_store
from printshop.core.store import SqlStore
from printshop.models.user import User
from printshop.services import analytics_service, audit_service, order_service
from printshop.services.quotation_config import load_quotation_config


router = APIRouter()

ASSET_TYPES = ("Impresora", "Herramienta", "Mobiliario", "Insumo", "Otro")
TRANSACTION_TABLES = {"income": "orders", "expense": "expenses"}


class ExpenseCreate(BaseModel):
    category: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    description: Optional[str] = None
    date: Optional[dt.date] = None
    tags: List[str] = []


class IncomeCreate(BaseModel):
    product_id: Optional[str] = None
    description: Optional[str] = None
    price: float = Field(..., gt=0)
    quantity: int = Field(1, ge=1)
    client_id: Optional[str] = None
    custom_client_name: Optional[str] = None
    date: Optional[dt.date] = None
    tags: List[str] = []


class AssetCreate(BaseModel):
    name: str = Field(..., min_length=1)
    type: str = "Impresora"
    acquisition_date: Optional[dt.date] = None
    acquisition_cost: float = Field(..., ge=0)
    current_value: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None


def _check_timeframe(timeframe: str) -> str:
    if timeframe not in analytics_service.TIMEFRAMES:
        raise HTTPException(status_code=400, detail="Periodo inválido")
    return timeframe


@router.get("/summary")
def finance_summary(
    timeframe: str = Query("30d", description="7d, 30d, month, all"),
    store: SqlStore = Depends(get_store),
    db: Session = Depends(get_db),
):
    _check_timeframe(timeframe)
    authors = {u.id: u.email for u in db.query(User).all()}
    return analytics_service.finance_overview(store, timeframe, authors=authors)


@router.get("/expenses")
def list_expenses(store: SqlStore = Depends(get_store)):
    return store.query("expenses", order_by="date", descending=True)


@router.post("/expenses")
def create_expense(
    data: ExpenseCreate,
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    payload = data.model_dump()
    payload["date"] = payload["date"] or dt.date.today()
    payload["user_id"] = user.id
    expense = store.insert("expenses", [payload])[0]
    audit_service.log_audit_action(
        store, user.id, audit_service.CREATE_EXPENSE, "expenses", expense["id"],
        {"amount": expense["amount"], "category": expense["category"]},
    )
    return expense


@router.post("/income")
def create_income(
    data: IncomeCreate,
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    """Ingreso inmediato: un pedido que nace 'terminado'"""
    config = load_quotation_config(store)
    try:
        return order_service.create_order(store, data.model_dump(), config, user, income=True)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/transactions/{kind}/{record_id}")
def delete_transaction(
    kind: str,
    record_id: str,
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    table = TRANSACTION_TABLES.get(kind)
    if table is None:
        raise HTTPException(status_code=400, detail="Tipo de registro inválido")
    if not store.query(table, {"id": record_id}):
        raise HTTPException(status_code=404, detail="Registro no encontrado")
    store.delete(table, {"id": record_id})
    if store.query(table, {"id": record_id}):
        raise HTTPException(status_code=403, detail="No se eliminó el registro (sin permisos)")
    audit_service.log_audit_action(store, user.id, audit_service.delete_action(table), table, record_id)
    return {"deleted": record_id, "message": "Registro eliminado"}


@router.get("/assets")
def list_assets(store: SqlStore = Depends(get_store)):
    return store.query("assets", {"active": True}, order_by="acquisition_date", descending=True)


@router.post("/assets")
def create_asset(
    data: AssetCreate,
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    if data.type not in ASSET_TYPES:
        raise HTTPException(status_code=400, detail=f"Tipo de activo inválido: {data.type}")
    payload = data.model_dump()
    payload["acquisition_date"] = payload["acquisition_date"] or dt.date.today()
    if payload["current_value"] is None:
        payload["current_value"] = payload["acquisition_cost"]
    payload["user_id"] = user.id
    return store.insert("assets", [payload])[0]


@router.delete("/assets/{asset_id}")
def delete_asset(asset_id: str, store: SqlStore = Depends(get_store)):
    # Baja lógica
    rows = store.update("assets", {"active": False}, {"id": asset_id})
    if not rows:
        raise HTTPException(status_code=403, detail="Error al eliminar activo (0 filas afectadas)")
    return {"deleted": asset_id}
