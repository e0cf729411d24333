from fastapi import APIRouter, Depends, HTTPException, Query

from printshop.core.deps import get_store
from printshop.core.store import SqlStore
from printshop.services import analytics_service


router = APIRouter()


@router.get("/production")
def production_analysis(
    timeframe: str = Query("30d", description="7d, 30d, month, all"),
    store: SqlStore = Depends(get_store),
):
    """Desglose de costo directo (material vs energía) de pedidos entregados"""
    if timeframe not in analytics_service.TIMEFRAMES:
        raise HTTPException(status_code=400, detail="Periodo inválido")
    return analytics_service.production_overview(store, timeframe)
