from datetime import date

from fastapi import APIRouter, Depends
from fastapi.responses import Response, StreamingResponse

from printshop.core.deps import get_store
from printshop.core.store import SqlStore
from printshop.services.export_service import load_export_data, orders_to_csv, orders_to_excel


router = APIRouter()


@router.get("/orders.csv")
def export_orders_csv(store: SqlStore = Depends(get_store)):
    orders, clients = load_export_data(store)
    filename = f"pedidos_{date.today().isoformat()}.csv"
    return Response(
        content=orders_to_csv(orders, clients),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/orders.xlsx")
def export_orders_excel(store: SqlStore = Depends(get_store)):
    orders, clients = load_export_data(store)
    filename = f"pedidos_{date.today().isoformat()}.xlsx"
    return StreamingResponse(
        orders_to_excel(orders, clients),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
