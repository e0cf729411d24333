from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from printshop.core.deps import get_current_user, get_store
from printshop.core.store import SqlStore
from printshop.models.user import User
from printshop.services import reinvestment_service


router = APIRouter()


@router.post("/acquisitions")
def register_acquisition(
    amount: float = Form(...),
    acquisition_type: str = Form("inventory"),  # "inventory" or "asset"
    capital_source: str = Form("reinvestment"),  # "reinvestment" or "investment"
    description: Optional[str] = Form(None),
    inventory_id: Optional[str] = Form(None),  # "new" para crear el material
    quantity_to_add: Optional[float] = Form(None),
    new_item_name: Optional[str] = Form(None),
    new_item_type: str = Form("Filamento"),
    new_item_brand: Optional[str] = Form(None),
    new_item_color: Optional[str] = Form(None),
    new_item_stock_grams: Optional[float] = Form(None),
    new_item_price_per_kg: Optional[float] = Form(None),
    evidence: Optional[UploadFile] = File(None),
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    if acquisition_type not in (reinvestment_service.ACQUISITION_INVENTORY, reinvestment_service.ACQUISITION_ASSET):
        raise HTTPException(status_code=400, detail="Tipo de adquisición inválido")
    data = {
        "amount": amount,
        "acquisition_type": acquisition_type,
        "capital_source": capital_source,
        "description": description,
        "inventory_id": inventory_id,
        "quantity_to_add": quantity_to_add,
        "new_item": {
            "name": new_item_name,
            "type": new_item_type,
            "brand": new_item_brand,
            "color": new_item_color,
            "stock_grams": new_item_stock_grams,
            "price_per_kg": new_item_price_per_kg,
        },
    }
    upload = None
    if evidence is not None and evidence.filename:
        upload = (evidence.filename, evidence.file.read())
    try:
        expense = reinvestment_service.register_acquisition(store, data, user.id, upload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"expense": expense, "message": "Adquisición registrada correctamente"}


@router.get("/summary")
def capital_summary(store: SqlStore = Depends(get_store)):
    return reinvestment_service.capital_summary(store)


@router.get("/monthly")
def monthly_growth(store: SqlStore = Depends(get_store)):
    return reinvestment_service.monthly_growth(store)
