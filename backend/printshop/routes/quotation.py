from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from printshop.core.deps import get_store
from printshop.core.quotation import QuotationParams, calculate_quotation
from printshop.core.store import SqlStore
from printshop.services.quotation_config import (
    DEFAULT_POWER_WATTS,
    QuotationConfig,
    load_quotation_config,
    save_quotation_config,
)


router = APIRouter()


class FilamentCreate(BaseModel):
    name: str
    price: float = Field(..., gt=0)
    power: float = Field(DEFAULT_POWER_WATTS, ge=0)
    weight: float = Field(1000, gt=0)


class QuotationRequest(BaseModel):
    """
    Sin material_price_per_kg / printer_power_watts se usa el perfil de
    filamento (o el seleccionado) y los multiplicadores guardados.
    """
    grams: float = Field(0, ge=0)
    hours: float = Field(0, ge=0)
    minutes: float = Field(0, ge=0)
    filament_id: Optional[str] = None
    material_price_per_kg: Optional[float] = Field(None, ge=0)
    electricity_cost_per_kwh: Optional[float] = Field(None, ge=0)
    printer_power_watts: Optional[float] = Field(None, ge=0)
    op_multiplier: Optional[float] = Field(None, ge=0)
    sales_multiplier: Optional[float] = Field(None, ge=0)


@router.get("/config", response_model=QuotationConfig)
def get_config(store: SqlStore = Depends(get_store)):
    return load_quotation_config(store)


@router.put("/config", response_model=QuotationConfig)
def put_config(config: QuotationConfig, store: SqlStore = Depends(get_store)):
    if not config.filaments:
        raise HTTPException(status_code=400, detail="Debe existir al menos un perfil de filamento")
    return save_quotation_config(store, config)


@router.post("/config/filaments", response_model=QuotationConfig)
def add_filament(data: FilamentCreate, store: SqlStore = Depends(get_store)):
    config = load_quotation_config(store)
    try:
        config.add_filament(data.name, data.price, data.power, data.weight)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return save_quotation_config(store, config)


@router.delete("/config/filaments/{filament_id}", response_model=QuotationConfig)
def remove_filament(filament_id: str, store: SqlStore = Depends(get_store)):
    config = load_quotation_config(store)
    try:
        config.remove_filament(filament_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return save_quotation_config(store, config)


@router.post("/calculate")
def calculate(data: QuotationRequest, store: SqlStore = Depends(get_store)):
    config = load_quotation_config(store)
    base = config.params_for(data.grams, data.hours, data.minutes, data.filament_id)

    def pick(explicit, default):
        return explicit if explicit is not None else default

    params = QuotationParams(
        grams=data.grams,
        hours=data.hours,
        minutes=data.minutes,
        material_price_per_kg=pick(data.material_price_per_kg, base.material_price_per_kg),
        electricity_cost_per_kwh=pick(data.electricity_cost_per_kwh, base.electricity_cost_per_kwh),
        printer_power_watts=pick(data.printer_power_watts, base.printer_power_watts),
        op_multiplier=pick(data.op_multiplier, base.op_multiplier),
        sales_multiplier=pick(data.sales_multiplier, base.sales_multiplier),
    )
    return {"params": asdict(params), "result": calculate_quotation(params).to_dict()}
