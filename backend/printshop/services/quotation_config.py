"""
Configuración del cotizador (perfiles de filamento, costo eléctrico, multiplicadores).

Se guarda como JSON en app_settings. El calculador nunca la lee directamente:
se construyen QuotationParams a partir de ella y se le pasan como argumento.
"""
import logging
import uuid
from typing import List, Optional

from pydantic import BaseModel, Field

from printshop.core.quotation import QuotationBreakdown, QuotationParams, calculate_quotation
from printshop.core.store import DataStore

logger = logging.getLogger(__name__)

CONFIG_KEY = "quotation_config_v4"
DEFAULT_POWER_WATTS = 100.0


class FilamentProfile(BaseModel):
    id: str
    name: str
    price: float  # precio del rollo
    weight: float = 1000  # gramos del rollo
    power: float = DEFAULT_POWER_WATTS  # watts de la impresora con este material

    @property
    def price_per_kg(self) -> float:
        if not self.weight:
            return 0.0
        return self.price * 1000 / self.weight


def default_filaments() -> List[FilamentProfile]:
    return [
        FilamentProfile(id="1", name="PLA (Bambu Lab)", price=15000, weight=1000, power=100),
        FilamentProfile(id="2", name="PETG (Bambu Lab)", price=18000, weight=1000, power=140),
        FilamentProfile(id="3", name="ABS (Bambu Lab)", price=17000, weight=1000, power=200),
    ]


class QuotationConfig(BaseModel):
    filaments: List[FilamentProfile] = Field(default_factory=default_filaments)
    selected_filament_id: str = "1"
    electricity_cost: float = 50
    operational_multiplier: float = 1.5
    sales_multiplier: float = 3

    def filament(self, filament_id: Optional[str] = None) -> Optional[FilamentProfile]:
        wanted = filament_id or self.selected_filament_id
        for profile in self.filaments:
            if profile.id == wanted:
                return profile
        return self.filaments[0] if self.filaments else None

    def params_for(
        self,
        grams: float,
        hours: float = 0,
        minutes: float = 0,
        filament_id: Optional[str] = None,
    ) -> QuotationParams:
        profile = self.filament(filament_id)
        return QuotationParams(
            grams=grams,
            hours=hours,
            minutes=minutes,
            material_price_per_kg=profile.price_per_kg if profile else 0.0,
            electricity_cost_per_kwh=self.electricity_cost,
            printer_power_watts=profile.power if profile else DEFAULT_POWER_WATTS,
            op_multiplier=self.operational_multiplier,
            sales_multiplier=self.sales_multiplier,
        )

    def quote(self, grams: float, hours: float = 0, minutes: float = 0, filament_id: Optional[str] = None) -> QuotationBreakdown:
        return calculate_quotation(self.params_for(grams, hours, minutes, filament_id))

    def add_filament(self, name: str, price: float, power: float = DEFAULT_POWER_WATTS, weight: float = 1000) -> FilamentProfile:
        if not name or price <= 0:
            raise ValueError("El filamento necesita nombre y precio mayor a 0")
        profile = FilamentProfile(id=uuid.uuid4().hex[:8], name=name, price=price, weight=weight, power=power)
        self.filaments.append(profile)
        return profile

    def remove_filament(self, filament_id: str) -> None:
        # Siempre debe quedar al menos un perfil
        if len(self.filaments) <= 1:
            raise ValueError("Debe existir al menos un perfil de filamento")
        remaining = [f for f in self.filaments if f.id != filament_id]
        if len(remaining) == len(self.filaments):
            raise ValueError(f"Perfil no encontrado: {filament_id}")
        self.filaments = remaining
        if self.selected_filament_id == filament_id:
            self.selected_filament_id = remaining[0].id


def load_quotation_config(store: DataStore) -> QuotationConfig:
    rows = store.query("app_settings", {"key": CONFIG_KEY})
    if not rows:
        return QuotationConfig()
    return QuotationConfig.model_validate(rows[0]["value"])


def save_quotation_config(store: DataStore, config: QuotationConfig) -> QuotationConfig:
    value = config.model_dump()
    updated = store.update("app_settings", {"value": value}, {"key": CONFIG_KEY})
    if not updated:
        store.insert("app_settings", [{"key": CONFIG_KEY, "value": value}])
    logger.info("quotation config saved (%d filament profiles)", len(config.filaments))
    return config
