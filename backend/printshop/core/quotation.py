"""
Motor de cotización: convierte parámetros físicos de impresión en costos y precio.

Función pura: no lee configuración global ni redondea. El redondeo es tarea
de la capa de presentación.
"""
from dataclasses import dataclass, asdict
from typing import Dict


@dataclass(frozen=True)
class QuotationParams:
    grams: float
    hours: float
    minutes: float
    material_price_per_kg: float
    electricity_cost_per_kwh: float
    printer_power_watts: float
    op_multiplier: float
    sales_multiplier: float


@dataclass(frozen=True)
class QuotationBreakdown:
    material_cost: float
    energy_cost: float
    direct_cost: float
    total_operational_cost: float
    final_price: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def calculate_quotation(params: QuotationParams) -> QuotationBreakdown:
    total_hours = params.hours + (params.minutes / 60)

    # 1. Costo material
    cost_per_gram = params.material_price_per_kg / 1000
    material_cost = params.grams * cost_per_gram

    # 2. Costo energía
    energy_cost = (params.printer_power_watts / 1000) * total_hours * params.electricity_cost_per_kwh

    # 3. Costo directo
    direct_cost = material_cost + energy_cost

    # 4. Costo total operativo (costo real para el negocio)
    total_operational_cost = direct_cost * params.op_multiplier

    # 5. Precio de venta sugerido
    final_price = total_operational_cost * params.sales_multiplier

    return QuotationBreakdown(
        material_cost=material_cost,
        energy_cost=energy_cost,
        direct_cost=direct_cost,
        total_operational_cost=total_operational_cost,
        final_price=final_price,
    )
