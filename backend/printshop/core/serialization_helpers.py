"""
Helpers genéricos de serialización.
NO contiene lógica de negocio, solo utilidades de formato.
"""
from datetime import date, datetime
from typing import Any, Optional


def short_id(value: Optional[str]) -> str:
    return (value or "")[:8]


def as_date(value: Any) -> Optional[date]:
    """date, datetime o string ISO -> date"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])


def row_day(row) -> Optional[date]:
    """Día contable de un registro: 'date' si existe, si no 'created_at'"""
    return as_date(row.get("date")) or as_date(row.get("created_at"))
