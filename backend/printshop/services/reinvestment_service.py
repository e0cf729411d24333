"""
Seguimiento de capital: compras financiadas con inversión externa o con
reinversión de utilidades. Cada adquisición es un gasto etiquetado.
"""
import logging
import uuid
from datetime import date
from pathlib import PurePath
from typing import Any, Dict, List, Mapping, Optional, Tuple

from printshop.core.serialization_helpers import as_date
from printshop.core.store import DataStore
from printshop.services import audit_service
from printshop.services.inventory_service import create_item, restock

logger = logging.getLogger(__name__)

EVIDENCE_BUCKET = "evidence"
INVESTMENT_TAG = "Inversión"
REINVESTMENT_TAG = "Reinversión"
CAPITAL_TAGS = (INVESTMENT_TAG, REINVESTMENT_TAG)

ACQUISITION_INVENTORY = "inventory"
ACQUISITION_ASSET = "asset"


def _is_capital_expense(expense: Mapping[str, Any]) -> bool:
    tags = expense.get("tags") or []
    return any(tag in tags for tag in CAPITAL_TAGS)


def capital_expenses(store: DataStore) -> List[Dict[str, Any]]:
    rows = store.query("expenses", order_by="date", descending=True)
    return [row for row in rows if _is_capital_expense(row)]


def upload_evidence(store: DataStore, filename: str, data: bytes) -> str:
    suffix = PurePath(filename or "").suffix.lower() or ".bin"
    path = f"{uuid.uuid4().hex}{suffix}"
    return store.upload_file(EVIDENCE_BUCKET, path, data)


def register_acquisition(
    store: DataStore,
    data: Mapping[str, Any],
    user_id: Optional[int] = None,
    evidence: Optional[Tuple[str, bytes]] = None,
) -> Dict[str, Any]:
    """
    Registra una compra con capital.

    Para material se crea el ítem nuevo o se recarga el existente antes de
    registrar el gasto.

    Raises:
        ValueError: monto no positivo o datos de material incompletos
        StoreError: fallo del almacén en cualquiera de los pasos
    """
    amount = float(data.get("amount") or 0)
    if amount <= 0:
        raise ValueError("El monto debe ser mayor a 0")

    acquisition_type = data.get("acquisition_type") or ACQUISITION_INVENTORY
    description = data.get("description") or ""

    if acquisition_type == ACQUISITION_INVENTORY:
        inventory_id = data.get("inventory_id")
        if inventory_id in (None, "", "new"):
            new_item = data.get("new_item") or {}
            if not new_item.get("name"):
                raise ValueError("El material nuevo necesita un nombre")
            create_item(store, new_item)
            description = f"Compra de Material Nuevo: {new_item['name']}"
        else:
            quantity = float(data.get("quantity_to_add") or 0)
            description = restock(store, inventory_id, quantity)["description"]

    evidence_path = None
    if evidence is not None:
        evidence_path = upload_evidence(store, *evidence)

    source_tag = REINVESTMENT_TAG if data.get("capital_source") == "reinvestment" else INVESTMENT_TAG
    kind_tag = "Materiales" if acquisition_type == ACQUISITION_INVENTORY else "Activo Fijo"
    expense = store.insert(
        "expenses",
        [
            {
                "category": "materiales" if acquisition_type == ACQUISITION_INVENTORY else "inversion",
                "amount": amount,
                "description": description,
                "date": date.today(),
                "tags": [source_tag, kind_tag],
                "evidence_path": evidence_path,
                "user_id": user_id,
            }
        ],
    )[0]
    audit_service.log_audit_action(
        store, user_id, audit_service.CREATE_EXPENSE, "expenses", expense["id"],
        {"amount": amount, "category": expense["category"]},
    )
    logger.info("acquisition registered: %s %s (%s)", acquisition_type, amount, source_tag)
    return expense


def capital_summary(store: DataStore, history_limit: int = 10) -> Dict[str, Any]:
    expenses = capital_expenses(store)
    investment = sum((e.get("amount") or 0) for e in expenses if INVESTMENT_TAG in (e.get("tags") or []))
    reinvestment = sum((e.get("amount") or 0) for e in expenses if REINVESTMENT_TAG in (e.get("tags") or []))
    history = []
    for expense in expenses[:history_limit]:
        item = dict(expense)
        path = expense.get("evidence_path")
        item["evidence_url"] = store.get_public_url(EVIDENCE_BUCKET, path) if path else None
        history.append(item)
    return {
        "investment": investment,
        "reinvestment": reinvestment,
        "total": investment + reinvestment,
        "history": history,
    }


def monthly_growth(store: DataStore) -> List[Dict[str, Any]]:
    """Inversión vs reinversión por mes (YYYY-MM), en orden cronológico"""
    months: Dict[str, Dict[str, Any]] = {}
    for expense in capital_expenses(store):
        day = as_date(expense.get("date"))
        if day is None:
            continue
        key = day.strftime("%Y-%m")
        bucket = months.setdefault(key, {"month": key, "investment": 0.0, "reinvestment": 0.0})
        tags = expense.get("tags") or []
        if INVESTMENT_TAG in tags:
            bucket["investment"] += expense.get("amount") or 0
        elif REINVESTMENT_TAG in tags:
            bucket["reinvestment"] += expense.get("amount") or 0
    return [months[key] for key in sorted(months)]
