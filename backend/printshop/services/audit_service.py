"""
Registro de auditoría. Nunca bloquea la acción principal: los errores se
registran en el log y se descartan.
"""
import logging
from typing import Any, Dict, List, Optional

from printshop.core.store import DataStore

logger = logging.getLogger(__name__)

CREATE_ORDER = "CREATE_ORDER"
CREATE_INCOME = "CREATE_INCOME"
CREATE_EXPENSE = "CREATE_EXPENSE"
UPDATE_ORDER_STATUS = "UPDATE_ORDER_STATUS"


def delete_action(table: str) -> str:
    return f"DELETE_{table.rstrip('s').upper()}"


def log_audit_action(
    store: DataStore,
    user_id: Optional[int],
    action: str,
    table_name: str,
    record_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
) -> None:
    if user_id is None:
        return
    try:
        store.insert(
            "audit_logs",
            [
                {
                    "user_id": user_id,
                    "action": action,
                    "table_name": table_name,
                    "record_id": record_id,
                    "details": details,
                }
            ],
        )
    except Exception:
        logger.exception("Error logging audit action %s on %s", action, table_name)


def list_audit_logs(store: DataStore, limit: int = 100, action: Optional[str] = None) -> List[Dict[str, Any]]:
    filters = {"action": action} if action else None
    return store.query("audit_logs", filters, order_by="created_at", descending=True, limit=limit)
