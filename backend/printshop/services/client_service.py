from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from printshop.core.store import DataStore, StoreError
from printshop.services.analytics_service import client_stats

logger = logging.getLogger(__name__)


def _normalize_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def client_history(store: DataStore, client_id: str) -> Dict[str, Any]:
    orders = store.query("orders", {"client_id": client_id}, order_by="created_at", descending=True)
    return {"orders": orders, "stats": client_stats(orders)}


def find_orphaned_names(store: DataStore) -> List[str]:
    """
    Nombres libres en pedidos sin cliente que aún no existen como cliente.
    Comparación sin distinguir mayúsculas ni espacios extremos.
    """
    orders = store.query("orders", {"client_id": None, "custom_client_name__ne": None})
    names: List[str] = []
    seen = set()
    for order in orders:
        name = _normalize_text(order.get("custom_client_name"))
        if name and name.lower() not in seen:
            seen.add(name.lower())
            names.append(name)

    existing = {
        (_normalize_text(c.get("full_name")) or "").lower()
        for c in store.query("clients")
    }
    return [name for name in names if name.lower() not in existing]


def rescue_client(store: DataStore, name: str) -> Dict[str, Any]:
    """
    Crea el cliente y vincula los pedidos que tenían ese nombre libre.

    Raises:
        ValueError: nombre vacío
        StoreError: fallo al crear el cliente o al vincular pedidos
    """
    normalized = _normalize_text(name)
    if not normalized:
        raise ValueError("El nombre del cliente es obligatorio")

    key = normalized.lower()
    candidates = store.query("orders", {"client_id": None, "custom_client_name__ne": None})
    order_ids = [
        o["id"] for o in candidates
        if (_normalize_text(o["custom_client_name"]) or "").lower() == key
    ]

    client = store.insert("clients", [{"full_name": normalized}])[0]
    linked = []
    if order_ids:
        linked = store.update(
            "orders",
            {"client_id": client["id"], "custom_client_name": None},
            {"id": order_ids},
        )
    logger.info("rescued client %r, linked %d orders", normalized, len(linked))
    return {"client": client, "linked_orders": len(linked)}


def create_client(store: DataStore, data: Dict[str, Any]) -> Dict[str, Any]:
    full_name = _normalize_text(data.get("full_name"))
    if not full_name:
        raise ValueError("El nombre del cliente es obligatorio")
    payload = {
        "full_name": full_name,
        "phone": _normalize_text(data.get("phone")),
        "email": _normalize_text(data.get("email")),
        "notes": data.get("notes"),
    }
    return store.insert("clients", [payload])[0]


def update_client(store: DataStore, client_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
    patch = {k: (_normalize_text(v) if isinstance(v, str) and k != "notes" else v) for k, v in data.items()}
    rows = store.update("clients", patch, {"id": client_id})
    if not rows:
        raise StoreError("El cliente no fue actualizado (0 filas afectadas)", "clients")
    return rows[0]
