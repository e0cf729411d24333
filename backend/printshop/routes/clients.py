from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from printshop.core.deps import get_current_user, get_store
from printshop.core.store import SqlStore
from printshop.models.user import User
from printshop.services import audit_service
from printshop.services import client_service


router = APIRouter()


class ClientBase(BaseModel):
    full_name: str
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


class ClientUpdate(BaseModel):
    full_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None


class RescueRequest(BaseModel):
    name: str


@router.get("/")
def list_clients(
    search: Optional[str] = Query(None),
    store: SqlStore = Depends(get_store),
):
    clients = store.query("clients", order_by="full_name")
    if search:
        needle = search.strip().lower()
        clients = [
            c for c in clients
            if needle in (c["full_name"] or "").lower() or needle in (c.get("phone") or "")
        ]
    return clients


@router.post("/")
def create_client(data: ClientBase, store: SqlStore = Depends(get_store)):
    try:
        return client_service.create_client(store, data.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/{client_id}")
def update_client(client_id: str, data: ClientUpdate, store: SqlStore = Depends(get_store)):
    return client_service.update_client(store, client_id, data.model_dump(exclude_unset=True))


@router.delete("/{client_id}")
def delete_client(
    client_id: str,
    store: SqlStore = Depends(get_store),
    user: User = Depends(get_current_user),
):
    store.delete("clients", {"id": client_id})
    if store.query("clients", {"id": client_id}):
        raise HTTPException(status_code=403, detail="No se eliminó el cliente (sin permisos)")
    audit_service.log_audit_action(store, user.id, audit_service.delete_action("clients"), "clients", client_id)
    return {"deleted": client_id}


@router.get("/orphaned", response_model=List[str])
def orphaned_names(store: SqlStore = Depends(get_store)):
    return client_service.find_orphaned_names(store)


@router.post("/rescue")
def rescue_client(data: RescueRequest, store: SqlStore = Depends(get_store)):
    try:
        result = client_service.rescue_client(store, data.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    result["message"] = f'Cliente "{result["client"]["full_name"]}" rescatado y pedidos vinculados'
    return result


@router.get("/{client_id}/history")
def client_history(client_id: str, store: SqlStore = Depends(get_store)):
    if not store.query("clients", {"id": client_id}):
        raise HTTPException(status_code=404, detail="Cliente no encontrado")
    return client_service.client_history(store, client_id)
