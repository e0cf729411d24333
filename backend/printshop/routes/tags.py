from typing import List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from printshop.core.deps import get_store
from printshop.core.notifications import Notifier
from printshop.core.store import SqlStore
from printshop.services import tag_service


router = APIRouter()


class TagCreate(BaseModel):
    name: str


class TagRename(BaseModel):
    old_tag: str
    new_tag: str


@router.get("/")
def list_tags(store: SqlStore = Depends(get_store)):
    return tag_service.list_tags(store)


@router.get("/unique", response_model=List[str])
def unique_tags(store: SqlStore = Depends(get_store)):
    return tag_service.unique_tags(store)


@router.post("/")
def create_tag(data: TagCreate, store: SqlStore = Depends(get_store)):
    try:
        return tag_service.create_tag(store, data.name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.delete("/{tag_id}")
def delete_tag(tag_id: str, store: SqlStore = Depends(get_store)):
    tag_service.delete_tag(store, tag_id)
    if store.query("tags", {"id": tag_id}):
        raise HTTPException(status_code=403, detail="No se eliminó la etiqueta (sin permisos)")
    return {"deleted": tag_id}


@router.post("/rename")
def rename_tag(data: TagRename, store: SqlStore = Depends(get_store)):
    notifier = Notifier()
    try:
        ok = tag_service.rename_tag(store, data.old_tag, data.new_tag, notifier)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": ok, "notifications": notifier.to_list()}
