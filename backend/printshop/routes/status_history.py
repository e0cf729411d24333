from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import List, Optional

from printshop.core.deps import get_store
from printshop.core.store import SqlStore

router = APIRouter()


class StatusHistoryResponse(BaseModel):
    id: int
    order_id: str
    old_status: Optional[str]
    new_status: str
    user_email: Optional[str]
    notes: Optional[str]
    created_at: str

    class Config:
        from_attributes = True


@router.get("/{order_id}", response_model=List[StatusHistoryResponse])
def get_status_history(order_id: str, store: SqlStore = Depends(get_store)):
    """Get status history for an order"""
    if not store.query("orders", {"id": order_id}):
        raise HTTPException(status_code=404, detail="Pedido no encontrado")

    history = store.query("order_status_history", {"order_id": order_id}, order_by="created_at", descending=True)

    return [
        {
            "id": h["id"],
            "order_id": h["order_id"],
            "old_status": h["old_status"],
            "new_status": h["new_status"],
            "user_email": h["user_email"],
            "notes": h["notes"],
            "created_at": h["created_at"].isoformat()
        }
        for h in history
    ]
