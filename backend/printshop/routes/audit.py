from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from printshop.core.database import get_db
from printshop.core.deps import get_store, require_admin
from printshop.core.store import SqlStore
from printshop.models.user import User
from printshop.services.audit_service import list_audit_logs


router = APIRouter()


@router.get("/")
def get_audit_logs(
    action: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    store: SqlStore = Depends(get_store),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    emails = {u.id: u.email for u in db.query(User).all()}
    logs = list_audit_logs(store, limit=limit, action=action)
    for log in logs:
        log["user_email"] = emails.get(log["user_id"])
    return logs
