from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, JSON, ForeignKey

from printshop.models.base import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    action = Column(String(50), nullable=False, index=True)  # CREATE_ORDER, DELETE_EXPENSE, ...
    table_name = Column(String(50), nullable=False)
    record_id = Column(String(36), nullable=True)
    details = Column(JSON, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
