from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from datetime import datetime

from printshop.models.base import Base


class OrderStatusHistory(Base):
    __tablename__ = "order_status_history"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    # Información del cambio
    old_status = Column(String(20), nullable=True)  # null para creación
    new_status = Column(String(20), nullable=False)

    # Guardamos el email por si el usuario se elimina
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    user_email = Column(String(255), nullable=True)

    notes = Column(String(500), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
