from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, UniqueConstraint

from printshop.models.base import Base


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    role = Column(String(50), nullable=False, default="operador")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
