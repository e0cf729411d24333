from datetime import date, datetime

from sqlalchemy import Column, Integer, String, Text, Numeric, Date, DateTime, JSON, ForeignKey

from printshop.models.base import Base, new_id


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String(36), primary_key=True, default=new_id)
    category = Column(String(100), nullable=True, index=True)  # materiales, inversion, retiro, ...
    amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    description = Column(Text, nullable=True)
    date = Column(Date, nullable=False, default=date.today, index=True)
    tags = Column(JSON, nullable=False, default=list)
    evidence_path = Column(String(500), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
