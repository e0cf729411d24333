from datetime import date, datetime

from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, Date, DateTime, ForeignKey

from printshop.models.base import Base, new_id


class Asset(Base):
    __tablename__ = "assets"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False)
    type = Column(String(50), nullable=False, default="Impresora")  # Impresora, Herramienta, Mobiliario, Insumo, Otro
    acquisition_date = Column(Date, nullable=False, default=date.today)
    acquisition_cost = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    current_value = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    description = Column(Text, nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
