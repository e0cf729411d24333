from datetime import datetime

from sqlalchemy import Column, String, Numeric, Float, DateTime

from printshop.models.base import Base, new_id


class InventoryItem(Base):
    __tablename__ = "inventory"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    type = Column(String(50), nullable=False, default="Filamento", index=True)  # Filamento, Resina, Repuesto, Otro
    color = Column(String(50), nullable=True)
    brand = Column(String(100), nullable=True)

    # Grams for weight-based items, unit count when measurement_unit == "units"
    stock_grams = Column(Float, nullable=False, default=0)
    measurement_unit = Column(String(20), nullable=False, default="grams")
    price_per_kg = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    price_per_unit = Column(Numeric(12, 2, asdecimal=False), nullable=True)

    status = Column(String(20), nullable=False, default="disponible")
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
