from datetime import datetime

from sqlalchemy import Column, String, Text, Numeric, Float, Boolean, DateTime, JSON

from printshop.models.base import Base, new_id


class Product(Base):
    __tablename__ = "products"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    base_price = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    weight_grams = Column(Float, nullable=False, default=0)
    print_time_mins = Column(Float, nullable=True)
    estimated_hours = Column(Float, nullable=True)
    estimated_mins = Column(Float, nullable=True)

    # Defaults copied into new orders, then mutable per order
    additional_costs = Column(JSON, nullable=False, default=list)
    inventory_items = Column(JSON, nullable=False, default=list)

    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
