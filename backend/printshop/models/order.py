from datetime import datetime

from sqlalchemy import Column, Integer, String, Text, Numeric, Float, Date, DateTime, JSON, ForeignKey

from printshop.models.base import Base, new_id


class Order(Base):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=new_id)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    date = Column(Date, nullable=True, index=True)
    deadline = Column(Date, nullable=True)

    # pendiente, en_proceso, terminado, entregado, cancelado
    status = Column(String(20), nullable=False, default="pendiente", index=True)

    price = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)
    quantity = Column(Integer, nullable=True, default=1)
    cost = Column(Numeric(12, 2, asdecimal=False), nullable=False, default=0)  # engine estimate only
    suggested_price = Column(Numeric(12, 2, asdecimal=False), nullable=True)
    description = Column(Text, nullable=True)

    product_id = Column(String(36), ForeignKey("products.id", ondelete="SET NULL"), nullable=True, index=True)
    client_id = Column(String(36), ForeignKey("clients.id", ondelete="SET NULL"), nullable=True, index=True)
    custom_client_name = Column(String(255), nullable=True)
    inventory_id = Column(String(36), ForeignKey("inventory.id", ondelete="SET NULL"), nullable=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Technical snapshot frozen at creation
    quoted_grams = Column(Float, nullable=True)
    quoted_hours = Column(Float, nullable=True)
    quoted_mins = Column(Float, nullable=True)
    quoted_power_watts = Column(Float, nullable=True)
    quoted_material_price = Column(Float, nullable=True)
    quoted_op_multiplier = Column(Float, nullable=True)
    quoted_sales_multiplier = Column(Float, nullable=True)

    additional_costs = Column(JSON, nullable=False, default=list)  # [{description, amount}]
    inventory_items = Column(JSON, nullable=False, default=list)  # [{inventory_id, quantity, calculated_cost}]
    tags = Column(JSON, nullable=False, default=list)
