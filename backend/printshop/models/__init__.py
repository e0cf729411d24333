from .base import Base
from .user import User
from .client import Client
from .product import Product
from .inventory_item import InventoryItem
from .order import Order
from .expense import Expense
from .asset import Asset
from .tag import Tag
from .audit_log import AuditLog
from .status_history import OrderStatusHistory
from .app_setting import AppSetting

__all__ = [
    "Base",
    "User",
    "Client",
    "Product",
    "InventoryItem",
    "Order",
    "Expense",
    "Asset",
    "Tag",
    "AuditLog",
    "OrderStatusHistory",
    "AppSetting",
]
