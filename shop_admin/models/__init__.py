# shop_admin/models/__init__.py
from .user import AdminUser
from .setting import Setting
from .category import Category
from .product import Product
from .order import Order
from .order_activity import OrderActivity

__all__ = [
    "AdminUser",
    "Setting",
    "Category",
    "Product",
    "Order",
    "OrderActivity",
]
