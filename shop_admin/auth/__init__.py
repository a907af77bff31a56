# shop_admin/auth/__init__.py
from .login_routes import auth_bp

__all__ = ["auth_bp"]
