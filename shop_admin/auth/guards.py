# shop_admin/auth/guards.py
from functools import wraps

from flask_login import current_user, login_required
from werkzeug.exceptions import Forbidden

from shop_admin.models.user import ROLE_ADMIN


def admin_required(view):
    """login_required plus role check: representatives get 403."""

    @wraps(view)
    @login_required
    def wrapped(*args, **kwargs):
        if current_user.role != ROLE_ADMIN:
            raise Forbidden("This action requires the ADMIN role.")
        return view(*args, **kwargs)

    return wrapped


def current_actor():
    """The authenticated admin user behind the request (a real model instance)."""
    return current_user._get_current_object()
