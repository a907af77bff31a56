# shop_admin/auth/login_routes.py
from flask import Blueprint, jsonify
from flask_login import login_required

from shop_admin.api.utils.payload import get_payload, req_str
from shop_admin.auth.guards import current_actor
from shop_admin.services import users_service

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/login")
def login():
    """Exchange username/password for a bearer access token."""
    data = get_payload()
    username = req_str(data, "username")
    password = req_str(data, "password")
    return jsonify(users_service.login(username, password)), 200


@auth_bp.get("/me")
@login_required
def me():
    user = users_service.get_profile(current_actor().id)
    return jsonify(user.to_public_dict(with_timestamps=False)), 200
