from flask import Blueprint, jsonify
from flask_login import login_required

from shop_admin.api.utils.payload import get_payload, path_uuid
from shop_admin.auth.guards import admin_required
from shop_admin.services import users_service

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("/representatives")
@login_required
def list_representatives():
    reps = users_service.list_representatives()
    return jsonify([r.to_public_dict() for r in reps]), 200


@users_bp.post("/representatives")
@admin_required
def create_representative():
    dto = users_service.parse_representative_payload(get_payload())
    rep = users_service.create_representative(dto)
    return jsonify(rep.to_public_dict()), 201


@users_bp.patch("/representatives/<user_id>")
@admin_required
def update_representative(user_id):
    dto = users_service.parse_representative_payload(get_payload(), partial=True)
    rep = users_service.update_representative(path_uuid(user_id), dto)
    return jsonify(rep.to_public_dict()), 200
