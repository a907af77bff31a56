from flask import Blueprint, jsonify
from flask_login import login_required

from shop_admin.api.utils.payload import get_payload
from shop_admin.services import settings_service

settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("")
@login_required
def get_settings():
    return jsonify(settings_service.get_all()), 200


@settings_bp.get("/public")
def get_public_settings():
    return jsonify(settings_service.get_public()), 200


@settings_bp.put("")
@login_required
def update_settings():
    dto = settings_service.parse_settings_payload(get_payload())
    return jsonify(settings_service.update(dto)), 200
