from flask import Blueprint, jsonify, request
from flask_login import login_required

from shop_admin.api.utils.payload import get_payload, path_uuid
from shop_admin.auth.guards import current_actor
from shop_admin.services import orders_service

admin_orders_bp = Blueprint("admin_orders", __name__, url_prefix="/api/orders")
shop_orders_bp = Blueprint("shop_orders", __name__, url_prefix="/api/shop/orders")


# ─── Storefront ──────────────────────────────────────────────────────────────

@shop_orders_bp.post("")
def create_shop_order():
    dto = orders_service.parse_shop_order_payload(get_payload())
    order = orders_service.create_from_website(dto)
    return jsonify(order.to_dict()), 201


@shop_orders_bp.get("/<string:order_number>")
def get_shop_order(order_number: str):
    order = orders_service.get_by_number(order_number)
    return jsonify(order.to_dict()), 200


# ─── Admin ───────────────────────────────────────────────────────────────────

@admin_orders_bp.get("")
@login_required
def list_orders():
    filters = orders_service.parse_order_filters(request.args)
    orders = orders_service.list_orders(filters, current_actor())
    return jsonify([o.to_dict() for o in orders]), 200


@admin_orders_bp.get("/summary")
@login_required
def orders_summary():
    return jsonify(orders_service.get_summary(current_actor())), 200


@admin_orders_bp.get("/<order_id>")
@login_required
def get_order(order_id):
    order = orders_service.get_order(path_uuid(order_id), current_actor())
    return jsonify(order.to_dict()), 200


@admin_orders_bp.get("/<order_id>/activities")
@login_required
def order_activities(order_id):
    activities = orders_service.list_activities(path_uuid(order_id), current_actor())
    return jsonify([a.to_dict() for a in activities]), 200


@admin_orders_bp.patch("/<order_id>")
@login_required
def update_order(order_id):
    dto = orders_service.parse_update_order_payload(get_payload())
    order = orders_service.update_order(path_uuid(order_id), dto, current_actor())
    return jsonify(order.to_dict()), 200
