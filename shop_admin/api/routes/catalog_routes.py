from flask import Blueprint, jsonify
from flask_login import login_required

from shop_admin.api.utils.payload import get_payload, path_uuid
from shop_admin.services import catalog_service

catalog_bp = Blueprint("catalog", __name__, url_prefix="/api/catalog")


# ─── Storefront (public) ─────────────────────────────────────────────────────

@catalog_bp.get("/public/categories")
def public_categories():
    cats = catalog_service.list_public_categories()
    return jsonify([c.to_dict() for c in cats]), 200


@catalog_bp.get("/public/products")
def public_products():
    products = catalog_service.list_public_products()
    return jsonify([pr.to_dict() for pr in products]), 200


# ─── Categories ──────────────────────────────────────────────────────────────

@catalog_bp.get("/categories")
@login_required
def list_categories():
    cats = catalog_service.list_categories()
    return jsonify([c.to_dict(with_products=True) for c in cats]), 200


@catalog_bp.post("/categories")
@login_required
def create_category():
    dto = catalog_service.parse_category_payload(get_payload())
    category = catalog_service.create_category(dto)
    return jsonify(category.to_dict()), 201


@catalog_bp.patch("/categories/<category_id>")
@login_required
def update_category(category_id):
    dto = catalog_service.parse_category_payload(get_payload(), partial=True)
    category = catalog_service.update_category(path_uuid(category_id), dto)
    return jsonify(category.to_dict()), 200


# ─── Products ────────────────────────────────────────────────────────────────

@catalog_bp.get("/products")
@login_required
def list_products():
    products = catalog_service.list_products()
    return jsonify([pr.to_dict() for pr in products]), 200


@catalog_bp.post("/products")
@login_required
def create_product():
    dto = catalog_service.parse_product_payload(get_payload())
    product = catalog_service.create_product(dto)
    return jsonify(product.to_dict()), 201


@catalog_bp.patch("/products/<product_id>")
@login_required
def update_product(product_id):
    dto = catalog_service.parse_product_payload(get_payload(), partial=True)
    product = catalog_service.update_product(path_uuid(product_id), dto)
    return jsonify(product.to_dict()), 200
