# Overview: Flask API routes for products operations; parses input and returns JSON responses.

# backend/leunique/routes/products.py
"""
Product catalog routes.

SECURITY: All routes require authentication.
- Read operations are open to every signed-in user; only admins may ask for
  inactive products (include_inactive=true)
- Write operations require admin
- DELETE deactivates; products are never removed
"""
from flask import Blueprint, request, g
from ..extensions import get_store
from ..models import Product
from ..services import products_service
from ..services.auth_service import is_admin
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_product,
    ValidationError,
)
from ..decorators import require_auth, require_admin

PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name", "description", "price", "category", "imageUrl",
        "isVegetarian", "isFeatured", "active", "unitSize", "stock",
    },
    required_on_create={"name", "description", "price", "category", "unitSize"},
)

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _include_inactive() -> bool:
    requested = request.args.get("include_inactive", "").strip().lower() in {"1", "true", "yes"}
    return requested and is_admin(g.current_user)


@products_bp.get("")
@require_auth
def list_products_route():
    """
    Query params:
    - include_inactive: bool (admins only; ignored for vendors)
    - category: str (optional)
    """
    return products_service.list_products(
        get_store(),
        include_inactive=_include_inactive(),
        category=request.args.get("category"),
    )


@products_bp.get("/<int:product_id>")
@require_auth
def get_product_route(product_id: int):
    product = products_service.get_product(get_store(), product_id, include_inactive=is_admin(g.current_user))
    if product is None:
        return {"error": "Product not found"}, 404
    return product, 200


@products_bp.post("")
@require_admin
def create_product_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
        enforce_rules_product(patch)
        created = products_service.create_product(get_store(), patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    return created, 201


@products_bp.put("/<int:product_id>")
@require_admin
def update_product_route(product_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
        enforce_rules_product(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    updated = products_service.update_product(get_store(), product_id, patch)
    if not updated:
        return {"error": "Product not found"}, 404

    return updated, 200


@products_bp.delete("/<int:product_id>")
@require_admin
def delete_product_route(product_id: int):
    """Soft delete: the product is deactivated and hidden from listings."""
    deactivated = products_service.deactivate_product(get_store(), product_id)
    if not deactivated:
        return {"error": "Product not found"}, 404

    return {"ok": True, "product": deactivated}, 200
