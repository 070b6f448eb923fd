# backend/leunique/services/products_service.py
"""
Products Service

Products are never physically deleted; "delete" deactivates so historical
order items keep pointing at a real product. Inactive products are hidden
from listings unless an admin asks for them.
"""
from __future__ import annotations

from ..validation import ValidationError

PRODUCT_REQUIRED_FIELDS = ("name", "description", "price", "category", "unit_size")


def list_products(store, include_inactive: bool = False, category: str | None = None) -> dict:
    products = store.list_products(include_inactive=include_inactive)
    if category:
        wanted = category.strip().lower()
        products = [p for p in products if p.category.lower() == wanted]
    return {
        "products": [p.to_dict() for p in products],
        "count": len(products),
    }


def get_product(store, product_id: int, include_inactive: bool = False) -> dict | None:
    product = store.get_product(product_id)
    if product is None or (not product.active and not include_inactive):
        return None
    return product.to_dict()


def create_product(store, patch: dict) -> dict:
    """Create product using a validated patch dict."""
    missing = [name for name in PRODUCT_REQUIRED_FIELDS if patch.get(name) is None]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return store.create_product(patch).to_dict()


def update_product(store, product_id: int, patch: dict) -> dict | None:
    product = store.update_product(product_id, patch)
    return product.to_dict() if product else None


def deactivate_product(store, product_id: int) -> dict | None:
    product = store.deactivate_product(product_id)
    return product.to_dict() if product else None
