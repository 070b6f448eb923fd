# Overview: Flask API routes for orders operations; parses input and returns JSON responses.

# backend/leunique/routes/orders.py
"""
Order routes.

SECURITY:
- Listing, viewing and creating orders requires authentication; vendors are
  limited to their own orders and their own clients
- Changing an order's status requires admin

Order body:
    {"clientId": 3, "items": [{"productId": 1, "quantity": 2}, ...]}

Prices and totals are computed server-side; any price in the body is ignored.
"""
from flask import Blueprint, request, g, current_app

from ..extensions import get_store
from ..models import Order, OrderStatus
from ..services import orders_service
from ..services.access import AccessDeniedError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    parse_order_lines,
    coerce_int,
    ValidationError,
    ConflictError,
    InsufficientStockError,
)
from ..decorators import require_auth, require_admin

ORDER_STATUS_POLICY = ModelValidationPolicy(
    writable_fields={"status"},
    required_on_create={"status"},
)

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.get("")
@require_auth
def list_orders_route():
    """
    Query params:
    - status: pending | processing | delivered | canceled (optional)
    """
    status = request.args.get("status")
    try:
        status = OrderStatus(status.strip().lower()) if status else None
    except ValueError:
        return {"error": "status must be one of: pending, processing, delivered, canceled"}, 400

    return orders_service.list_orders(get_store(), g.current_user, status=status)


@orders_bp.get("/<int:order_id>")
@require_auth
def get_order_route(order_id: int):
    try:
        order = orders_service.get_order_detail(get_store(), g.current_user, order_id)
    except AccessDeniedError as e:
        return {"error": str(e)}, 403

    if order is None:
        return {"error": "Order not found"}, 404
    return order, 200


@orders_bp.post("")
@require_auth
def create_order_route():
    payload = request.get_json(silent=True) or {}
    if not isinstance(payload, dict):
        return {"error": "Invalid JSON payload"}, 400

    try:
        client_id = coerce_int("clientId", payload.get("clientId"))
        items = parse_order_lines(payload.get("items"))
        created = orders_service.create_order(
            get_store(),
            g.current_user,
            client_id,
            items,
            tax_rate_bps=current_app.config["TAX_RATE_BPS"],
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except AccessDeniedError as e:
        return {"error": str(e)}, 403
    except InsufficientStockError as e:
        return {
            "error": str(e),
            "productId": e.product_id,
            "available": e.available,
            "requested": e.requested,
        }, 409
    except Exception:
        current_app.logger.exception("Failed to create order")
        return {"error": "Internal server error"}, 500

    current_app.logger.info(
        "User %s created order %s (total=%s)", g.current_user.id, created["id"], created["totalAmount"]
    )
    return created, 201


@orders_bp.put("/<int:order_id>")
@require_admin
def update_order_route(order_id: int):
    """Only status changes after creation. Cancelling restocks the items."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Order, payload=payload, policy=ORDER_STATUS_POLICY, partial=False)
        updated = orders_service.change_order_status(get_store(), order_id, patch["status"])
    except ValidationError as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    if updated is None:
        return {"error": "Order not found"}, 404
    return updated, 200
