# backend/leunique/services/orders_service.py
"""
Orders Service

Order lifecycle: PENDING -> PROCESSING -> DELIVERED, with CANCELED reachable
from PENDING and PROCESSING. Cancelling puts the items back into stock.

WHY: If stock were read, compared and decremented in separate steps, two
orders for the last units could both pass the check. create_order() hands
the whole order to the store, which checks every line and decrements all
stock under one lock with a single snapshot write.

ACCESS:
- vendor_id is always the acting user. Vendors may only order for their own
  clients; admins may order for any client.
- Vendors see their own orders. Admins see all orders, with vendorName.
"""
from __future__ import annotations

from ..models import Order, OrderStatus, User
from ..permissions import Capability
from ..validation import ValidationError
from .access import require_client_access, require_order_access
from .auth_service import has_capability


def _order_to_dict(order: Order, clients: dict, vendors: dict | None = None) -> dict:
    data = order.to_dict()
    client = clients.get(order.client_id)
    data["clientName"] = client.name if client else None
    if vendors is not None:
        vendor = vendors.get(order.vendor_id)
        data["vendorName"] = vendor.name if vendor else None
    return data


def list_orders(store, user: User, status: OrderStatus | None = None) -> dict:
    see_all = has_capability(user, Capability.VIEW_ALL_ORDERS)
    orders = store.list_orders(vendor_id=None if see_all else user.id, status=status)

    clients = {c.id: c for c in store.list_clients()}
    vendors = {u.id: u for u in store.list_users()} if see_all else None

    return {
        "orders": [_order_to_dict(o, clients, vendors) for o in orders],
        "count": len(orders),
    }


def get_order_detail(store, user: User, order_id: int) -> dict | None:
    """
    Order plus its lines, subtotal and tax.

    tax is derived as total - subtotal so it always matches the total fixed
    at creation, whatever the configured rate is today.
    """
    order = store.get_order(order_id)
    if order is None:
        return None
    require_order_access(user, order)

    items = []
    subtotal = 0
    for item in store.list_order_items(order_id):
        product = store.get_product(item.product_id)
        line = item.to_dict()
        line["productName"] = product.name if product else None
        line["lineTotal"] = item.line_total
        subtotal += item.line_total
        items.append(line)

    client = store.get_client(order.client_id)
    vendor = store.get_user(order.vendor_id)

    data = order.to_dict()
    data.update({
        "clientName": client.name if client else None,
        "vendorName": vendor.name if vendor else None,
        "items": items,
        "subtotal": subtotal,
        "tax": order.total_amount - subtotal,
    })
    return data


def create_order(
    store,
    user: User,
    client_id: int,
    items: list[tuple[int, int]],
    tax_rate_bps: int,
) -> dict:
    """
    Create an order for client_id from (product_id, quantity) lines.

    Raises:
        ValidationError: client missing, product missing or inactive
        AccessDeniedError: vendor ordering for someone else's client
        InsufficientStockError: a line exceeds remaining stock
    """
    client = store.get_client(client_id)
    if client is None:
        raise ValidationError(f"Client {client_id} not found")
    require_client_access(user, client, "You do not have permission to create orders for this client")

    order = store.create_order_with_items(
        {"client_id": client_id, "vendor_id": user.id},
        items,
        tax_rate_bps=tax_rate_bps,
    )
    return get_order_detail(store, user, order.id)


def change_order_status(store, order_id: int, status: OrderStatus) -> dict | None:
    """Raises ConflictError for a transition the state machine forbids."""
    order = store.set_order_status(order_id, status)
    return order.to_dict() if order else None
