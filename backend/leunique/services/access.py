# Overview: Ownership rules that a role check alone cannot express.

"""
Record-level access.

Admins (VIEW_ALL_CLIENTS / VIEW_ALL_ORDERS) see everything. A vendor sees
only clients whose vendorId is their own id, those clients' chats, and the
orders they created.
"""

from ..permissions import Capability, role_has_capability


class AccessDeniedError(Exception):
    """Raised when the user may not touch the requested record (403)."""
    pass


def _can(user, capability: str) -> bool:
    return user is not None and role_has_capability(user.role, capability)


def can_access_client(user, client) -> bool:
    if user is None or client is None:
        return False
    return _can(user, Capability.VIEW_ALL_CLIENTS) or client.vendor_id == user.id


def can_access_order(user, order) -> bool:
    if user is None or order is None:
        return False
    return _can(user, Capability.VIEW_ALL_ORDERS) or order.vendor_id == user.id


def require_client_access(user, client, message: str = "You do not have access to this client") -> None:
    if not can_access_client(user, client):
        raise AccessDeniedError(message)


def require_order_access(user, order) -> None:
    if not can_access_order(user, order):
        raise AccessDeniedError("You do not have access to this order")
