# Overview: Service-layer operations for clients and their chat threads.

"""
Clients and Chats

OWNERSHIP:
- A vendor sees, edits and messages only the clients assigned to them
  (vendor_id == user.id). A client a vendor creates is assigned to them.
- Admins see every client and may assign or unassign one. The target must
  be an active vendor account.
- Vendors never change vendor_id, on create or on update.
"""

from __future__ import annotations

from ..models import User
from ..permissions import Capability, Role
from ..validation import ValidationError
from .access import AccessDeniedError, require_client_access
from .auth_service import has_capability


def _check_assignable_vendor(store, vendor_id: int | None) -> None:
    if vendor_id is None:
        return
    vendor = store.get_user(vendor_id)
    if vendor is None or vendor.role != Role.VENDOR or not vendor.active:
        raise ValidationError(f"vendorId {vendor_id} is not an active vendor")


def _resolve_vendor_id(store, user: User, patch: dict, *, creating: bool) -> dict:
    """Apply the vendor_id rules to patch for user. Returns the patch to store."""
    patch = dict(patch)
    if has_capability(user, Capability.ASSIGN_CLIENTS):
        if "vendor_id" in patch:
            _check_assignable_vendor(store, patch["vendor_id"])
        return patch

    if "vendor_id" in patch and patch["vendor_id"] != user.id:
        raise AccessDeniedError("Only an admin can assign clients to a vendor")
    patch.pop("vendor_id", None)
    if creating:
        patch["vendor_id"] = user.id
    return patch


def list_clients(store, user: User, vendor_id: int | None = None) -> dict:
    """Every client for admins (optionally one vendor's), own clients for vendors."""
    if not has_capability(user, Capability.VIEW_ALL_CLIENTS):
        vendor_id = user.id
    clients = store.list_clients(vendor_id=vendor_id)
    return {"clients": [c.to_dict() for c in clients], "count": len(clients)}


def get_client(store, user: User, client_id: int) -> dict | None:
    client = store.get_client(client_id)
    if client is None:
        return None
    require_client_access(user, client, "You do not have permission to view this client")
    return client.to_dict()


def create_client(store, user: User, patch: dict) -> dict:
    patch = _resolve_vendor_id(store, user, patch, creating=True)
    return store.create_client(patch).to_dict()


def update_client(store, user: User, client_id: int, patch: dict) -> dict | None:
    client = store.get_client(client_id)
    if client is None:
        return None
    require_client_access(user, client, "You do not have permission to modify this client")

    patch = _resolve_vendor_id(store, user, patch, creating=False)
    return store.update_client(client_id, patch).to_dict()


def list_chats(store, user: User, client_id: int) -> dict | None:
    """Chat thread for a client, oldest first. None if the client does not exist."""
    client = store.get_client(client_id)
    if client is None:
        return None
    require_client_access(user, client, "You do not have permission to view these chats")

    chats = store.list_chats(client_id)
    return {"chats": [c.to_dict() for c in chats], "count": len(chats)}


def create_chat(store, user: User, patch: dict) -> dict:
    client = store.get_client(patch["client_id"])
    if client is None:
        raise ValidationError(f"Client {patch['client_id']} not found")
    require_client_access(user, client, "You do not have permission to message this client")
    return store.create_chat(patch).to_dict()
