# Overview: Flask API routes for clients; parses input and returns JSON responses.

from flask import Blueprint, request, g, current_app

from ..extensions import get_store
from ..models import Client
from ..services import clients_service
from ..services.access import AccessDeniedError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    enforce_rules_contact,
    ValidationError,
)
from ..decorators import require_auth

CLIENT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "phone", "email", "address", "vendorId"},
    required_on_create={"name", "phone"},
)

clients_bp = Blueprint("clients", __name__, url_prefix="/api/clients")


@clients_bp.get("")
@require_auth
def list_clients_route():
    """
    Vendors get their own clients. Admins get all of them.

    Query params:
    - vendor_id: int (optional, admins only)
    """
    vendor_id = request.args.get("vendor_id", type=int)
    return clients_service.list_clients(get_store(), g.current_user, vendor_id=vendor_id)


@clients_bp.get("/<int:client_id>")
@require_auth
def get_client_route(client_id: int):
    try:
        client = clients_service.get_client(get_store(), g.current_user, client_id)
    except AccessDeniedError as e:
        return {"error": str(e)}, 403

    if client is None:
        return {"error": "Client not found"}, 404
    return client, 200


@clients_bp.post("")
@require_auth
def create_client_route():
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=False)
        enforce_rules_contact(patch)
        created = clients_service.create_client(get_store(), g.current_user, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except AccessDeniedError as e:
        return {"error": str(e)}, 403
    except Exception:
        current_app.logger.exception("Failed to create client")
        return {"error": "Internal server error"}, 500

    return created, 201


@clients_bp.put("/<int:client_id>")
@require_auth
def update_client_route(client_id: int):
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Client, payload=payload, policy=CLIENT_POLICY, partial=True)
        enforce_rules_contact(patch)
        updated = clients_service.update_client(get_store(), g.current_user, client_id, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except AccessDeniedError as e:
        return {"error": str(e)}, 403

    if updated is None:
        return {"error": "Client not found"}, 404
    return updated, 200
