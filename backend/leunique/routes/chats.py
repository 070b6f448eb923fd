# Overview: Flask API routes for client chat threads.

from flask import Blueprint, request, g

from ..extensions import get_store
from ..models import Chat
from ..services import clients_service
from ..services.access import AccessDeniedError
from ..validation import ModelValidationPolicy, validate_payload, ValidationError
from ..decorators import require_auth

CHAT_POLICY = ModelValidationPolicy(
    writable_fields={"clientId", "message", "fromClient"},
    required_on_create={"clientId", "message"},
)

chats_bp = Blueprint("chats", __name__, url_prefix="/api/chats")


@chats_bp.get("/<int:client_id>")
@require_auth
def list_chats_route(client_id: int):
    try:
        result = clients_service.list_chats(get_store(), g.current_user, client_id)
    except AccessDeniedError as e:
        return {"error": str(e)}, 403

    if result is None:
        return {"error": "Client not found"}, 404
    return result, 200


@chats_bp.post("")
@require_auth
def create_chat_route():
    """fromClient defaults to false (message sent by the vendor)."""
    payload = request.get_json(silent=True) or {}

    try:
        patch = validate_payload(model=Chat, payload=payload, policy=CHAT_POLICY, partial=False)
        patch.setdefault("from_client", False)
        created = clients_service.create_chat(get_store(), g.current_user, patch)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except AccessDeniedError as e:
        return {"error": str(e)}, 403

    return created, 201
