# Overview: Flask API routes for user administration; parses input and returns JSON responses.

# backend/leunique/routes/users.py
"""
User management routes.

SECURITY:
- Listing users requires admin
- Creating, editing and deleting users requires super admin
- The vendor list (id and name only) is open to any signed-in user so
  client forms can offer it
"""
from flask import Blueprint, request, g, current_app

from ..extensions import get_store, get_sessions
from ..models import User
from ..permissions import parse_role
from ..services import users_service
from ..services.access import AccessDeniedError
from ..services.auth_service import PasswordValidationError
from ..validation import (
    ModelValidationPolicy,
    validate_payload,
    ValidationError,
    ConflictError,
)
from ..decorators import require_auth, require_admin, require_super_admin

USER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "name", "role", "active"},
    required_on_create={"username"},
)

users_bp = Blueprint("users", __name__, url_prefix="/api/users")


def _split_password(payload) -> tuple[dict, object]:
    """Passwords skip generic string normalization (no stripping)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    payload = dict(payload)
    password = payload.pop("password", None)
    if password is not None and not isinstance(password, str):
        raise ValidationError("password must be a string")
    return payload, password


@users_bp.get("")
@require_admin
def list_users_route():
    """
    Query params:
    - role: vendor | admin | super_admin (optional)
    """
    role = request.args.get("role")
    try:
        role = parse_role(role) if role else None
    except ValueError:
        return {"error": "role must be one of: vendor, admin, super_admin"}, 400

    return users_service.list_users(get_store(), role=role)


@users_bp.get("/vendors")
@require_auth
def list_vendors_route():
    return users_service.list_vendors(get_store())


@users_bp.post("")
@require_super_admin
def create_user_route():
    try:
        payload, password = _split_password(request.get_json(silent=True) or {})
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=False)
        patch["password"] = password
        created = users_service.create_user(
            get_store(),
            patch,
            acting_user=g.current_user,
            min_password_length=current_app.config["PASSWORD_MIN_LENGTH"],
        )
    except (ValidationError, PasswordValidationError) as e:
        return {"error": str(e)}, 400
    except AccessDeniedError as e:
        return {"error": str(e)}, 403
    except ConflictError as e:
        return {"error": str(e)}, 409

    return created, 201


@users_bp.put("/<int:user_id>")
@require_super_admin
def update_user_route(user_id: int):
    """Partial update. A password change or deactivation ends the user's sessions."""
    try:
        payload, password = _split_password(request.get_json(silent=True) or {})
        patch = validate_payload(model=User, payload=payload, policy=USER_POLICY, partial=True)
        updated = users_service.update_user(
            get_store(),
            get_sessions(),
            user_id,
            patch,
            acting_user=g.current_user,
            password=password,
            min_password_length=current_app.config["PASSWORD_MIN_LENGTH"],
        )
    except (ValidationError, PasswordValidationError) as e:
        return {"error": str(e)}, 400
    except ConflictError as e:
        return {"error": str(e)}, 409

    if updated is None:
        return {"error": "User not found"}, 404

    return updated, 200


@users_bp.delete("/<int:user_id>")
@require_super_admin
def delete_user_route(user_id: int):
    try:
        deleted = users_service.delete_user(get_store(), get_sessions(), user_id, acting_user=g.current_user)
    except ConflictError as e:
        return {"error": str(e)}, 409

    if not deleted:
        return {"error": "User not found"}, 404

    return {"ok": True, "message": "User deleted"}, 200
