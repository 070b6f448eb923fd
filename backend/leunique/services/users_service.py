# Overview: Service-layer operations for dashboard users and vendors.

"""
User administration.

Listing is admin-level. Creating, editing and deleting accounts is
super-admin-level (enforced by the routes). Two guards live here because
they depend on who is acting:
- a super admin cannot delete their own account,
- a super admin cannot demote or deactivate their own account.
Either would leave the dashboard without anyone able to undo it.
"""

from __future__ import annotations

import logging

from ..models import User
from ..permissions import Role
from ..validation import ConflictError
from .auth_service import register_user, validate_password_strength

logger = logging.getLogger(__name__)


def list_users(store, role: Role | None = None) -> dict:
    users = store.list_users(role=role)
    return {"users": [u.to_dict() for u in users], "count": len(users)}


def list_vendors(store) -> dict:
    """Active vendor accounts, for client assignment dropdowns."""
    vendors = store.list_users(role=Role.VENDOR, active_only=True)
    return {
        "vendors": [{"id": v.id, "name": v.name, "username": v.username} for v in vendors],
        "count": len(vendors),
    }


def create_user(store, patch: dict, *, acting_user: User, min_password_length: int) -> dict:
    user = register_user(store, patch, acting_user=acting_user, min_password_length=min_password_length)
    logger.info("User %s created %s account %r (id=%s)", acting_user.id, user.role.value, user.username, user.id)
    return user.to_dict()


def update_user(
    store,
    sessions,
    user_id: int,
    patch: dict,
    *,
    acting_user: User,
    password: str | None = None,
    min_password_length: int = 6,
) -> dict | None:
    """
    Edit a user. password, when given, is validated and re-hashed.

    Deactivation or a password change signs the user out everywhere.
    Returns None if the user does not exist.
    """
    target = store.get_user(user_id)
    if target is None:
        return None

    if user_id == acting_user.id:
        new_role = patch.get("role")
        if new_role is not None and not new_role.at_least(acting_user.role):
            raise ConflictError("You cannot lower your own role")
        if patch.get("active") is False:
            raise ConflictError("You cannot deactivate your own account")

    if password is not None:
        validate_password_strength(password, min_password_length)

    updated = store.update_user(user_id, patch) if patch else target
    if password is not None:
        updated = store.set_user_password(user_id, password)

    if password is not None or patch.get("active") is False:
        revoked = sessions.revoke_all_user_sessions(user_id)
        if revoked:
            logger.info("Revoked %s session(s) for user %s", revoked, user_id)

    return updated.to_dict()


def delete_user(store, sessions, user_id: int, *, acting_user: User) -> bool:
    """
    Remove a user account.

    Raises ConflictError for self-deletion or when orders reference the user.
    """
    if user_id == acting_user.id:
        raise ConflictError("You cannot delete your own account")

    deleted = store.delete_user(user_id)
    if deleted:
        sessions.revoke_all_user_sessions(user_id)
        logger.info("User %s deleted user %s", acting_user.id, user_id)
    return deleted
