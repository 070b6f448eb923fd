# Overview: Service-layer operations for auth; login, logout, registration and role predicates.

"""
Authentication Gateway

WHY: Every dashboard request is attributed to a user. This module is the
only place that turns credentials into a session and a session into a user,
and the only place that answers "may this user do admin things?".

Session states: Anonymous -> Authenticating -> Authenticated -> Anonymous
(logout), or Anonymous -> Authenticating -> Anonymous (failed login).

SECURITY NOTES:
- Failed logins carry a distinct internal reason (NOT_FOUND,
  BAD_CREDENTIALS, INACTIVE). Routes log it and decide what to disclose.
- Unknown usernames still pay for one scrypt derivation so response timing
  does not reveal which usernames exist.
- Registration never creates a session; the dashboard registers vendors on
  someone else's behalf.
- Users leave this module as public dicts (no password field).
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from ..models import User
from ..permissions import Capability, Role, parse_role, role_has_capability
from ..validation import ConflictError, ValidationError
from .access import AccessDeniedError
from .password_service import hash_password, verify_password
from .session_service import SessionRecord


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class LoginFailureReason(str, Enum):
    NOT_FOUND = "not_found"
    BAD_CREDENTIALS = "bad_credentials"
    INACTIVE = "inactive"


class AuthenticationError(Exception):
    """Login rejected. reason says which check failed."""

    def __init__(self, reason: LoginFailureReason):
        self.reason = reason
        super().__init__(reason.value)


@dataclass
class LoginResult:
    user: dict
    token: str
    session: SessionRecord


@lru_cache(maxsize=1)
def _timing_decoy_hash() -> str:
    return hash_password("timing-decoy")


def validate_password_strength(password: str, min_length: int = 6) -> None:
    """Raises PasswordValidationError if password is unusable."""
    if not isinstance(password, str) or not password.strip():
        raise PasswordValidationError("Password is required")
    if len(password) < min_length:
        raise PasswordValidationError(f"Password must be at least {min_length} characters long")


# =============================================================================
# AUTHORIZATION PREDICATES
# =============================================================================

def is_authenticated(user: User | None) -> bool:
    return user is not None


def has_capability(user: User | None, capability: str) -> bool:
    return is_authenticated(user) and role_has_capability(user.role, capability)


def is_admin(user: User | None) -> bool:
    """admin or super_admin."""
    return has_capability(user, Capability.ADMIN_ACCESS)


def is_super_admin(user: User | None) -> bool:
    return has_capability(user, Capability.SUPER_ADMIN_ACCESS)


# =============================================================================
# REGISTRATION
# =============================================================================

def register_user(store, patch: dict, *, acting_user: User | None = None, min_password_length: int = 6) -> User:
    """
    Create a dashboard user from a validated patch.

    role defaults to vendor and active to True. Granting any role other than
    vendor needs GRANT_ROLES on acting_user (when one is given).

    Raises:
        ValidationError: username missing
        PasswordValidationError: password too weak
        ConflictError: username taken (case-insensitive)
        AccessDeniedError: acting_user may not grant the requested role
    """
    username = (patch.get("username") or "").strip()
    if not username:
        raise ValidationError("username is required")
    name = (patch.get("name") or "").strip() or username

    if store.get_user_by_username(username) is not None:
        raise ConflictError("Username already exists")

    password = patch.get("password")
    validate_password_strength(password, min_password_length)

    try:
        role = parse_role(patch.get("role") or Role.VENDOR)
    except ValueError:
        raise ValidationError("role must be one of: vendor, admin, super_admin")

    if acting_user is not None and role != Role.VENDOR and not has_capability(acting_user, Capability.GRANT_ROLES):
        raise AccessDeniedError("Only a super admin can create admin accounts")

    active = patch.get("active")
    return store.create_user_with_password(
        {
            "username": username,
            "name": name,
            "role": role,
            "active": True if active is None else bool(active),
        },
        password,
    )


# =============================================================================
# LOGIN / LOGOUT / CURRENT USER
# =============================================================================

def authenticate(store, username: str, password: str) -> User:
    """
    Check credentials. Returns the User or raises AuthenticationError.

    Order of checks: user exists, password matches, account active.
    """
    user = store.get_user_by_username(username or "")
    if user is None:
        verify_password(password or "", _timing_decoy_hash())
        raise AuthenticationError(LoginFailureReason.NOT_FOUND)

    if not verify_password(password or "", user.password):
        raise AuthenticationError(LoginFailureReason.BAD_CREDENTIALS)

    if not user.active:
        raise AuthenticationError(LoginFailureReason.INACTIVE)

    return user


def login(
    store,
    sessions,
    username: str,
    password: str,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> LoginResult:
    """Authenticate and open a session. No session exists unless this returns."""
    user = authenticate(store, username, password)
    session, token = sessions.create_session(user.id, user_agent=user_agent, ip_address=ip_address)
    return LoginResult(user=user.to_dict(), token=token, session=session)


def logout(sessions, token: str | None) -> bool:
    """Destroy the session behind token. Safe to call repeatedly."""
    return sessions.revoke_session(token)


def resolve_user(store, sessions, token: str | None) -> User | None:
    """
    Map a session token to its user, or None (anonymous).

    A session whose user was deleted or deactivated after login is revoked
    and treated as anonymous.
    """
    session = sessions.validate_session(token)
    if session is None:
        return None

    user = store.get_user(session.user_id)
    if user is None or not user.active:
        sessions.revoke_session(token)
        return None
    return user
