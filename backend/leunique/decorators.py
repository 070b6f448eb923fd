# Overview: Request and role decorators for API routes.

from functools import wraps
from flask import request, jsonify, g, current_app

from .extensions import get_store, get_sessions
from .services import auth_service
from .permissions import Capability


def load_request_user():
    """
    before_request hook: resolve the session cookie to a user.

    Sets:
    - g.session_token: the raw cookie value (or None)
    - g.current_user: the authenticated User, or None for anonymous

    An unknown, expired or revoked token and a deleted or deactivated user
    all resolve to anonymous. Routes decide whether that is acceptable.
    """
    token = request.cookies.get(current_app.config["AUTH_COOKIE_NAME"])
    g.session_token = token
    g.current_user = auth_service.resolve_user(get_store(), get_sessions(), token) if token else None


def _current_user():
    return getattr(g, "current_user", None)


def require_auth(f):
    """
    Require an authenticated user.

    SECURITY: Returns 401 when no live session backs the request.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not auth_service.is_authenticated(_current_user()):
            return jsonify({"error": "Authentication required"}), 401
        return f(*args, **kwargs)

    return decorated_function


def require_capability(capability: str, message: str):
    """Require a role capability. 401 for anonymous, 403 for insufficient role."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = _current_user()
            if not auth_service.is_authenticated(user):
                return jsonify({"error": "Authentication required"}), 401

            if not auth_service.has_capability(user, capability):
                current_app.logger.info(
                    "Denied %s %s for user %s (role=%s, needs %s)",
                    request.method, request.path, user.id, user.role.value, capability,
                )
                return jsonify({"error": message}), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator


require_admin = require_capability(Capability.ADMIN_ACCESS, "Admin access required")
require_super_admin = require_capability(Capability.SUPER_ADMIN_ACCESS, "Super admin access required")
