# Overview: Flask API routes for login, logout, registration and the current user.

# backend/leunique/routes/auth.py
"""
Authentication API routes

SECURITY FEATURES:
- Session id travels only in an HttpOnly, SameSite=Strict cookie
- Unknown username and wrong password share one 401 message
- "Account is inactive" is only disclosed after a correct password
- Registration is admin-only and never signs anyone in
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..extensions import get_store, get_sessions
from ..models import User
from ..services import auth_service
from ..services.access import AccessDeniedError
from ..services.auth_service import AuthenticationError, LoginFailureReason, PasswordValidationError
from ..validation import ConflictError, ModelValidationPolicy, ValidationError, validate_payload
from ..decorators import require_auth, require_admin


auth_bp = Blueprint("auth", __name__, url_prefix="/api")

REGISTER_POLICY = ModelValidationPolicy(
    writable_fields={"username", "name", "role"},
    required_on_create={"username"},
)


def _set_session_cookie(response, token: str) -> None:
    cfg = current_app.config
    response.set_cookie(
        cfg["AUTH_COOKIE_NAME"],
        token,
        max_age=cfg["SESSION_IDLE_DAYS"] * 24 * 60 * 60,
        httponly=True,
        secure=cfg["AUTH_COOKIE_SECURE"],
        samesite="Strict",
        path="/",
    )


def _clear_session_cookie(response) -> None:
    cfg = current_app.config
    response.delete_cookie(
        cfg["AUTH_COOKIE_NAME"],
        path="/",
        httponly=True,
        secure=cfg["AUTH_COOKIE_SECURE"],
        samesite="Strict",
    )


@auth_bp.post("/login")
def login_route():
    """
    Authenticate user and start a session.

    Returns the user on success and sets the session cookie.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}
    username = data.get("username")
    password = data.get("password")

    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        return jsonify({"error": "username and password required"}), 400

    try:
        result = auth_service.login(
            get_store(),
            get_sessions(),
            username.strip(),
            password,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )
    except AuthenticationError as e:
        current_app.logger.info("Login failed for %r: %s", username, e.reason.value)
        if e.reason == LoginFailureReason.INACTIVE:
            return jsonify({"error": "Account is inactive"}), 403
        return jsonify({"error": "Invalid credentials"}), 401
    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("User %s logged in", result.user["id"])
    response = jsonify({
        "user": result.user,
        "session": result.session.to_dict(get_sessions().idle_timeout),
        "message": "Login successful",
    })
    _set_session_cookie(response, result.token)
    return response, 200


@auth_bp.post("/logout")
def logout_route():
    """End the current session. Succeeds whether or not one exists."""
    auth_service.logout(get_sessions(), getattr(g, "session_token", None))
    response = jsonify({"message": "Logged out"})
    _clear_session_cookie(response)
    return response, 200


@auth_bp.get("/user")
@require_auth
def current_user_route():
    return jsonify(g.current_user.to_dict()), 200


@auth_bp.post("/register")
@require_admin
def register_route():
    """
    Create a dashboard account.

    Admins register vendors; only a super admin may create admin or super
    admin accounts. The caller's own session is untouched.
    """
    payload = request.get_json(silent=True) or {}

    try:
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")
        payload = dict(payload)
        password = payload.pop("password", None)
        patch = validate_payload(model=User, payload=payload, policy=REGISTER_POLICY, partial=False)
        patch["password"] = password
        user = auth_service.register_user(
            get_store(),
            patch,
            acting_user=g.current_user,
            min_password_length=current_app.config["PASSWORD_MIN_LENGTH"],
        )
    except (ValidationError, PasswordValidationError) as e:
        return jsonify({"error": str(e)}), 400
    except AccessDeniedError as e:
        return jsonify({"error": str(e)}), 403
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Internal server error"}), 500

    current_app.logger.info("User %s registered %r as %s", g.current_user.id, user.username, user.role.value)
    return jsonify(user.to_dict()), 201
