# backend/leunique/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # JSON snapshot; relative paths resolve against the Flask instance folder
    SNAPSHOT_PATH = os.environ.get("LEUNIQUE_SNAPSHOT_PATH", "leunique-data.json")
    SEED_SAMPLE_DATA = _env_flag("LEUNIQUE_SEED_SAMPLE_DATA", True)

    # Bootstrap super admin: opt-in, only when no active super admin exists.
    # The password has no default.
    BOOTSTRAP_SUPER_ADMIN = _env_flag("LEUNIQUE_BOOTSTRAP_SUPER_ADMIN", False)
    BOOTSTRAP_ADMIN_USERNAME = os.environ.get("LEUNIQUE_ADMIN_USERNAME", "Admin")
    BOOTSTRAP_ADMIN_PASSWORD = os.environ.get("LEUNIQUE_ADMIN_PASSWORD")

    # Orders: 2100 basis points = 21% IVA
    TAX_RATE_BPS = int(os.environ.get("LEUNIQUE_TAX_RATE_BPS", "2100"))

    PASSWORD_MIN_LENGTH = int(os.environ.get("PASSWORD_MIN_LENGTH", "6"))

    # Session cookie (server-side session id)
    AUTH_COOKIE_NAME = "leunique_session"
    AUTH_COOKIE_SECURE = _env_flag("SESSION_COOKIE_SECURE", True)
    SESSION_IDLE_DAYS = int(os.environ.get("SESSION_IDLE_DAYS", "7"))

    # External WhatsApp bridge (separately operated process)
    WHATSAPP_BRIDGE_URL = os.environ.get("WHATSAPP_BRIDGE_URL", "http://localhost:3000")
    WHATSAPP_BRIDGE_TIMEOUT = float(os.environ.get("WHATSAPP_BRIDGE_TIMEOUT", "5"))

    CORS_ALLOWED_ORIGINS = {
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:5000",
        "http://127.0.0.1:5000",
    }
