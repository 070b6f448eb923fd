# backend/leunique/routes/system.py
"""
System health and version endpoints.

Health reports the entity store (open, last snapshot write) and the session
store. A store whose last snapshot write failed is "degraded": requests still
succeed but recent changes may not survive a restart.
"""

import os
import time
from flask import Blueprint, current_app

from ..extensions import get_store, get_sessions
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

APP_VERSION = "1.0.0"


def check_store_health() -> dict:
    """Check the entity store and its snapshot file."""
    start_time = time.time()
    try:
        store = get_store()
        counts = store.counts()
        elapsed_ms = (time.time() - start_time) * 1000

        details = {
            "snapshot_path": str(store.snapshot_path),
            "last_persisted_at": to_utc_z(store.last_persisted_at) if store.last_persisted_at else None,
            "records": counts,
        }

        if store.degraded:
            return {
                "status": "degraded",
                "latency_ms": round(elapsed_ms, 2),
                "warning": "Last snapshot write failed; changes are held in memory only",
                "details": {
                    **details,
                    "persist_error": store.persist_error,
                    "persist_failures": store.persist_failures,
                },
            }

        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": details,
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Entity store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Entity store error"
        }


def check_session_service_health() -> dict:
    start_time = time.time()
    try:
        active_sessions = get_sessions().active_count()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"active_sessions": active_sessions},
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Session service health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Session service error"
        }


@system_bp.get("/health")
def health():
    """
    Health check endpoint.

    Returns:
    - 200: healthy or degraded (degraded is still operational)
    - 503: one or more checks unhealthy
    """
    start_time = time.time()

    store_health = check_store_health()
    session_health = check_session_service_health()

    all_checks = [store_health, session_health]
    unhealthy_count = sum(1 for check in all_checks if check["status"] == "unhealthy")
    degraded_count = sum(1 for check in all_checks if check["status"] == "degraded")

    if unhealthy_count > 0:
        overall_status = "unhealthy"
        http_status = 503
    elif degraded_count > 0:
        overall_status = "degraded"
        http_status = 200
    else:
        overall_status = "healthy"
        http_status = 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    response = {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "entity_store": store_health,
            "session_service": session_health,
        }
    }

    return response, http_status


@system_bp.get("/version")
def version():
    return {
        "name": "leunique",
        "version": os.environ.get("APP_VERSION", APP_VERSION),
        "environment": os.environ.get("FLASK_ENV", "production"),
        "git_commit": os.environ.get("GIT_COMMIT"),
    }
