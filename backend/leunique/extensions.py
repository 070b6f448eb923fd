# Overview: Per-application service instances (entity store, sessions, WhatsApp bridge).

from __future__ import annotations

import atexit
import os
from datetime import timedelta

from flask import Flask, current_app

from .services.session_service import SessionStore
from .services.whatsapp_service import WhatsAppBridge
from .storage import EntityStore

STORE_KEY = "leunique.store"
SESSIONS_KEY = "leunique.sessions"
BRIDGE_KEY = "leunique.whatsapp"


def init_extensions(app: Flask) -> None:
    """
    Build and open the stateful collaborators for app.

    Nothing here is module-global: every app (and every test) owns its store.
    """
    snapshot_path = app.config["SNAPSHOT_PATH"]
    if not os.path.isabs(snapshot_path):
        snapshot_path = os.path.join(app.instance_path, snapshot_path)

    store = EntityStore(snapshot_path, seed=app.config["SEED_SAMPLE_DATA"]).open()

    if app.config["BOOTSTRAP_SUPER_ADMIN"]:
        from .seed import BootstrapError, bootstrap_super_admin

        try:
            bootstrap_super_admin(
                store,
                username=app.config["BOOTSTRAP_ADMIN_USERNAME"],
                password=app.config["BOOTSTRAP_ADMIN_PASSWORD"],
            )
        except BootstrapError:
            store.close()
            raise

    # Retry a pending snapshot write on interpreter shutdown
    atexit.register(store.close)

    app.extensions[STORE_KEY] = store
    app.extensions[SESSIONS_KEY] = SessionStore(idle_timeout=timedelta(days=app.config["SESSION_IDLE_DAYS"]))
    app.extensions[BRIDGE_KEY] = WhatsAppBridge(
        app.config["WHATSAPP_BRIDGE_URL"],
        timeout=app.config["WHATSAPP_BRIDGE_TIMEOUT"],
    )


def get_store() -> EntityStore:
    return current_app.extensions[STORE_KEY]


def get_sessions() -> SessionStore:
    return current_app.extensions[SESSIONS_KEY]


def get_whatsapp_bridge() -> WhatsAppBridge:
    return current_app.extensions[BRIDGE_KEY]
