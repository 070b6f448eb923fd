# Overview: Proxy routes to the external WhatsApp bridge.

from flask import Blueprint, current_app

from ..extensions import get_whatsapp_bridge
from ..services.whatsapp_service import BridgeError
from ..decorators import require_auth

whatsapp_bp = Blueprint("whatsapp", __name__, url_prefix="/api/whatsapp")


@whatsapp_bp.get("/qr")
@require_auth
def qr_route():
    """QR payload for linking a phone. qr is null once a phone is linked."""
    try:
        qr = get_whatsapp_bridge().get_qr()
    except BridgeError as e:
        current_app.logger.warning("WhatsApp bridge QR request failed: %s", e)
        return {"error": "WhatsApp bridge unavailable"}, 502
    return {"qr": qr}, 200


@whatsapp_bp.get("/status")
@require_auth
def status_route():
    try:
        connected = get_whatsapp_bridge().get_status()
    except BridgeError as e:
        current_app.logger.warning("WhatsApp bridge status request failed: %s", e)
        return {"error": "WhatsApp bridge unavailable"}, 502
    return {"connected": connected}, 200
