# Overview: HTTP client for the separately operated WhatsApp bridge process.

"""
WhatsApp Bridge Client

The bridge is an external service (default http://localhost:3000) that owns
the WhatsApp Web session. It exposes:

- GET /api/qr      -> {"qr": "<payload to render as a QR code>"}
- GET /api/status  -> {"message": <bool connected>}

The dashboard reaches it through this proxy so the browser only talks to
our origin and the bridge address stays server-side configuration.
"""

from __future__ import annotations

import httpx


class BridgeError(Exception):
    """The bridge is unreachable or answered with something unusable."""


class WhatsAppBridge:
    def __init__(self, base_url: str, timeout: float = 5.0, transport: httpx.BaseTransport | None = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _get(self, path: str) -> dict:
        try:
            with httpx.Client(base_url=self.base_url, timeout=self.timeout, transport=self._transport) as client:
                response = client.get(path)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise BridgeError(f"WhatsApp bridge returned HTTP {exc.response.status_code} for {path}") from exc
        except httpx.HTTPError as exc:
            raise BridgeError(f"WhatsApp bridge unreachable: {exc}") from exc
        except ValueError as exc:
            raise BridgeError(f"WhatsApp bridge sent invalid JSON for {path}") from exc

        if not isinstance(payload, dict):
            raise BridgeError(f"WhatsApp bridge sent an unexpected payload for {path}")
        return payload

    def get_qr(self) -> str | None:
        """QR payload to render, or None when the bridge has none (already linked)."""
        qr = self._get("/api/qr").get("qr")
        return qr if isinstance(qr, str) and qr else None

    def get_status(self) -> bool:
        """True when the bridge reports an active WhatsApp connection."""
        return bool(self._get("/api/status").get("message"))
