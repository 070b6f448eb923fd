"""
WhatsApp bridge client and proxy routes, using httpx.MockTransport.
"""

import httpx
import pytest

from leunique.services.whatsapp_service import BridgeError, WhatsAppBridge


def bridge_with(handler):
    return WhatsAppBridge("http://bridge.test", transport=httpx.MockTransport(handler))


class TestBridgeClient:

    def test_qr_and_status(self):
        def handler(request):
            if request.url.path == "/api/qr":
                return httpx.Response(200, json={"qr": "2@abc"})
            return httpx.Response(200, json={"message": True})

        bridge = bridge_with(handler)
        assert bridge.get_qr() == "2@abc"
        assert bridge.get_status() is True

    def test_empty_qr_is_none(self):
        bridge = bridge_with(lambda request: httpx.Response(200, json={"qr": ""}))
        assert bridge.get_qr() is None

    def test_http_error(self):
        bridge = bridge_with(lambda request: httpx.Response(500, text="boom"))
        with pytest.raises(BridgeError):
            bridge.get_status()

    def test_invalid_json(self):
        bridge = bridge_with(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(BridgeError):
            bridge.get_qr()

    def test_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(BridgeError):
            bridge_with(handler).get_status()


class TestProxyRoutes:

    @pytest.fixture
    def use_transport(self, bridge, monkeypatch):
        def install(handler):
            monkeypatch.setattr(bridge, "_transport", httpx.MockTransport(handler))
        return install

    def test_qr_route(self, vendor_client, use_transport):
        use_transport(lambda request: httpx.Response(200, json={"qr": "2@xyz"}))
        resp = vendor_client.get("/api/whatsapp/qr")
        assert resp.status_code == 200
        assert resp.get_json() == {"qr": "2@xyz"}

    def test_status_route(self, vendor_client, use_transport):
        use_transport(lambda request: httpx.Response(200, json={"message": False}))
        assert vendor_client.get("/api/whatsapp/status").get_json() == {"connected": False}

    def test_bridge_down_is_502(self, vendor_client, use_transport):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        use_transport(handler)
        assert vendor_client.get("/api/whatsapp/status").status_code == 502
        assert vendor_client.get("/api/whatsapp/qr").status_code == 502
