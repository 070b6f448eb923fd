"""
Client and chat ownership.

A vendor sees and changes only their own clients and those clients' chats.
Admins see everything and assign clients to vendors.
"""


class TestClientScoping:

    def test_vendor_lists_only_own_clients(self, vendor_client, vendor_client_record, other_client_record):
        body = vendor_client.get("/api/clients").get_json()
        assert [c["id"] for c in body["clients"]] == [vendor_client_record.id]

    def test_vendor_cannot_filter_into_other_clients(self, vendor_client, other_vendor, vendor_client_record, other_client_record):
        body = vendor_client.get(f"/api/clients?vendor_id={other_vendor.id}").get_json()
        assert [c["id"] for c in body["clients"]] == [vendor_client_record.id]

    def test_admin_lists_all_clients(self, admin_client, vendor_client_record, other_client_record):
        assert admin_client.get("/api/clients").get_json()["count"] == 2

    def test_admin_filters_by_vendor(self, admin_client, other_vendor, vendor_client_record, other_client_record):
        body = admin_client.get(f"/api/clients?vendor_id={other_vendor.id}").get_json()
        assert [c["id"] for c in body["clients"]] == [other_client_record.id]

    def test_vendor_cannot_read_foreign_client(self, vendor_client, other_client_record):
        assert vendor_client.get(f"/api/clients/{other_client_record.id}").status_code == 403

    def test_missing_client(self, vendor_client):
        assert vendor_client.get("/api/clients/999").status_code == 404


class TestClientCreate:

    def test_vendor_client_is_assigned_to_vendor(self, vendor_client, vendor):
        resp = vendor_client.post("/api/clients", json={"name": "Kiosco", "phone": "555"})
        assert resp.status_code == 201
        assert resp.get_json()["vendorId"] == vendor.id

    def test_vendor_cannot_assign_to_someone_else(self, vendor_client, other_vendor):
        resp = vendor_client.post("/api/clients", json={"name": "K", "phone": "5", "vendorId": other_vendor.id})
        assert resp.status_code == 403

    def test_admin_client_without_vendor_is_unassigned(self, admin_client):
        resp = admin_client.post("/api/clients", json={"name": "K", "phone": "5"})
        assert resp.get_json()["vendorId"] is None

    def test_admin_assigns_active_vendor_only(self, admin_client, vendor, admin_user):
        ok = admin_client.post("/api/clients", json={"name": "K", "phone": "5", "vendorId": vendor.id})
        assert ok.status_code == 201
        assert ok.get_json()["vendorId"] == vendor.id

        bad = admin_client.post("/api/clients", json={"name": "K", "phone": "5", "vendorId": admin_user.id})
        assert bad.status_code == 400

    def test_invalid_email(self, vendor_client):
        resp = vendor_client.post("/api/clients", json={"name": "K", "phone": "5", "email": "sin-arroba"})
        assert resp.status_code == 400

    def test_blank_optional_field_becomes_null(self, vendor_client):
        resp = vendor_client.post("/api/clients", json={"name": "K", "phone": "5", "address": "  "})
        assert resp.get_json()["address"] is None


class TestClientUpdate:

    def test_vendor_updates_own_client(self, vendor_client, vendor_client_record):
        resp = vendor_client.put(f"/api/clients/{vendor_client_record.id}", json={"address": "Calle 1"})
        assert resp.status_code == 200
        assert resp.get_json()["address"] == "Calle 1"

    def test_vendor_cannot_update_foreign_client(self, vendor_client, other_client_record):
        resp = vendor_client.put(f"/api/clients/{other_client_record.id}", json={"name": "Mío"})
        assert resp.status_code == 403

    def test_vendor_cannot_reassign(self, vendor_client, vendor_client_record, other_vendor, store):
        resp = vendor_client.put(f"/api/clients/{vendor_client_record.id}", json={"vendorId": other_vendor.id})
        assert resp.status_code == 403
        assert store.get_client(vendor_client_record.id).vendor_id == vendor_client_record.vendor_id

    def test_admin_reassigns_and_unassigns(self, admin_client, vendor_client_record, other_vendor):
        resp = admin_client.put(f"/api/clients/{vendor_client_record.id}", json={"vendorId": other_vendor.id})
        assert resp.get_json()["vendorId"] == other_vendor.id

        resp = admin_client.put(f"/api/clients/{vendor_client_record.id}", json={"vendorId": None})
        assert resp.get_json()["vendorId"] is None

    def test_reassigned_client_disappears_for_old_vendor(self, admin_client, vendor_client, vendor_client_record, other_vendor):
        admin_client.put(f"/api/clients/{vendor_client_record.id}", json={"vendorId": other_vendor.id})
        assert vendor_client.get(f"/api/clients/{vendor_client_record.id}").status_code == 403


class TestChats:

    def test_vendor_posts_and_reads_thread(self, vendor_client, vendor_client_record):
        resp = vendor_client.post("/api/chats", json={"clientId": vendor_client_record.id, "message": "Hola"})
        assert resp.status_code == 201
        assert resp.get_json()["fromClient"] is False

        vendor_client.post("/api/chats", json={
            "clientId": vendor_client_record.id, "message": "Buenas", "fromClient": True,
        })
        body = vendor_client.get(f"/api/chats/{vendor_client_record.id}").get_json()
        assert [c["message"] for c in body["chats"]] == ["Hola", "Buenas"]

    def test_vendor_cannot_touch_foreign_thread(self, vendor_client, other_client_record):
        assert vendor_client.get(f"/api/chats/{other_client_record.id}").status_code == 403
        resp = vendor_client.post("/api/chats", json={"clientId": other_client_record.id, "message": "x"})
        assert resp.status_code == 403

    def test_admin_reads_any_thread(self, admin_client, other_client_record):
        assert admin_client.get(f"/api/chats/{other_client_record.id}").status_code == 200

    def test_unknown_client(self, vendor_client):
        assert vendor_client.get("/api/chats/999").status_code == 404
        assert vendor_client.post("/api/chats", json={"clientId": 999, "message": "x"}).status_code == 400

    def test_message_required(self, vendor_client, vendor_client_record):
        resp = vendor_client.post("/api/chats", json={"clientId": vendor_client_record.id})
        assert resp.status_code == 400
