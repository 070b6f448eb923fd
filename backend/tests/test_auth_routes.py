"""
Login, logout, registration and current-user routes.
"""

import importlib

import pytest

from conftest import PASSWORD, login_client, make_user
from leunique.extensions import STORE_KEY
from leunique.permissions import Role
from leunique.seed import BootstrapError


class TestLogin:

    def test_login_sets_http_only_strict_cookie(self, app, client, vendor):
        resp = client.post("/api/login", json={"username": "vendedor", "password": PASSWORD})

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["user"]["username"] == "vendedor"
        assert "password" not in body["user"]
        assert "token" not in body

        cookie = resp.headers["Set-Cookie"]
        assert cookie.startswith(app.config["AUTH_COOKIE_NAME"] + "=")
        assert "HttpOnly" in cookie
        assert "SameSite=Strict" in cookie
        assert "Max-Age=604800" in cookie

    def test_secure_flag_follows_config(self, app, client, vendor):
        app.config["AUTH_COOKIE_SECURE"] = True
        resp = client.post("/api/login", json={"username": "vendedor", "password": PASSWORD})
        assert "Secure" in resp.headers["Set-Cookie"]

    def test_current_user_after_login(self, vendor_client):
        resp = vendor_client.get("/api/user")
        assert resp.status_code == 200
        assert resp.get_json()["role"] == "vendor"

    def test_unknown_user_and_wrong_password_look_the_same(self, client, vendor):
        unknown = client.post("/api/login", json={"username": "nadie", "password": PASSWORD})
        wrong = client.post("/api/login", json={"username": "vendedor", "password": "wrong-pass"})

        assert unknown.status_code == wrong.status_code == 401
        assert unknown.get_json() == wrong.get_json() == {"error": "Invalid credentials"}
        assert "Set-Cookie" not in unknown.headers

    def test_inactive_user_gets_403(self, client, store):
        make_user(store, "inactivo", active=False)
        resp = client.post("/api/login", json={"username": "inactivo", "password": PASSWORD})
        assert resp.status_code == 403
        assert resp.get_json()["error"] == "Account is inactive"

    def test_missing_fields(self, client):
        assert client.post("/api/login", json={"username": "x"}).status_code == 400
        assert client.post("/api/login", data="nope").status_code == 400
        assert client.post("/api/login", json=["vendedor", PASSWORD]).status_code == 400


class TestLogout:

    def test_logout_ends_session(self, vendor_client, sessions):
        assert sessions.active_count() == 1
        resp = vendor_client.post("/api/logout")

        assert resp.status_code == 200
        assert sessions.active_count() == 0
        assert vendor_client.get("/api/user").status_code == 401

    def test_logout_twice(self, vendor_client):
        assert vendor_client.post("/api/logout").status_code == 200
        assert vendor_client.post("/api/logout").status_code == 200

    def test_deactivation_signs_user_out(self, vendor_client, store, vendor):
        store.update_user(vendor.id, {"active": False})
        assert vendor_client.get("/api/user").status_code == 401


class TestRegister:

    def test_admin_registers_vendor_without_switching_session(self, admin_client, admin_user, store):
        resp = admin_client.post("/api/register", json={"username": "nuevo", "password": "nuevo123", "name": "Nuevo"})

        assert resp.status_code == 201
        assert resp.get_json()["role"] == "vendor"
        assert store.get_user_by_username("nuevo") is not None
        assert admin_client.get("/api/user").get_json()["id"] == admin_user.id

    def test_admin_cannot_register_admin(self, admin_client):
        resp = admin_client.post("/api/register", json={"username": "otro", "password": "otro1234", "role": "admin"})
        assert resp.status_code == 403

    def test_super_admin_can_register_admin(self, super_admin_client):
        resp = super_admin_client.post("/api/register", json={"username": "otro", "password": "otro1234", "role": "admin"})
        assert resp.status_code == 201
        assert resp.get_json()["role"] == "admin"

    def test_duplicate_username(self, admin_client, vendor):
        resp = admin_client.post("/api/register", json={"username": "VENDEDOR", "password": "nuevo123"})
        assert resp.status_code == 409

    def test_weak_password(self, admin_client):
        resp = admin_client.post("/api/register", json={"username": "nuevo", "password": "123"})
        assert resp.status_code == 400

    def test_invalid_role(self, admin_client):
        resp = admin_client.post("/api/register", json={"username": "nuevo", "password": "nuevo123", "role": "owner"})
        assert resp.status_code == 400

    def test_non_object_body(self, admin_client):
        resp = admin_client.post("/api/register", json=[["username", "nuevo"], 1])
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "Invalid JSON payload"

    def test_registered_user_can_log_in(self, app, admin_client):
        admin_client.post("/api/register", json={"username": "nuevo", "password": "nuevo123"})
        new_client = login_client(app, "nuevo", "nuevo123")
        assert new_client.get("/api/user").get_json()["username"] == "nuevo"


class TestBootstrap:

    @staticmethod
    def boot(snapshot, **overrides):
        from leunique import create_app

        config = {
            "TESTING": True,
            "SNAPSHOT_PATH": str(snapshot),
            "SEED_SAMPLE_DATA": False,
            "BOOTSTRAP_SUPER_ADMIN": True,
            "BOOTSTRAP_ADMIN_PASSWORD": "arranque123",
            "AUTH_COOKIE_SECURE": False,
        }
        config.update(overrides)
        return create_app(config)

    def test_bootstrap_is_off_by_default(self, monkeypatch):
        import leunique.config

        monkeypatch.delenv("LEUNIQUE_BOOTSTRAP_SUPER_ADMIN", raising=False)
        monkeypatch.delenv("LEUNIQUE_ADMIN_PASSWORD", raising=False)
        config = importlib.reload(leunique.config).Config

        assert config.BOOTSTRAP_SUPER_ADMIN is False
        assert config.BOOTSTRAP_ADMIN_PASSWORD is None

    def test_bootstrap_super_admin_created_when_none_exists(self, tmp_path):
        app = self.boot(tmp_path / "boot.json")
        try:
            admin = app.extensions[STORE_KEY].get_user_by_username("Admin")
            assert admin.role == Role.SUPER_ADMIN
            client = login_client(app, "Admin", "arranque123")
            assert client.get("/api/user").get_json()["role"] == "super_admin"
        finally:
            app.extensions[STORE_KEY].close()

    def test_bootstrap_requires_a_password(self, tmp_path):
        with pytest.raises(BootstrapError):
            self.boot(tmp_path / "boot.json", BOOTSTRAP_ADMIN_PASSWORD=None)

    def test_deleted_admin_stays_deleted_after_restart(self, tmp_path):
        snapshot = tmp_path / "boot.json"
        app = self.boot(snapshot, SEED_SAMPLE_DATA=True, BOOTSTRAP_ADMIN_PASSWORD="Admin")
        store = app.extensions[STORE_KEY]
        make_user(store, "owner", Role.SUPER_ADMIN)
        owner = login_client(app, "owner")
        admin_id = store.get_user_by_username("Admin").id
        assert owner.delete(f"/api/users/{admin_id}").status_code == 200
        store.close()

        restarted = self.boot(snapshot, SEED_SAMPLE_DATA=True, BOOTSTRAP_ADMIN_PASSWORD="Admin")
        try:
            assert restarted.extensions[STORE_KEY].get_user_by_username("Admin") is None
            resp = restarted.test_client().post("/api/login", json={"username": "Admin", "password": "Admin"})
            assert resp.status_code == 401
        finally:
            restarted.extensions[STORE_KEY].close()
