"""
Health, version and CLI commands.
"""

from leunique import create_app, extensions
from leunique import storage as storage_module
from leunique.extensions import STORE_KEY

from conftest import PASSWORD, make_user


class TestLifecycle:

    def test_store_is_closed_at_interpreter_exit(self, snapshot_path, monkeypatch):
        registered = []
        monkeypatch.setattr(extensions.atexit, "register", registered.append)
        app = create_app({
            "TESTING": True,
            "SNAPSHOT_PATH": str(snapshot_path),
            "SEED_SAMPLE_DATA": False,
            "BOOTSTRAP_SUPER_ADMIN": False,
        })

        store = app.extensions[STORE_KEY]
        assert registered == [store.close]
        registered[0]()
        assert store.is_open is False


class TestHealth:

    def test_healthy(self, client, vendor):
        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "healthy"
        assert body["checks"]["entity_store"]["details"]["records"]["users"] == 1

    def test_degraded_after_failed_write(self, client, store, monkeypatch):
        def broken_replace(src, dst):
            raise OSError("read-only file system")

        monkeypatch.setattr(storage_module.os, "replace", broken_replace)
        make_user(store, "tras-falla")

        resp = client.get("/health")
        assert resp.status_code == 200
        body = resp.get_json()
        assert body["status"] == "degraded"
        assert "read-only" in body["checks"]["entity_store"]["details"]["persist_error"]

    def test_session_count(self, client, vendor_client):
        body = client.get("/health").get_json()
        assert body["checks"]["session_service"]["details"]["active_sessions"] == 1

    def test_version(self, client):
        body = client.get("/version").get_json()
        assert body["name"] == "leunique"
        assert "version" in body


class TestCli:

    def test_system_init_creates_super_admin(self, app, store):
        result = app.test_cli_runner().invoke(args=["system", "init", "--password", "arranque123"])
        assert result.exit_code == 0, result.output
        assert "PASS Super admin: Admin" in result.output
        assert store.get_user_by_username("Admin") is not None

    def test_system_init_without_password_fails(self, app, store):
        result = app.test_cli_runner().invoke(args=["system", "init"])
        assert result.exit_code == 1
        assert "LEUNIQUE_ADMIN_PASSWORD" in result.output
        assert store.get_user_by_username("Admin") is None

    def test_system_init_keeps_existing_super_admin(self, app, store, super_admin):
        result = app.test_cli_runner().invoke(args=["system", "init"])
        assert result.exit_code == 0, result.output
        assert f"PASS Super admin: {super_admin.username}" in result.output
        assert store.get_user_by_username("Admin") is None

    def test_system_info(self, app, vendor):
        result = app.test_cli_runner().invoke(args=["system", "info"])
        assert result.exit_code == 0
        assert "Persist status:  ok" in result.output

    def test_users_create_and_list(self, app, store):
        runner = app.test_cli_runner()
        result = runner.invoke(args=["users", "create", "--username", "cli", "--role", "admin", "--password", "cli12345"])
        assert result.exit_code == 0, result.output
        assert store.get_user_by_username("cli").role.value == "admin"

        listing = runner.invoke(args=["users", "list"])
        assert "cli" in listing.output

    def test_users_create_duplicate_fails(self, app, vendor):
        result = app.test_cli_runner().invoke(
            args=["users", "create", "--username", "vendedor", "--password", "x1234567"]
        )
        assert result.exit_code == 1
        assert "FAIL" in result.output

    def test_set_password_ends_sessions(self, app, vendor_client, sessions):
        result = app.test_cli_runner().invoke(args=["users", "set-password", "vendedor", "--password", "nueva-clave"])
        assert result.exit_code == 0, result.output
        assert sessions.active_count() == 0
        resp = app.test_client().post("/api/login", json={"username": "vendedor", "password": PASSWORD})
        assert resp.status_code == 401

    def test_deactivate(self, app, store, vendor):
        result = app.test_cli_runner().invoke(args=["users", "deactivate", "vendedor"])
        assert result.exit_code == 0
        assert store.get_user(vendor.id).active is False

    def test_unknown_user(self, app):
        result = app.test_cli_runner().invoke(args=["users", "deactivate", "nadie"])
        assert result.exit_code == 1
