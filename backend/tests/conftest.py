"""
Pytest fixtures for Le Unique backend tests.

Every test gets its own app with a snapshot file under tmp_path, no sample
data and no bootstrap admin, so the only records are the ones a test makes.
"""

import pytest

from leunique import create_app
from leunique.extensions import BRIDGE_KEY, SESSIONS_KEY, STORE_KEY
from leunique.permissions import Role

PASSWORD = "secret123"


@pytest.fixture(scope='function')
def snapshot_path(tmp_path):
    return tmp_path / "leunique-data.json"


@pytest.fixture(scope='function')
def app(snapshot_path):
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SNAPSHOT_PATH': str(snapshot_path),
        'SEED_SAMPLE_DATA': False,
        'BOOTSTRAP_SUPER_ADMIN': False,
        'AUTH_COOKIE_SECURE': False,
        'TAX_RATE_BPS': 2100,
        'WHATSAPP_BRIDGE_URL': 'http://bridge.test',
    })
    yield app
    app.extensions[STORE_KEY].close()


@pytest.fixture(scope='function')
def client(app):
    """Anonymous test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def store(app):
    return app.extensions[STORE_KEY]


@pytest.fixture(scope='function')
def sessions(app):
    return app.extensions[SESSIONS_KEY]


@pytest.fixture(scope='function')
def bridge(app):
    return app.extensions[BRIDGE_KEY]


def make_user(store, username: str, role: Role = Role.VENDOR, *, active: bool = True, name: str | None = None):
    return store.create_user_with_password(
        {"username": username, "name": name or username.title(), "role": role, "active": active},
        PASSWORD,
    )


def login_client(app, username: str, password: str = PASSWORD):
    """Helper: fresh test client carrying a session cookie for username."""
    client = app.test_client()
    response = client.post('/api/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture(scope='function')
def super_admin(store):
    return make_user(store, "root", Role.SUPER_ADMIN, name="Root")


@pytest.fixture(scope='function')
def admin_user(store):
    return make_user(store, "gerente", Role.ADMIN, name="Gerente")


@pytest.fixture(scope='function')
def vendor(store):
    return make_user(store, "vendedor", Role.VENDOR, name="Vendedor Uno")


@pytest.fixture(scope='function')
def other_vendor(store):
    return make_user(store, "vendedora", Role.VENDOR, name="Vendedora Dos")


@pytest.fixture(scope='function')
def super_admin_client(app, super_admin):
    return login_client(app, super_admin.username)


@pytest.fixture(scope='function')
def admin_client(app, admin_user):
    return login_client(app, admin_user.username)


@pytest.fixture(scope='function')
def vendor_client(app, vendor):
    return login_client(app, vendor.username)


@pytest.fixture(scope='function')
def other_vendor_client(app, other_vendor):
    return login_client(app, other_vendor.username)


@pytest.fixture(scope='function')
def product(store):
    """Active product with stock=5 and price=1000."""
    return store.create_product({
        "name": "Sorrentinos de Calabaza",
        "description": "Calabaza asada y queso",
        "price": 1000,
        "category": "sorrentinos",
        "unit_size": "12 unid.",
        "stock": 5,
    })


@pytest.fixture(scope='function')
def vendor_client_record(store, vendor):
    """Client owned by vendor."""
    return store.create_client({"name": "Almacén Norte", "phone": "555-0001", "vendor_id": vendor.id})


@pytest.fixture(scope='function')
def other_client_record(store, other_vendor):
    """Client owned by other_vendor."""
    return store.create_client({"name": "Almacén Sur", "phone": "555-0002", "vendor_id": other_vendor.id})
