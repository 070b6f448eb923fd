# Overview: First-run sample data and the bootstrap super admin account.

"""
Sample data written the first time the store opens without a snapshot.

SECURITY: The default passwords below are for a fresh install only.
Change them immediately in production (flask users set-password).
"""

from __future__ import annotations

import logging

from .permissions import Role

logger = logging.getLogger(__name__)


DEFAULT_SUPER_ADMIN = ("Admin", "Admin", "Super Administrador")

SAMPLE_USERS = [
    # (username, password, name, role)
    ("gerente", "gerente123", "Gerente General", Role.ADMIN),
    ("vendedor", "vendedor123", "Vendedor de Ejemplo", Role.VENDOR),
]

SAMPLE_PRODUCTS = [
    {
        "name": "Sorrentinos de Queso y Jamón",
        "description": "Deliciosos sorrentinos con relleno de queso mozzarella, jamón y hierbas.",
        "price": 1800,
        "category": "sorrentinos",
        "image_url": "https://images.unsplash.com/photo-1587655424229-130916450ca4",
        "is_vegetarian": False,
        "is_featured": True,
        "active": True,
        "unit_size": "12 unid.",
        "stock": 50,
    },
    {
        "name": "Sorrentinos de Ricota y Espinaca",
        "description": "Masa verde rellena de ricota cremosa con espinaca salteada.",
        "price": 1700,
        "category": "sorrentinos",
        "image_url": "https://images.unsplash.com/photo-1622973536968-3ead9e780960",
        "is_vegetarian": True,
        "is_featured": False,
        "active": True,
        "unit_size": "12 unid.",
        "stock": 40,
    },
    {
        "name": "Ravioles de Carne",
        "description": "Ravioles tradicionales rellenos de carne braseada con verduras.",
        "price": 1900,
        "category": "ravioles",
        "image_url": "https://images.unsplash.com/photo-1611270629569-8b357cb88da9",
        "is_vegetarian": False,
        "is_featured": False,
        "active": True,
        "unit_size": "24 unid.",
        "stock": 30,
    },
]

SAMPLE_CLIENT = {
    "name": "Almacén Don Luis",
    "email": "donluis@example.com",
    "phone": "+54 11 5555-0101",
    "address": "Av. Siempreviva 742",
}


class BootstrapError(RuntimeError):
    """The bootstrap super admin cannot be created with the given settings."""


def create_default_super_admin(store):
    """Sample-data super admin (Admin/Admin). First run only."""
    username, password, name = DEFAULT_SUPER_ADMIN
    user = store.create_user_with_password(
        {"username": username, "name": name, "role": Role.SUPER_ADMIN, "active": True},
        password,
    )
    logger.info("Created sample super admin %r (id=%s)", user.username, user.id)
    return user


def bootstrap_super_admin(store, username: str, password: str | None, name: str | None = None):
    """
    Make sure the store can be administered.

    Returns (user, created). When any active super admin exists it is
    returned untouched, so a deleted bootstrap account stays deleted.
    Otherwise a super admin is created from username and password.

    Raises:
        BootstrapError: password not configured, or username already taken
    """
    existing = store.list_users(role=Role.SUPER_ADMIN, active_only=True)
    if existing:
        return existing[0], False

    if not password:
        raise BootstrapError("No active super admin and LEUNIQUE_ADMIN_PASSWORD is not set")
    if store.get_user_by_username(username) is not None:
        raise BootstrapError(f"Username {username!r} is taken by an account that is not an active super admin")

    user = store.create_user_with_password(
        {
            "username": username,
            "name": name or DEFAULT_SUPER_ADMIN[2],
            "role": Role.SUPER_ADMIN,
            "active": True,
        },
        password,
    )
    logger.warning("Created bootstrap super admin %r (id=%s)", user.username, user.id)
    return user, True


def populate_sample_data(store) -> None:
    """Write the first-run sample rows. Caller wraps this in store.batch()."""
    create_default_super_admin(store)

    vendor = None
    for username, password, name, role in SAMPLE_USERS:
        user = store.create_user_with_password(
            {"username": username, "name": name, "role": role, "active": True},
            password,
        )
        if role == Role.VENDOR and vendor is None:
            vendor = user

    for product in SAMPLE_PRODUCTS:
        store.create_product(dict(product))

    store.create_client({**SAMPLE_CLIENT, "vendor_id": vendor.id if vendor else None})
