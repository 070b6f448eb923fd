from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from leunique.permissions import Role
from leunique.time_utils import utcnow
from .base import Column, Entity


@dataclass
class User(Entity):
    """
    Dashboard account.

    username is unique case-insensitively. password always holds the stored
    scrypt form ("<hex key>.<hex salt>"), never plaintext, and is left out of
    to_dict() so it cannot leak through an API response.
    """
    id: int
    username: str
    password: str
    name: str
    role: Role = Role.VENDOR
    active: bool = True
    created_at: datetime = field(default_factory=utcnow)

    COLUMNS = {
        "username": Column("username", str, max_length=64),
        "password": Column("password", str, max_length=128),
        "name": Column("name", str, max_length=120),
        "role": Column("role", Role),
        "active": Column("active", bool),
    }
    ENUM_FIELDS = {"role": Role}
    PRIVATE_FIELDS = ("password",)
