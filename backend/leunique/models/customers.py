from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from leunique.time_utils import utcnow
from .base import Column, Entity


@dataclass
class Client(Entity):
    """Customer owned by at most one vendor (vendor_id)."""
    id: int
    name: str
    phone: str
    email: str | None = None
    address: str | None = None
    vendor_id: int | None = None
    created_at: datetime = field(default_factory=utcnow)

    COLUMNS = {
        "name": Column("name", str, max_length=120),
        "phone": Column("phone", str, max_length=32),
        "email": Column("email", str, nullable=True, max_length=255),
        "address": Column("address", str, nullable=True, max_length=255),
        "vendorId": Column("vendor_id", int, nullable=True),
    }


@dataclass
class Chat(Entity):
    """One message in a client's thread. Append-only."""
    id: int
    client_id: int
    message: str
    from_client: bool
    created_at: datetime = field(default_factory=utcnow)

    COLUMNS = {
        "clientId": Column("client_id", int),
        "message": Column("message", str, max_length=4000),
        "fromClient": Column("from_client", bool),
    }
