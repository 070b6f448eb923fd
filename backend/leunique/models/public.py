from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from leunique.time_utils import utcnow
from .base import Column, Entity


@dataclass
class ContactMessage(Entity):
    id: int
    name: str
    email: str
    message: str
    phone: str | None = None
    newsletter_opt_in: bool = False
    created_at: datetime = field(default_factory=utcnow)

    COLUMNS = {
        "name": Column("name", str, max_length=120),
        "email": Column("email", str, max_length=255),
        "phone": Column("phone", str, nullable=True, max_length=32),
        "message": Column("message", str, max_length=4000),
        "newsletterOptIn": Column("newsletter_opt_in", bool),
    }


@dataclass
class NewsletterSubscription(Entity):
    """email is unique across subscriptions (case-insensitive)."""
    id: int
    name: str
    email: str
    phone: str | None = None
    created_at: datetime = field(default_factory=utcnow)

    COLUMNS = {
        "name": Column("name", str, max_length=120),
        "email": Column("email", str, max_length=255),
        "phone": Column("phone", str, nullable=True, max_length=32),
    }
