from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from leunique.time_utils import utcnow
from .base import Column, Entity


@dataclass
class Product(Entity):
    """
    Catalog item. price is in minor currency units.

    Products are never removed: "delete" sets active=False so historical
    order items keep a valid productId.
    """
    id: int
    name: str
    description: str
    price: int
    category: str
    unit_size: str
    image_url: str | None = None
    is_vegetarian: bool = False
    is_featured: bool = False
    active: bool = True
    stock: int = 0
    created_at: datetime = field(default_factory=utcnow)

    COLUMNS = {
        "name": Column("name", str, max_length=120),
        "description": Column("description", str, max_length=2000),
        "price": Column("price", int),
        "category": Column("category", str, max_length=64),
        "imageUrl": Column("image_url", str, nullable=True, max_length=500),
        "isVegetarian": Column("is_vegetarian", bool),
        "isFeatured": Column("is_featured", bool),
        "active": Column("active", bool),
        "unitSize": Column("unit_size", str, max_length=32),
        "stock": Column("stock", int),
    }
