from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from leunique.time_utils import utcnow
from .base import Column, Entity


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DELIVERED = "delivered"
    CANCELED = "canceled"

    def can_transition_to(self, target: "OrderStatus") -> bool:
        return target == self or target in ORDER_TRANSITIONS[self]


# delivered and canceled are terminal
ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.PROCESSING, OrderStatus.CANCELED},
    OrderStatus.PROCESSING: {OrderStatus.DELIVERED, OrderStatus.CANCELED, OrderStatus.PENDING},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELED: set(),
}


@dataclass
class Order(Entity):
    """
    vendor_id is the user who created the order and never changes.
    total_amount is computed once at creation (items + tax).
    """
    id: int
    client_id: int
    vendor_id: int
    total_amount: int
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)

    COLUMNS = {
        "status": Column("status", OrderStatus),
    }
    ENUM_FIELDS = {"status": OrderStatus}


@dataclass
class OrderItem(Entity):
    """unit_price is the product price snapshot at order time."""
    id: int
    order_id: int
    product_id: int
    quantity: int
    unit_price: int

    DATETIME_FIELDS = ()

    @property
    def line_total(self) -> int:
        return self.quantity * self.unit_price


def compute_tax(subtotal: int, tax_rate_bps: int) -> int:
    """Tax in minor units, rounded half up. 2100 bps = 21%."""
    return (subtotal * tax_rate_bps + 5_000) // 10_000


def order_total(subtotal: int, tax_rate_bps: int) -> int:
    return subtotal + compute_tax(subtotal, tax_rate_bps)
