from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from leunique.models import Column, Entity


# Maximum price: 999,999,999 minor units
MAX_PRICE = 999_999_999
MAX_STOCK = 1_000_000
MAX_ORDER_QUANTITY = 10_000


class ValidationError(ValueError):
    """400-level input problem."""


class ConflictError(ValueError):
    """409-level business rule conflict (e.g., duplicate username)."""


class InsufficientStockError(ConflictError):
    """Requested quantity exceeds the product's remaining stock."""

    def __init__(self, product_id: int, product_name: str, available: int, requested: int):
        self.product_id = product_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}, requested: {requested}"
        )


class ProductUnavailableError(ValidationError):
    """Order line references a missing or deactivated product."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} not found")


@dataclass(frozen=True)
class ModelValidationPolicy:
    """
    Central policy layer:
    - writable_fields: what clients are allowed to set (security boundary)
    - required_on_create: fields required for POST
    """
    writable_fields: set[str]
    required_on_create: set[str] = None  # type: ignore


def _coerce_value(key: str, col, value: Any):
    kind = col.kind

    if value is None:
        return None

    # Integers - strict validation to reject floats and scientific notation
    if kind is int:
        # Already an int (but not bool which is a subclass of int)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped:
                raise ValidationError(f"{key} must be an integer")
            if 'e' in stripped.lower():
                raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
            if '.' in stripped:
                raise ValidationError(f"{key} must be an integer (no decimals)")
            try:
                return int(stripped)
            except ValueError:
                raise ValidationError(f"{key} must be an integer")
        if isinstance(value, float):
            raise ValidationError(f"{key} must be an integer, not a decimal")
        raise ValidationError(f"{key} must be an integer")

    if kind is bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
            return value.strip().lower() == "true"
        raise ValidationError(f"{key} must be a boolean")

    if isinstance(kind, type) and issubclass(kind, Enum):
        if isinstance(value, kind):
            return value
        try:
            return kind(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(member.value for member in kind)
            raise ValidationError(f"{key} must be one of: {allowed}")

    if kind is str:
        if isinstance(value, (dict, list, bool)):
            raise ValidationError(f"{key} must be a string")
        return str(value).strip()

    return value


def validate_payload(
    *,
    model: type[Entity],
    payload: dict,
    policy: ModelValidationPolicy,
    partial: bool,
) -> dict:
    """
    Validates + normalizes incoming JSON against:
    - the model's COLUMNS metadata (nullable, type, max length)
    - a policy allowlist (writable_fields)
    - required_on_create (if partial=False)
    Returns a cleaned patch dict keyed by Python attribute name.

    partial=False: create semantics (enforce required_on_create)
    partial=True: patch semantics (validate only provided keys)
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    required = policy.required_on_create or set()
    if not partial:
        missing = sorted(f for f in required if payload.get(f) is None)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    cols = model.COLUMNS

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")
        if k not in cols:
            raise ValidationError(f"Unknown field: {k}")

    patch: dict = {}

    for k, raw in payload.items():
        col = cols[k]

        if raw is None:
            if not col.nullable:
                raise ValidationError(f"{k} cannot be null")
            patch[col.attr] = None
            continue

        val = _coerce_value(k, col, raw)

        if col.kind is str and isinstance(val, str):
            if val == "":
                if not col.nullable:
                    raise ValidationError(f"{k} cannot be blank")
                val = None
            elif col.max_length and len(val) > col.max_length:
                raise ValidationError(f"{k} exceeds max length {col.max_length}")

        patch[col.attr] = val

    return patch


def enforce_rules_product(patch: dict) -> None:
    """
    Business rules that are not captured by column metadata alone.
    Keep these small and centralized.
    """
    if patch.get("price") is not None:
        price = patch["price"]
        if price < 0:
            raise ValidationError("price must be >= 0")
        if price > MAX_PRICE:
            raise ValidationError(f"price cannot exceed {MAX_PRICE}")

    if patch.get("stock") is not None:
        stock = patch["stock"]
        if stock < 0:
            raise ValidationError("stock must be >= 0")
        if stock > MAX_STOCK:
            raise ValidationError(f"stock cannot exceed {MAX_STOCK}")


def enforce_rules_contact(patch: dict) -> None:
    email = patch.get("email")
    if email is not None and ("@" not in email or email.startswith("@") or email.endswith("@")):
        raise ValidationError("email must be a valid email address")


def parse_order_lines(raw_items) -> list[tuple[int, int]]:
    """
    Normalize order lines to (product_id, quantity) pairs.

    Duplicate product lines are merged so the stock check sees the total
    requested quantity per product.
    """
    if not isinstance(raw_items, list) or not raw_items:
        raise ValidationError("items must be a non-empty list")

    merged: dict[int, int] = {}
    for index, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{index}] must be an object")
        product_id = coerce_int(f"items[{index}].productId", raw.get("productId"))
        quantity = coerce_int(f"items[{index}].quantity", raw.get("quantity"))
        if quantity <= 0:
            raise ValidationError(f"items[{index}].quantity must be > 0")
        if quantity > MAX_ORDER_QUANTITY:
            raise ValidationError(f"items[{index}].quantity cannot exceed {MAX_ORDER_QUANTITY}")
        merged[product_id] = merged.get(product_id, 0) + quantity

    return list(merged.items())


def coerce_int(key: str, value: Any) -> int:
    if value is None:
        raise ValidationError(f"{key} is required")
    return _coerce_value(key, Column(key, int), value)
