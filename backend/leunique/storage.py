# Overview: Entity store; in-memory maps for every record type, persisted as one JSON snapshot.

"""
Entity Store

WHY: The business runs on a single small process. All records live in
in-memory maps and the full state is written to one JSON document after every
mutation, so a restart resumes exactly where the last successful write left
off.

DESIGN:
- One map per entity type, each with its own id counter. Counters only move
  forward; deleting a record never frees its id. The snapshot keeps the
  counters under "sequences" so ids are not reused across restarts either.
- Reads return copies. Callers never hold a reference into the live maps.
- Every public method runs under one re-entrant lock. Multi-step operations
  (stock reservation, order creation, cancellation, user deletion) are
  therefore atomic with respect to other request threads.
- Snapshot writes go to a temp file in the same directory, are fsynced and
  then renamed over the snapshot, so a crash mid-write leaves the previous
  snapshot intact.

FAILURE POLICY:
- A failed snapshot write is logged and does not undo the in-memory change.
  The store reports itself degraded (persist_error) until a later write
  succeeds; /health surfaces this.
- A snapshot that exists but cannot be parsed is moved aside to
  "<name>.corrupt-<timestamp>" and SnapshotLoadError is raised. Starting from
  seed data on top of a damaged file would silently discard real records.
- An absent snapshot is a first run: seed data is written immediately.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
import threading
from contextlib import contextmanager, suppress
from functools import wraps
from pathlib import Path

from .models import (
    Chat,
    Client,
    ContactMessage,
    Entity,
    NewsletterSubscription,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    User,
    order_total,
)
from .permissions import Role
from .services.password_service import hash_password
from .time_utils import utcnow
from .validation import ConflictError, InsufficientStockError, ProductUnavailableError

logger = logging.getLogger(__name__)


# Snapshot key -> model, in file order
TABLES = (
    ("users", User),
    ("products", Product),
    ("clients", Client),
    ("chats", Chat),
    ("orders", Order),
    ("orderItems", OrderItem),
    ("contactMessages", ContactMessage),
    ("newsletterSubscriptions", NewsletterSubscription),
)

ALWAYS_IMMUTABLE = frozenset({"id", "created_at"})


class SnapshotLoadError(RuntimeError):
    """Snapshot file exists but could not be read or parsed."""

    def __init__(self, path: Path, backup_path: Path | None, cause: Exception):
        self.path = path
        self.backup_path = backup_path
        self.cause = cause
        where = f" (moved to {backup_path})" if backup_path else ""
        super().__init__(f"Cannot load snapshot {path}{where}: {cause}")


class StoreClosedError(RuntimeError):
    """Operation attempted on a store that is not open."""


class _Table:
    """One entity map plus its id counter."""

    def __init__(self, key: str, model: type[Entity]):
        self.key = key
        self.model = model
        self.rows: dict[int, Entity] = {}
        self.next_id = 1
        self.field_names = frozenset(f.name for f in dataclasses.fields(model))

    def insert(self, fields: dict) -> Entity:
        unknown = set(fields) - (self.field_names - {"id"})
        if unknown:
            raise ValueError(f"Unknown {self.key} field(s): {', '.join(sorted(unknown))}")
        row = self.model(id=self.next_id, **fields)
        self.next_id += 1
        self.rows[row.id] = row
        return row

    def replace(self, row_id: int, patch: dict, immutable: frozenset = frozenset()) -> Entity:
        blocked = set(patch) & (ALWAYS_IMMUTABLE | immutable)
        unknown = set(patch) - self.field_names
        if blocked or unknown:
            bad = ", ".join(sorted(blocked | unknown))
            raise ValueError(f"Cannot update {self.key} field(s): {bad}")
        updated = dataclasses.replace(self.rows[row_id], **patch)
        self.rows[row_id] = updated
        return updated

    def get(self, row_id) -> Entity | None:
        row = self.rows.get(row_id)
        return row.copy() if row is not None else None

    def select(self, predicate=None) -> list:
        return [row.copy() for row in self.rows.values() if predicate is None or predicate(row)]

    def load(self, records: list, sequence) -> None:
        rows = {}
        for record in records:
            row = self.model.from_snapshot(record)
            rows[row.id] = row
        self.rows = rows
        self.next_id = max(max(rows, default=0) + 1, int(sequence or 0))

    def dump(self) -> list[dict]:
        return [row.to_snapshot() for row in self.rows.values()]


def _synchronized(method):
    """Run method under the store lock; refuse when the store is closed."""
    @wraps(method)
    def wrapper(self, *args, **kwargs):
        with self._lock:
            if not self.is_open:
                raise StoreClosedError("Entity store is not open")
            return method(self, *args, **kwargs)
    return wrapper


class EntityStore:
    """
    Single source of truth for every persisted record.

    Lifecycle: construct, open() (load or seed), use, close() (final flush).
    create_app() builds one per application; tests build their own.
    """

    def __init__(self, snapshot_path, *, seed: bool = True):
        self.snapshot_path = Path(snapshot_path)
        self.seed_enabled = seed
        self.is_open = False
        self.persist_error: str | None = None
        self.persist_failures = 0
        self.last_persisted_at = None
        self._tables = {key: _Table(key, model) for key, model in TABLES}
        self._lock = threading.RLock()
        self._batch_depth = 0
        self._dirty = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def open(self) -> "EntityStore":
        with self._lock:
            if self.is_open:
                return self

            if self.snapshot_path.exists():
                self._load_snapshot()
                self.is_open = True
                logger.info("Loaded snapshot %s (%s)", self.snapshot_path, self._count_summary())
                return self

            self.is_open = True
            if self.seed_enabled:
                from .seed import populate_sample_data

                logger.info("No snapshot at %s; seeding sample data", self.snapshot_path)
                with self.batch():
                    populate_sample_data(self)
            else:
                logger.info("No snapshot at %s; starting empty", self.snapshot_path)
                self._persist()
            return self

    def close(self) -> None:
        with self._lock:
            if not self.is_open:
                return
            if self._dirty:
                self._persist()
            self.is_open = False

    @property
    def degraded(self) -> bool:
        return self.persist_error is not None

    @contextmanager
    def batch(self):
        """
        Group several mutations into one snapshot write.

        Nested batches write once, when the outermost one exits.
        """
        with self._lock:
            self._batch_depth += 1
            try:
                yield self
            finally:
                self._batch_depth -= 1
                if self._batch_depth == 0 and self._dirty and self.is_open:
                    self._persist()

    # -------------------------------------------------------------------------
    # Snapshot I/O
    # -------------------------------------------------------------------------

    def snapshot(self) -> dict:
        """The document that would be written to disk right now."""
        with self._lock:
            return self._build_document()

    def _build_document(self) -> dict:
        document = {key: table.dump() for key, table in self._tables.items()}
        document["sequences"] = {key: table.next_id for key, table in self._tables.items()}
        return document

    def _commit(self) -> None:
        self._dirty = True
        if self._batch_depth == 0:
            self._persist()

    def _persist(self) -> bool:
        document = self._build_document()
        path = self.snapshot_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    json.dump(document, fh, ensure_ascii=False, indent=2)
                    fh.flush()
                    os.fsync(fh.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                with suppress(OSError):
                    os.unlink(tmp_name)
                raise
        except Exception as exc:
            self.persist_failures += 1
            self.persist_error = f"{type(exc).__name__}: {exc}"
            logger.exception("Snapshot write to %s failed; keeping in-memory state", path)
            return False

        self._dirty = False
        self.persist_error = None
        self.last_persisted_at = utcnow()
        return True

    def _load_snapshot(self) -> None:
        try:
            document = json.loads(self.snapshot_path.read_text(encoding="utf-8"))
            if not isinstance(document, dict):
                raise ValueError("snapshot root must be a JSON object")
            sequences = document.get("sequences") or {}
            for key, table in self._tables.items():
                records = document.get(key) or []
                if not isinstance(records, list):
                    raise ValueError(f"'{key}' must be a list")
                table.load(records, sequences.get(key))
        except (OSError, ValueError, TypeError, KeyError, AttributeError) as exc:
            for key, model in TABLES:
                self._tables[key] = _Table(key, model)
            backup = self._quarantine_snapshot()
            logger.error("Snapshot %s is unreadable: %s", self.snapshot_path, exc)
            raise SnapshotLoadError(self.snapshot_path, backup, exc) from exc

        self._dirty = False

    def _quarantine_snapshot(self) -> Path | None:
        stamp = utcnow().strftime("%Y%m%dT%H%M%S")
        backup = self.snapshot_path.with_name(f"{self.snapshot_path.name}.corrupt-{stamp}")
        try:
            os.replace(self.snapshot_path, backup)
        except OSError:
            logger.exception("Could not move damaged snapshot %s aside", self.snapshot_path)
            return None
        return backup

    def _count_summary(self) -> str:
        return ", ".join(f"{key}={len(table.rows)}" for key, table in self._tables.items())

    @_synchronized
    def counts(self) -> dict[str, int]:
        return {key: len(table.rows) for key, table in self._tables.items()}

    # -------------------------------------------------------------------------
    # Users
    # -------------------------------------------------------------------------

    def _find_user_by_username(self, username: str, exclude_id: int | None = None) -> User | None:
        wanted = username.casefold()
        for user in self._tables["users"].rows.values():
            if user.username.casefold() == wanted and user.id != exclude_id:
                return user
        return None

    @_synchronized
    def get_user(self, user_id: int) -> User | None:
        return self._tables["users"].get(user_id)

    @_synchronized
    def get_user_by_username(self, username: str) -> User | None:
        user = self._find_user_by_username(username)
        return user.copy() if user else None

    @_synchronized
    def list_users(self, role: Role | None = None, active_only: bool = False) -> list[User]:
        return self._tables["users"].select(
            lambda u: (role is None or u.role == role) and (not active_only or u.active)
        )

    def create_user_with_password(self, fields: dict, password: str) -> User:
        """Create a user from a plaintext password (hashed here)."""
        # Hash outside the lock; scrypt is deliberately slow.
        return self.create_user_with_hash(fields, hash_password(password))

    @_synchronized
    def create_user_with_hash(self, fields: dict, password_hash: str) -> User:
        """Create a user whose password is already in stored form."""
        fields = dict(fields)
        fields.pop("password", None)
        username = fields.get("username")
        if not username:
            raise ValueError("username is required")
        if self._find_user_by_username(username):
            raise ConflictError("Username already exists")
        if "role" in fields:
            fields["role"] = Role(fields["role"])
        user = self._tables["users"].insert({**fields, "password": password_hash})
        self._commit()
        return user.copy()

    @_synchronized
    def update_user(self, user_id: int, patch: dict) -> User | None:
        """
        Shallow-merge patch into the user.

        password is not accepted here; use set_user_password().
        """
        table = self._tables["users"]
        if user_id not in table.rows:
            return None
        if "username" in patch and self._find_user_by_username(patch["username"], exclude_id=user_id):
            raise ConflictError("Username already exists")
        if "role" in patch:
            patch = {**patch, "role": Role(patch["role"])}
        user = table.replace(user_id, patch, immutable=frozenset({"password"}))
        self._commit()
        return user.copy()

    def set_user_password(self, user_id: int, password: str) -> User | None:
        return self._set_user_password_hash(user_id, hash_password(password))

    @_synchronized
    def _set_user_password_hash(self, user_id: int, password_hash: str) -> User | None:
        table = self._tables["users"]
        if user_id not in table.rows:
            return None
        user = table.replace(user_id, {"password": password_hash})
        self._commit()
        return user.copy()

    @_synchronized
    def delete_user(self, user_id: int) -> bool:
        """
        Physically remove a user.

        Refused while orders reference the user (their vendorId is fixed).
        Clients owned by the user become unassigned.
        """
        users = self._tables["users"]
        if user_id not in users.rows:
            return False
        if any(o.vendor_id == user_id for o in self._tables["orders"].rows.values()):
            raise ConflictError("User has orders and cannot be deleted; deactivate instead")

        clients = self._tables["clients"]
        for client in list(clients.rows.values()):
            if client.vendor_id == user_id:
                clients.replace(client.id, {"vendor_id": None})
        del users.rows[user_id]
        self._commit()
        return True

    # -------------------------------------------------------------------------
    # Products
    # -------------------------------------------------------------------------

    @_synchronized
    def get_product(self, product_id: int) -> Product | None:
        return self._tables["products"].get(product_id)

    @_synchronized
    def list_products(self, include_inactive: bool = False) -> list[Product]:
        return self._tables["products"].select(lambda p: include_inactive or p.active)

    @_synchronized
    def create_product(self, fields: dict) -> Product:
        product = self._tables["products"].insert(fields)
        self._commit()
        return product.copy()

    @_synchronized
    def update_product(self, product_id: int, patch: dict) -> Product | None:
        table = self._tables["products"]
        if product_id not in table.rows:
            return None
        product = table.replace(product_id, patch)
        self._commit()
        return product.copy()

    def deactivate_product(self, product_id: int) -> Product | None:
        return self.update_product(product_id, {"active": False})

    @_synchronized
    def reserve_stock(self, product_id: int, quantity: int) -> bool:
        """Decrement stock by quantity only if enough remains. Atomic."""
        table = self._tables["products"]
        product = table.rows.get(product_id)
        if product is None or quantity <= 0 or product.stock < quantity:
            return False
        table.replace(product_id, {"stock": product.stock - quantity})
        self._commit()
        return True

    @_synchronized
    def release_stock(self, product_id: int, quantity: int) -> Product | None:
        table = self._tables["products"]
        product = table.rows.get(product_id)
        if product is None:
            return None
        product = table.replace(product_id, {"stock": product.stock + quantity})
        self._commit()
        return product.copy()

    # -------------------------------------------------------------------------
    # Clients and chats
    # -------------------------------------------------------------------------

    @_synchronized
    def get_client(self, client_id: int) -> Client | None:
        return self._tables["clients"].get(client_id)

    @_synchronized
    def list_clients(self, vendor_id: int | None = None) -> list[Client]:
        """All clients, or only those owned by vendor_id."""
        return self._tables["clients"].select(lambda c: vendor_id is None or c.vendor_id == vendor_id)

    @_synchronized
    def create_client(self, fields: dict) -> Client:
        client = self._tables["clients"].insert(fields)
        self._commit()
        return client.copy()

    @_synchronized
    def update_client(self, client_id: int, patch: dict) -> Client | None:
        table = self._tables["clients"]
        if client_id not in table.rows:
            return None
        client = table.replace(client_id, patch)
        self._commit()
        return client.copy()

    @_synchronized
    def get_chat(self, chat_id: int) -> Chat | None:
        return self._tables["chats"].get(chat_id)

    @_synchronized
    def list_chats(self, client_id: int) -> list[Chat]:
        return self._tables["chats"].select(lambda c: c.client_id == client_id)

    @_synchronized
    def create_chat(self, fields: dict) -> Chat:
        chat = self._tables["chats"].insert(fields)
        self._commit()
        return chat.copy()

    # -------------------------------------------------------------------------
    # Orders
    # -------------------------------------------------------------------------

    @_synchronized
    def get_order(self, order_id: int) -> Order | None:
        return self._tables["orders"].get(order_id)

    @_synchronized
    def list_orders(self, vendor_id: int | None = None, status: OrderStatus | None = None) -> list[Order]:
        return self._tables["orders"].select(
            lambda o: (vendor_id is None or o.vendor_id == vendor_id) and (status is None or o.status == status)
        )

    @_synchronized
    def list_order_items(self, order_id: int) -> list[OrderItem]:
        return self._tables["orderItems"].select(lambda i: i.order_id == order_id)

    @_synchronized
    def create_order_with_items(
        self,
        order_fields: dict,
        items: list[tuple[int, int]],
        tax_rate_bps: int = 0,
    ) -> Order:
        """
        Create an order and its items in one step.

        items are (product_id, quantity) pairs. Every line is checked before
        anything changes: a missing or inactive product, or a line asking for
        more than the remaining stock, raises and leaves the store untouched.
        Otherwise stock is decremented, unit prices are snapshotted from the
        current product prices, the total (items + tax) is computed, and one
        snapshot write covers the order, its items and the stock changes.
        """
        if not items:
            raise ValueError("An order needs at least one item")

        products = self._tables["products"]
        requested: dict[int, int] = {}
        for product_id, quantity in items:
            if quantity <= 0:
                raise ValueError("quantity must be positive")
            requested[product_id] = requested.get(product_id, 0) + quantity

        for product_id, quantity in requested.items():
            product = products.rows.get(product_id)
            if product is None or not product.active:
                raise ProductUnavailableError(product_id)
            if product.stock < quantity:
                raise InsufficientStockError(product_id, product.name, product.stock, quantity)

        for product_id, quantity in requested.items():
            products.replace(product_id, {"stock": products.rows[product_id].stock - quantity})

        subtotal = sum(quantity * products.rows[product_id].price for product_id, quantity in items)
        order = self._tables["orders"].insert({
            **order_fields,
            "total_amount": order_total(subtotal, tax_rate_bps),
            "status": OrderStatus.PENDING,
        })
        order_items = self._tables["orderItems"]
        for product_id, quantity in items:
            order_items.insert({
                "order_id": order.id,
                "product_id": product_id,
                "quantity": quantity,
                "unit_price": products.rows[product_id].price,
            })

        self._commit()
        return order.copy()

    @_synchronized
    def set_order_status(self, order_id: int, status: OrderStatus) -> Order | None:
        """
        Move an order through its state machine.

        Cancelling returns every item's quantity to its product's stock in the
        same step.
        """
        orders = self._tables["orders"]
        order = orders.rows.get(order_id)
        if order is None:
            return None

        status = OrderStatus(status)
        if not order.status.can_transition_to(status):
            raise ConflictError(f"Cannot change order status from {order.status.value} to {status.value}")
        if status == order.status:
            return order.copy()

        if status == OrderStatus.CANCELED:
            products = self._tables["products"]
            for item in self._tables["orderItems"].rows.values():
                if item.order_id == order_id and item.product_id in products.rows:
                    stock = products.rows[item.product_id].stock
                    products.replace(item.product_id, {"stock": stock + item.quantity})

        order = orders.replace(order_id, {"status": status})
        self._commit()
        return order.copy()

    def cancel_order(self, order_id: int) -> Order | None:
        return self.set_order_status(order_id, OrderStatus.CANCELED)

    def update_order(self, order_id: int, patch: dict) -> Order | None:
        """Orders only change status after creation."""
        unsupported = set(patch) - {"status"}
        if unsupported:
            raise ValueError(f"Cannot update orders field(s): {', '.join(sorted(unsupported))}")
        if "status" not in patch:
            return self.get_order(order_id)
        return self.set_order_status(order_id, patch["status"])

    # -------------------------------------------------------------------------
    # Public form submissions
    # -------------------------------------------------------------------------

    @_synchronized
    def create_contact_message(self, fields: dict) -> ContactMessage:
        message = self._tables["contactMessages"].insert(fields)
        self._commit()
        return message.copy()

    @_synchronized
    def list_contact_messages(self) -> list[ContactMessage]:
        return self._tables["contactMessages"].select()

    @_synchronized
    def get_newsletter_subscription_by_email(self, email: str) -> NewsletterSubscription | None:
        wanted = email.casefold()
        for sub in self._tables["newsletterSubscriptions"].rows.values():
            if sub.email.casefold() == wanted:
                return sub.copy()
        return None

    @_synchronized
    def add_newsletter_subscription(self, fields: dict) -> NewsletterSubscription:
        if self.get_newsletter_subscription_by_email(fields["email"]) is not None:
            raise ConflictError("Email is already subscribed")
        subscription = self._tables["newsletterSubscriptions"].insert(fields)
        self._commit()
        return subscription.copy()

    @_synchronized
    def list_newsletter_subscriptions(self) -> list[NewsletterSubscription]:
        return self._tables["newsletterSubscriptions"].select()
