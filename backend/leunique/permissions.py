"""
Role and capability definitions.

WHY: Roles are a closed set. Authorization predicates never compare role
strings directly; they look capabilities up in ROLE_CAPABILITIES, so adding
or re-ranking a role is a change to this module only.
"""

from enum import Enum


class Role(str, Enum):
    VENDOR = "vendor"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @property
    def rank(self) -> int:
        return ROLE_RANK[self]

    def at_least(self, other: "Role") -> bool:
        return self.rank >= other.rank


ROLE_RANK = {
    Role.VENDOR: 10,
    Role.ADMIN: 20,
    Role.SUPER_ADMIN: 30,
}


# =============================================================================
# CAPABILITIES
# =============================================================================

class Capability:
    DASHBOARD_ACCESS = "DASHBOARD_ACCESS"      # any signed-in user
    ADMIN_ACCESS = "ADMIN_ACCESS"              # admin-or-above routes
    SUPER_ADMIN_ACCESS = "SUPER_ADMIN_ACCESS"  # super-admin-only routes
    VIEW_ALL_CLIENTS = "VIEW_ALL_CLIENTS"
    ASSIGN_CLIENTS = "ASSIGN_CLIENTS"
    VIEW_ALL_ORDERS = "VIEW_ALL_ORDERS"
    MANAGE_PRODUCTS = "MANAGE_PRODUCTS"
    MANAGE_ORDER_STATUS = "MANAGE_ORDER_STATUS"
    VIEW_USERS = "VIEW_USERS"
    REGISTER_VENDORS = "REGISTER_VENDORS"
    MANAGE_USERS = "MANAGE_USERS"
    GRANT_ROLES = "GRANT_ROLES"


_VENDOR_CAPABILITIES = frozenset({
    Capability.DASHBOARD_ACCESS,
})

_ADMIN_CAPABILITIES = _VENDOR_CAPABILITIES | {
    Capability.ADMIN_ACCESS,
    Capability.VIEW_ALL_CLIENTS,
    Capability.ASSIGN_CLIENTS,
    Capability.VIEW_ALL_ORDERS,
    Capability.MANAGE_PRODUCTS,
    Capability.MANAGE_ORDER_STATUS,
    Capability.VIEW_USERS,
    Capability.REGISTER_VENDORS,
}

_SUPER_ADMIN_CAPABILITIES = _ADMIN_CAPABILITIES | {
    Capability.SUPER_ADMIN_ACCESS,
    Capability.MANAGE_USERS,
    Capability.GRANT_ROLES,
}

ROLE_CAPABILITIES: dict[Role, frozenset[str]] = {
    Role.VENDOR: _VENDOR_CAPABILITIES,
    Role.ADMIN: frozenset(_ADMIN_CAPABILITIES),
    Role.SUPER_ADMIN: frozenset(_SUPER_ADMIN_CAPABILITIES),
}


def parse_role(value) -> Role:
    """Raises ValueError for anything outside the closed role set."""
    if isinstance(value, Role):
        return value
    return Role(str(value).strip().lower())


def role_has_capability(role: Role, capability: str) -> bool:
    return capability in ROLE_CAPABILITIES.get(role, frozenset())
