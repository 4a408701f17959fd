"""Permission model for the procurement platform RBAC.

Permission string format: "resource:action"
Examples:
  - approvals:create
  - tenders:manage
  - events:list
"""

from enum import Enum
from typing import NamedTuple


class Resource(str, Enum):
    """Resources that can be protected by permissions."""

    APPROVALS = "approvals"           # Sign-off requests
    TENDERS = "tenders"               # Procurement calls
    PROPOSALS = "proposals"           # Supplier offers
    SUPPLIERS = "suppliers"           # Supplier registry
    NOTIFICATIONS = "notifications"   # In-app notifications
    EVENTS = "events"                 # Audit trail
    SERVICE_ORDERS = "service_orders"  # Purchase orders for awarded proposals
    INVOICES = "invoices"             # Supplier invoices
    RFP_DOCS = "rfp_docs"             # Documents published with a tender


class Action(str, Enum):
    """Actions that can be performed on resources."""

    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"
    LIST = "list"
    MANAGE = "manage"       # Full management (create/update/delete)
    SUBMIT = "submit"       # Supplier submissions


class Permission(NamedTuple):
    """A permission is a combination of resource and action."""
    resource: Resource
    action: Action

    def __str__(self) -> str:
        return f"{self.resource.value}:{self.action.value}"

    @classmethod
    def from_string(cls, perm_str: str) -> "Permission":
        """Parse a permission string like 'tenders:read'."""
        parts = perm_str.split(":")
        if len(parts) != 2:
            raise ValueError(f"Invalid permission format: {perm_str}")
        return cls(Resource(parts[0]), Action(parts[1]))
