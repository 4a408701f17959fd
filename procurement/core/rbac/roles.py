"""Role definitions for the procurement platform.

1. Admin - Full access, runs the approval workflow
2. Supplier - Submits and follows its own proposals and invoices
3. User - Evaluators and approvers; reads tenders and their own approvals
"""

from typing import Dict, List

from procurement.core.security import ADMIN_ROLE, SUPPLIER_ROLE, USER_ROLE
from .permissions import Resource, Action, Permission


def _build_permissions(*perms: tuple) -> List[str]:
    """Build permission strings from (Resource, Action) tuples."""
    return [str(Permission(r, a)) for r, a in perms]


ADMIN_PERMISSIONS = [
    "*:*"  # Global wildcard - all permissions
]

SUPPLIER_PERMISSIONS = _build_permissions(
    (Resource.TENDERS, Action.READ),
    (Resource.TENDERS, Action.LIST),
    (Resource.PROPOSALS, Action.SUBMIT),
    (Resource.PROPOSALS, Action.LIST),
    (Resource.INVOICES, Action.SUBMIT),
    (Resource.INVOICES, Action.LIST),
    (Resource.INVOICES, Action.UPDATE),
    (Resource.INVOICES, Action.DELETE),
    (Resource.RFP_DOCS, Action.READ),
    (Resource.RFP_DOCS, Action.LIST),
    (Resource.APPROVALS, Action.LIST),
    (Resource.APPROVALS, Action.READ),
    (Resource.NOTIFICATIONS, Action.LIST),
    (Resource.NOTIFICATIONS, Action.UPDATE),
    (Resource.NOTIFICATIONS, Action.DELETE),
)

USER_PERMISSIONS = _build_permissions(
    (Resource.TENDERS, Action.READ),
    (Resource.TENDERS, Action.LIST),
    (Resource.RFP_DOCS, Action.READ),
    (Resource.RFP_DOCS, Action.LIST),
    (Resource.APPROVALS, Action.LIST),
    (Resource.APPROVALS, Action.READ),
    (Resource.NOTIFICATIONS, Action.LIST),
    (Resource.NOTIFICATIONS, Action.UPDATE),
    (Resource.NOTIFICATIONS, Action.DELETE),
)

ROLE_PERMISSIONS: Dict[str, List[str]] = {
    ADMIN_ROLE: ADMIN_PERMISSIONS,
    SUPPLIER_ROLE: SUPPLIER_PERMISSIONS,
    USER_ROLE: USER_PERMISSIONS,
}


def get_role_permissions(role: str) -> List[str]:
    """Permission strings granted to a role; unknown roles get none."""
    return list(ROLE_PERMISSIONS.get(role, []))
