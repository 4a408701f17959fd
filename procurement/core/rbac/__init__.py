"""RBAC (Role-Based Access Control) for the procurement platform.

Defines the permission model, role definitions, and access control utilities.
"""

from .permissions import Permission, Resource, Action
from .roles import ROLE_PERMISSIONS, get_role_permissions
from .checker import PermissionChecker, has_permission, require_permission, ensure_permission

__all__ = [
    "Permission",
    "Resource",
    "Action",
    "ROLE_PERMISSIONS",
    "get_role_permissions",
    "PermissionChecker",
    "has_permission",
    "require_permission",
    "ensure_permission",
]
