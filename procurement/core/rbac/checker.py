"""Permission checking utilities for the procurement platform.

Provides decorators and utilities for enforcing RBAC permissions.
"""

from functools import wraps
from typing import Callable, Optional, Union, List

from procurement.core.errors import ForbiddenError, UnauthenticatedError
from procurement.core.security import AuthContext
from .permissions import Permission
from .roles import get_role_permissions


class PermissionChecker:
    """Checks if a role's permission list grants specific permissions."""

    def __init__(self, user_permissions: list[str]):
        self.permissions = set(user_permissions)

    def has_permission(self, permission: Union[str, Permission]) -> bool:
        """Check if user has a specific permission."""
        perm_str = str(permission)

        if perm_str in self.permissions:
            return True

        # Wildcards: resource:* grants all actions on resource, *:* grants everything
        if ":" in perm_str:
            resource = perm_str.split(":")[0]
            if f"{resource}:*" in self.permissions:
                return True
            if "*:*" in self.permissions:
                return True

        return False

    def has_any_permission(self, permissions: List[Union[str, Permission]]) -> bool:
        return any(self.has_permission(p) for p in permissions)

    def has_all_permissions(self, permissions: List[Union[str, Permission]]) -> bool:
        return all(self.has_permission(p) for p in permissions)


def has_permission(auth: Optional[AuthContext], permission: Union[str, Permission]) -> bool:
    """Check if the caller's role grants a permission."""
    if auth is None:
        return False
    return PermissionChecker(get_role_permissions(auth.role)).has_permission(permission)


def ensure_permission(
    auth: Optional[AuthContext],
    permission: Union[str, Permission],
    message: Optional[str] = None,
) -> AuthContext:
    """Raise unless ``auth`` is present and holds ``permission``."""
    if auth is None:
        raise UnauthenticatedError("Authentication required")
    if not has_permission(auth, permission):
        raise ForbiddenError(message or f"Insufficient permissions. Required: {permission}")
    return auth


def require_permission(*permissions: Union[str, Permission], require_all: bool = False):
    """
    Decorator factory for FastAPI endpoints requiring specific permissions.

    Args:
        permissions: One or more permission strings or Permission objects
        require_all: If True, caller must have ALL permissions. Default: any one.

    Usage:
        @router.get("/events")
        @require_permission("events:list")
        async def list_events(current_user: AuthContext = Depends(get_current_user)):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_user = kwargs.get("current_user")
            if current_user is None:
                raise UnauthenticatedError("Authentication required")

            checker = PermissionChecker(get_role_permissions(current_user.role))
            perm_strs = [str(p) for p in permissions]

            if require_all:
                has_access = checker.has_all_permissions(perm_strs)
            else:
                has_access = checker.has_any_permission(perm_strs)

            if not has_access:
                raise ForbiddenError(f"Insufficient permissions. Required: {', '.join(perm_strs)}")

            return await func(*args, **kwargs)

        return wrapper
    return decorator
