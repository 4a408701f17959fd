"""Caller identity for the procurement platform.

Sessions are issued by the external identity provider as HS256 JWTs whose
``sub`` claim is the profile id. The API layer resolves them into an
``AuthContext`` that is passed explicitly to every core operation.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from procurement.core.config import get_settings

ADMIN_ROLE = "admin"
SUPPLIER_ROLE = "supplier"
USER_ROLE = "user"

ROLES = (ADMIN_ROLE, SUPPLIER_ROLE, USER_ROLE)


@dataclass(frozen=True)
class AuthContext:
    """The authenticated caller: who they are and what role they hold."""
    user_id: UUID
    role: str
    email: str
    supplier_id: Optional[UUID] = None

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def is_supplier(self) -> bool:
        return self.supplier_id is not None

    @classmethod
    def from_profile(cls, profile) -> "AuthContext":
        return cls(
            user_id=profile.id,
            role=profile.role,
            email=profile.email.lower(),
            supplier_id=profile.supplier_id,
        )


def create_access_token(user_id: UUID, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token for a profile."""
    settings = get_settings()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode = {
        "sub": str(user_id),
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def decode_token(token: str) -> Optional[UUID]:
    """Decode and validate JWT token. Returns the profile id if valid."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
        user_id: str = payload.get("sub")
        if user_id is None or payload.get("type", "access") != "access":
            return None
        return UUID(user_id)
    except (JWTError, ValueError):
        return None
