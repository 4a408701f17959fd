import logging
from typing import Generator, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from procurement.core.errors import UnauthenticatedError
from procurement.core.security import AuthContext, decode_token
from procurement.db.models import Profile
from procurement.db.session import SessionLocal

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


def get_db() -> Generator:
    """Database session dependency. Rolls back when the request fails."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_optional_user(
    db: Session = Depends(get_db),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Optional[AuthContext]:
    """Resolve the bearer JWT to an ``AuthContext``, or None when absent or invalid."""
    if credentials is None or not credentials.credentials:
        return None

    user_id = decode_token(credentials.credentials)
    if user_id is None:
        return None

    profile = db.query(Profile).filter(Profile.id == user_id).first()
    if profile is None or not profile.is_active:
        logger.info("Rejected token for unknown or inactive profile %s", user_id)
        return None

    return AuthContext.from_profile(profile)


def get_current_user(
    current_user: Optional[AuthContext] = Depends(get_optional_user),
) -> AuthContext:
    """Get the authenticated caller or fail with 401."""
    if current_user is None:
        raise UnauthenticatedError("Could not validate credentials")
    return current_user
