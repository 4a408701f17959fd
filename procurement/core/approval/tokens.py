"""Approval token issuance.

Tokens are 32 random bytes from the OS CSPRNG, hex-encoded to a fixed
64-character string, and expire seven days after issuance.
"""

import secrets
from datetime import datetime, timedelta
from typing import Callable, Optional

TOKEN_BYTES = 32
TOKEN_LENGTH = TOKEN_BYTES * 2
TOKEN_TTL = timedelta(days=7)


def generate_approval_token() -> str:
    """Return a new 64-character hex token."""
    return secrets.token_hex(TOKEN_BYTES)


def issue_token(now: Optional[Callable[[], datetime]] = None) -> tuple[str, datetime]:
    """Generate an approval token.

    Returns:
        (token, expires_at) tuple
        - token: The bearer secret delivered to the approver
        - expires_at: Issuance time plus the fixed token lifetime (naive UTC)
    """
    issued_at = (now or datetime.utcnow)()
    return generate_approval_token(), issued_at + TOKEN_TTL


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """A token is usable up to and including its expiry instant."""
    return now > expires_at
