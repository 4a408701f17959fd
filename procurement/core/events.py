"""Audit event emitter.

Business operations record what happened through ``log_event``. Writing
an event is best-effort: a failure is logged as a warning and never
fails the operation that triggered it.
"""

import logging
import uuid
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from procurement.db.models.event import Event

logger = logging.getLogger(__name__)


class EventActions:
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    STATUS_CHANGED = "status_changed"
    SUBMITTED = "submitted"
    APPROVED = "approved"
    REJECTED = "rejected"
    REISSUED = "reissued"


class EntityTypes:
    TENDER = "tender"
    PROPOSAL = "proposal"
    SUPPLIER = "supplier"
    APPROVAL = "approval"
    NOTIFICATION = "notification"
    SERVICE_ORDER = "service_order"
    INVOICE = "invoice"
    RFP_DOC = "rfp_doc"


# Keys whose values must never reach the audit trail in full
SENSITIVE_FIELDS = {
    "password",
    "token",
    "access_token",
    "refresh_token",
    "api_key",
    "secret",
}


def redact_sensitive(data: Any) -> Any:
    """Redact sensitive fields from data."""
    if isinstance(data, dict):
        return {
            k: "[REDACTED]" if k.lower() in SENSITIVE_FIELDS else redact_sensitive(v)
            for k, v in data.items()
        }
    elif isinstance(data, list):
        return [redact_sensitive(item) for item in data]
    return data


def _jsonable(value: Any) -> Any:
    """Coerce ids, timestamps and decimals so the payload fits a JSON column."""
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, uuid.UUID):
        return str(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    if value is not None and not isinstance(value, (str, int, float, bool)):
        return str(value)
    return value


def log_event(
    db: Session,
    entity_type: str,
    entity_id: uuid.UUID,
    action: str,
    payload: Optional[Dict[str, Any]] = None,
    actor_id: Optional[uuid.UUID] = None,
) -> Optional[Event]:
    """
    Record an audit event.

    The insert runs in a SAVEPOINT so a failed write only discards the
    event, not the caller's transaction.

    Args:
        db: Session of the business operation
        entity_type: Type of entity (see ``EntityTypes``)
        entity_id: ID of the affected entity
        action: Action performed (see ``EventActions``)
        payload: Additional context; sensitive keys are redacted
        actor_id: Acting profile, None for token-authenticated actions

    Returns:
        The persisted event, or None when the write failed
    """
    entry = Event.create_entry(
        entity_type,
        entity_id,
        action,
        payload=_jsonable(redact_sensitive(payload or {})),
        user_id=actor_id,
    )
    try:
        with db.begin_nested():
            db.add(entry)
            db.flush()
    except Exception:
        logger.warning(
            "Audit logging error for %s %s (%s)", entity_type, entity_id, action, exc_info=True
        )
        return None
    return entry
