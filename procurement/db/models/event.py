"""Audit event model.

Append-only: rows are written once by the audit emitter and never
updated or deleted by the application.
"""

import uuid
from datetime import datetime
from typing import Optional, Dict, Any
from sqlalchemy import Column, String, DateTime, JSON
from sqlalchemy.dialects.postgresql import UUID

from procurement.db.base import Base


class Event(Base):
    """Immutable record of a business action on an entity."""
    __tablename__ = "events"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Subject
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    action = Column(String(50), nullable=False, index=True)

    # Context
    payload = Column(JSON, nullable=False, default=dict)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)  # None for token-authenticated actions
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Event {self.entity_type}:{self.action} {self.entity_id}>"

    @classmethod
    def create_entry(
        cls,
        entity_type: str,
        entity_id: uuid.UUID,
        action: str,
        *,
        payload: Optional[Dict[str, Any]] = None,
        user_id: Optional[uuid.UUID] = None,
    ) -> "Event":
        """
        Factory method to create a new event entry.

        Args:
            entity_type: Type of entity (e.g., 'approval', 'tender', 'proposal')
            entity_id: ID of the affected entity
            action: Action performed (e.g., 'created', 'approved', 'status_changed')
            payload: Additional context, already redacted
            user_id: ID of the acting profile (None when no session is involved)
        """
        return cls(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            payload=payload or {},
            user_id=user_id,
        )
