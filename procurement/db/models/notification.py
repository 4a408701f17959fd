"""In-app notification model."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, JSON, ForeignKey, Boolean, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class NotificationType(str, Enum):
    """Notification categories shown in the bell menu."""
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    TENDER = "tender"
    PROPOSAL = "proposal"
    APPROVAL = "approval"
    INVOICE = "invoice"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(String(20), nullable=False, default=NotificationType.INFO.value, index=True)

    # Link back to the subject
    entity_type = Column(String(50), nullable=True, index=True)
    entity_id = Column(UUID(as_uuid=True), nullable=True)
    action_url = Column(String(512), nullable=True)
    extra_data = Column("metadata", JSON, nullable=False, default=dict)

    read = Column(Boolean, nullable=False, default=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    user = relationship("Profile", back_populates="notifications")

    def __repr__(self) -> str:
        return f"<Notification {self.type} to {self.user_id} read={self.read}>"
