"""RFP document model."""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Boolean, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class RfpDoc(Base):
    """
    A document published with a tender.

    ``required_fields`` lists what suppliers must fill in when they answer it.
    """
    __tablename__ = "rfp_docs"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tender_id = Column(UUID(as_uuid=True), ForeignKey("tenders.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    file_url = Column(String(512), nullable=True)
    required_fields = Column(JSON, nullable=False, default=list)
    is_mandatory = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    tender = relationship("Tender", back_populates="rfp_docs")

    def __repr__(self) -> str:
        return f"<RfpDoc {self.title!r} tender={self.tender_id}>"
