"""Supplier proposal model."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Numeric, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class ProposalStatus(str, Enum):
    RECIBIDA = "recibida"
    EN_EVALUACION = "en_evaluacion"
    RECHAZADA = "rechazada"
    ADJUDICADA = "adjudicada"


class Proposal(Base):
    """
    A supplier's offer for a tender.

    Each supplier can submit at most one proposal per tender.
    """
    __tablename__ = "proposals"
    __table_args__ = (
        UniqueConstraint("tender_id", "supplier_id", name="uq_proposals_tender_supplier"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tender_id = Column(UUID(as_uuid=True), ForeignKey("tenders.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(UUID(as_uuid=True), ForeignKey("suppliers.id"), nullable=False, index=True)
    amount = Column(Numeric(14, 2), nullable=False)
    delivery_months = Column(Integer, nullable=False)
    status = Column(String(50), nullable=False, default=ProposalStatus.RECIBIDA.value, index=True)
    doc_url = Column(String(512), nullable=True)  # object storage path
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tender = relationship("Tender", back_populates="proposals")
    supplier = relationship("Supplier", back_populates="proposals")

    def __repr__(self) -> str:
        return f"<Proposal {self.id} tender={self.tender_id} [{self.status}]>"
