"""Purchase (service) order model."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class ServiceOrderStatus(str, Enum):
    EMITIDA = "emitida"
    EN_FIRMA = "en_firma"
    APROBADA = "aprobada"
    RECHAZADA = "rechazada"


class ServiceOrder(Base):
    """
    The purchase order issued to the winner of a tender.

    An awarded proposal gets at most one order; invoices can reference it
    once it is ``aprobada``.
    """
    __tablename__ = "service_orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    proposal_id = Column(
        UUID(as_uuid=True),
        ForeignKey("proposals.id", ondelete="RESTRICT"),
        nullable=False,
        unique=True,
        index=True,
    )
    po_number = Column(String(100), unique=True, nullable=False, index=True)
    pdf_url = Column(String(512), nullable=True)
    status = Column(String(50), nullable=False, default=ServiceOrderStatus.EMITIDA.value, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    proposal = relationship("Proposal")

    def __repr__(self) -> str:
        return f"<ServiceOrder {self.po_number} [{self.status}]>"
