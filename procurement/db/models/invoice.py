"""Supplier invoice model."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class InvoiceStatus(str, Enum):
    RECIBIDA = "recibida"
    VALIDADA = "validada"
    EN_PAGO = "en_pago"
    PAGADA = "pagada"
    RECHAZADA = "rechazada"


# Allowed moves; pagada and rechazada are final
INVOICE_TRANSITIONS = {
    InvoiceStatus.RECIBIDA.value: {InvoiceStatus.VALIDADA.value, InvoiceStatus.RECHAZADA.value},
    InvoiceStatus.VALIDADA.value: {InvoiceStatus.EN_PAGO.value, InvoiceStatus.RECHAZADA.value},
    InvoiceStatus.EN_PAGO.value: {InvoiceStatus.PAGADA.value, InvoiceStatus.RECHAZADA.value},
}


class Invoice(Base):
    """An invoice a supplier raises against its awarded proposal."""
    __tablename__ = "invoices"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    proposal_id = Column(UUID(as_uuid=True), ForeignKey("proposals.id", ondelete="RESTRICT"), nullable=False, index=True)
    service_order_id = Column(
        UUID(as_uuid=True),
        ForeignKey("service_orders.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    invoice_url = Column(String(512), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)  # RD$
    status = Column(String(50), nullable=False, default=InvoiceStatus.RECIBIDA.value, index=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    proposal = relationship("Proposal")
    service_order = relationship("ServiceOrder")

    def can_move_to(self, status: str) -> bool:
        return status in INVOICE_TRANSITIONS.get(self.status, set())

    def __repr__(self) -> str:
        return f"<Invoice {self.id} proposal={self.proposal_id} [{self.status}]>"
