"""Tender (public procurement call) model."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class TenderStatus(str, Enum):
    BORRADOR = "borrador"
    ABIERTA = "abierta"
    EN_EVALUACION = "en_evaluacion"
    CERRADA = "cerrada"
    ADJUDICADA = "adjudicada"
    CANCELADA = "cancelada"


class Tender(Base):
    """
    A procurement call suppliers submit proposals to.

    Starts as ``borrador`` and only opens (``abierta``) once its
    ``apertura_tender`` approval is granted.
    """
    __tablename__ = "tenders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    code = Column(String(100), unique=True, nullable=False, index=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    budget = Column(Numeric(14, 2), nullable=False)
    delivery_max_months = Column(Integer, nullable=False)
    deadline = Column(DateTime, nullable=False, index=True)
    status = Column(String(50), nullable=False, default=TenderStatus.BORRADOR.value, index=True)

    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    creator = relationship("Profile")
    proposals = relationship("Proposal", back_populates="tender", cascade="all, delete-orphan")
    rfp_docs = relationship("RfpDoc", back_populates="tender", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Tender {self.code} [{self.status}]>"
