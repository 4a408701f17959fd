"""Supplier registry model."""

import uuid
from datetime import datetime
from enum import Enum
from sqlalchemy import Column, String, DateTime, JSON, Boolean, Integer
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class SupplierStatus(str, Enum):
    ACTIVO = "activo"
    INACTIVO = "inactivo"
    SUSPENDIDO = "suspendido"


class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False, index=True)
    rnc = Column(String(50), nullable=True, index=True)  # tax registry number
    status = Column(String(20), nullable=False, default=SupplierStatus.ACTIVO.value, index=True)
    certified = Column(Boolean, nullable=False, default=False)
    certifications = Column(JSON, nullable=False, default=list)
    experience_years = Column(Integer, nullable=False, default=0)
    support_months = Column(Integer, nullable=False, default=0)
    contact_email = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    profiles = relationship("Profile", back_populates="supplier")
    proposals = relationship("Proposal", back_populates="supplier")

    def __repr__(self) -> str:
        return f"<Supplier {self.name} [{self.status}]>"
