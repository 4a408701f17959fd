"""Approval workflow database model.

One row per sign-off request. A row targets exactly one proposal or one
tender, and each target carries at most one approval per scope.
"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, Text, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from procurement.db.base import Base


class Approval(Base):
    """
    A pending or decided sign-off for a proposal or tender.

    ``token`` is the bearer credential for the decision; whoever holds it
    may decide, and only while ``decision`` is pending and the token has
    not expired.
    """
    __tablename__ = "approvals"
    __table_args__ = (
        CheckConstraint(
            "(proposal_id IS NULL) <> (tender_id IS NULL)",
            name="ck_approvals_exactly_one_target",
        ),
        UniqueConstraint("proposal_id", "scope", name="uq_approvals_proposal_scope"),
        UniqueConstraint("tender_id", "scope", name="uq_approvals_tender_scope"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scope = Column(String(50), nullable=False, index=True)

    # Target (exactly one)
    proposal_id = Column(UUID(as_uuid=True), ForeignKey("proposals.id", ondelete="RESTRICT"), nullable=True, index=True)
    tender_id = Column(UUID(as_uuid=True), ForeignKey("tenders.id", ondelete="RESTRICT"), nullable=True, index=True)

    # Approver and decision
    approver_email = Column(String(255), nullable=False, index=True)
    decision = Column(String(20), nullable=False, default="pending", index=True)
    decided_at = Column(DateTime, nullable=True)
    decided_by = Column(String(255), nullable=True)
    comment = Column(Text, nullable=True)

    # Bearer token
    token = Column(String(64), nullable=False, unique=True, index=True)
    expires_at = Column(DateTime, nullable=False)

    created_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships (read-only joins for display)
    proposal = relationship("Proposal")
    tender = relationship("Tender")

    @property
    def target_type(self) -> str:
        return "proposal" if self.proposal_id is not None else "tender"

    @property
    def target_id(self):
        return self.proposal_id if self.proposal_id is not None else self.tender_id

    def __repr__(self) -> str:
        return f"<Approval {self.scope} {self.target_type}={self.target_id} [{self.decision}]>"
