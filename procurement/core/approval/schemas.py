"""Request and response models for the approval workflow."""

from datetime import datetime
from typing import Literal, Optional, List
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .states import ApprovalScope, ApprovalDecision


class ApprovalCreate(BaseModel):
    """Create request. Exactly one of ``proposal_id`` / ``tender_id`` is checked by the service."""
    scope: ApprovalScope
    proposal_id: Optional[UUID] = None
    tender_id: Optional[UUID] = None
    approver_email: EmailStr
    comment: Optional[str] = Field(None, max_length=2000)


class ApprovalDecide(BaseModel):
    """Decision submitted by the token holder."""
    token: str = Field(..., min_length=1)
    decision: Literal["approved", "rejected"]
    comment: Optional[str] = Field(None, max_length=2000)


class TenderSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    title: str
    status: str
    budget: float
    deadline: datetime


class ProposalSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    amount: float
    delivery_months: int
    status: str
    supplier_id: UUID
    tender: Optional[TenderSummary] = None


class ApprovalResponse(BaseModel):
    """Approval as shown in listings. The token is never part of it."""
    id: UUID
    scope: ApprovalScope
    proposal_id: Optional[UUID] = None
    tender_id: Optional[UUID] = None
    approver_email: str
    decision: ApprovalDecision
    decided_at: Optional[datetime] = None
    decided_by: Optional[str] = None
    comment: Optional[str] = None
    expires_at: datetime
    created_at: Optional[datetime] = None
    proposal: Optional[ProposalSummary] = None
    tender: Optional[TenderSummary] = None


class ApprovalWithToken(ApprovalResponse):
    """Returned to the admin on create and reissue only."""
    token: str


class ApprovalListResponse(BaseModel):
    items: List[ApprovalResponse]
    total: int
    limit: int
    offset: int
