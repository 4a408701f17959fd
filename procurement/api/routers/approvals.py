"""Approval workflow API endpoints."""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.core.approval import ApprovalDecision, ApprovalScope, ApprovalService
from procurement.core.approval.schemas import (
    ApprovalDecide,
    ApprovalListResponse,
    ApprovalResponse,
    ApprovalWithToken,
)
from procurement.core.config import get_settings
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext

router = APIRouter(prefix="/approvals", tags=["approvals"])
settings = get_settings()


@router.get("", response_model=ApprovalListResponse)
@require_permission("approvals:list")
async def list_approvals(
    proposal_id: Optional[UUID] = None,
    tender_id: Optional[UUID] = None,
    scope: Optional[ApprovalScope] = None,
    decision: Optional[ApprovalDecision] = None,
    approver_email: Optional[str] = Query(None, description="Admins only; ignored for other roles"),
    limit: int = Query(settings.approvals_page_size, ge=1, le=settings.max_page_size),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """List approvals visible to the caller, pending first."""
    return ApprovalService(db).list_approvals(
        current_user,
        proposal_id=proposal_id,
        tender_id=tender_id,
        scope=scope,
        decision=decision,
        approver_email=approver_email,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=ApprovalWithToken, status_code=status.HTTP_201_CREATED)
@require_permission("approvals:create")
async def create_approval(
    payload: Any = Body(...),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """
    Create an approval for a proposal or a tender.

    The response is the only place the live token is returned; deliver
    it to the approver out of band.
    """
    approval = ApprovalService(db).create_approval(current_user, payload)
    db.commit()
    return approval


@router.patch("", response_model=ApprovalResponse)
async def decide_approval(
    data: ApprovalDecide,
    db: Session = Depends(get_db),
):
    """Approve or reject using the approval token. No session required."""
    approval = ApprovalService(db).decide(data.token, data.decision, data.comment)
    db.commit()
    return approval


@router.get("/{approval_id}", response_model=ApprovalResponse)
@require_permission("approvals:read")
async def get_approval(
    approval_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    return ApprovalService(db).get_approval(current_user, approval_id)


@router.post("/{approval_id}/reissue", response_model=ApprovalWithToken)
@require_permission("approvals:manage")
async def reissue_approval(
    approval_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Issue a new token for a pending approval whose token expired."""
    approval = ApprovalService(db).reissue(current_user, approval_id)
    db.commit()
    return approval
