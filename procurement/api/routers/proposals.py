"""Supplier proposal API endpoints."""

import logging
from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from procurement.api.deps import get_db, get_current_user
from procurement.core.errors import ConflictError, ForbiddenError, NotFoundError, UnprocessableError
from procurement.core.events import EntityTypes, EventActions, log_event
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import Proposal, ProposalStatus, Tender, TenderStatus
from procurement.services import NotificationService, NotificationTemplates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proposals", tags=["proposals"])

ORDER_COLUMNS = {
    "created_at": Proposal.created_at,
    "amount": Proposal.amount,
    "delivery_months": Proposal.delivery_months,
}


# Schemas
class ProposalCreate(BaseModel):
    tender_id: UUID
    amount: float = Field(..., gt=0)
    delivery_months: int = Field(..., gt=0)
    doc_url: Optional[str] = Field(None, max_length=512, description="Storage path of the uploaded document")


class ProposalStatusUpdate(BaseModel):
    status: ProposalStatus


class TenderRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    title: str
    status: str


class SupplierRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str


class ProposalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    tender_id: UUID
    supplier_id: UUID
    amount: float
    delivery_months: int
    status: str
    doc_url: Optional[str]
    created_at: datetime
    updated_at: datetime
    tender: Optional[TenderRef] = None
    supplier: Optional[SupplierRef] = None


class ProposalListResponse(BaseModel):
    items: List[ProposalResponse]
    total: int
    limit: int
    offset: int


# Endpoints
@router.get("", response_model=ProposalListResponse)
@require_permission("proposals:list")
async def list_proposals(
    tender_id: Optional[UUID] = None,
    status_filter: Optional[ProposalStatus] = Query(None, alias="status"),
    order_by: Literal["created_at", "amount", "delivery_months"] = "created_at",
    order_dir: Literal["asc", "desc"] = "desc",
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """
    List proposals.

    Admins see every proposal; supplier users only their own supplier's.
    """
    query = db.query(Proposal)

    if not current_user.is_admin:
        if not current_user.is_supplier:
            raise ForbiddenError("No supplier is linked to this account")
        query = query.filter(Proposal.supplier_id == current_user.supplier_id)

    if tender_id:
        query = query.filter(Proposal.tender_id == tender_id)
    if status_filter:
        query = query.filter(Proposal.status == status_filter.value)

    total = query.count()

    column = ORDER_COLUMNS[order_by]
    proposals = (
        query.options(joinedload(Proposal.tender), joinedload(Proposal.supplier))
        .order_by(column.asc() if order_dir == "asc" else column.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return ProposalListResponse(
        items=[ProposalResponse.model_validate(p) for p in proposals],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=ProposalResponse, status_code=status.HTTP_201_CREATED)
@require_permission("proposals:submit")
async def create_proposal(
    data: ProposalCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Submit a proposal for an open tender on behalf of the caller's supplier."""
    if not current_user.is_supplier:
        raise ForbiddenError("Only supplier accounts can submit proposals")

    tender = db.query(Tender).filter(Tender.id == data.tender_id).first()
    if not tender:
        raise NotFoundError("Tender not found")
    if tender.status != TenderStatus.ABIERTA.value:
        raise UnprocessableError("Tender is not open for proposals")
    if tender.deadline < datetime.utcnow():
        raise UnprocessableError("Tender deadline has passed")

    existing = db.query(Proposal.id).filter(
        Proposal.tender_id == tender.id,
        Proposal.supplier_id == current_user.supplier_id,
    ).first()
    if existing:
        raise ConflictError("A proposal for this tender already exists")

    proposal = Proposal(
        tender_id=tender.id,
        supplier_id=current_user.supplier_id,
        amount=data.amount,
        delivery_months=data.delivery_months,
        doc_url=data.doc_url,
    )
    try:
        with db.begin_nested():
            db.add(proposal)
            db.flush()
    except IntegrityError as exc:
        raise ConflictError("A proposal for this tender already exists") from exc

    log_event(
        db,
        EntityTypes.PROPOSAL,
        proposal.id,
        EventActions.CREATED,
        {
            "tender_id": tender.id,
            "supplier_id": proposal.supplier_id,
            "amount": data.amount,
            "delivery_months": data.delivery_months,
        },
        actor_id=current_user.user_id,
    )

    notifications = NotificationService(db)
    notifications.send_safely(
        notifications.notify_admins,
        **NotificationTemplates.proposal_received(tender.title, proposal.supplier.name, proposal.id),
    )

    db.commit()
    db.refresh(proposal)

    logger.info("Proposal %s submitted for tender %s", proposal.id, tender.code)
    return ProposalResponse.model_validate(proposal)


@router.patch("/{proposal_id}/status", response_model=ProposalResponse)
@require_permission("proposals:manage")
async def update_proposal_status(
    proposal_id: UUID,
    data: ProposalStatusUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Move a proposal through evaluation and tell its supplier."""
    proposal = db.query(Proposal).filter(Proposal.id == proposal_id).first()
    if not proposal:
        raise NotFoundError("Proposal not found")

    old_status = proposal.status
    proposal.status = data.status.value
    db.flush()

    if old_status != proposal.status:
        log_event(
            db,
            EntityTypes.PROPOSAL,
            proposal.id,
            EventActions.STATUS_CHANGED,
            {"old_status": old_status, "new_status": proposal.status},
            actor_id=current_user.user_id,
        )
        notifications = NotificationService(db)
        notifications.send_safely(
            notifications.notify_supplier,
            proposal.supplier_id,
            **NotificationTemplates.proposal_status_changed(
                proposal.tender.title, proposal.status, proposal.id
            ),
        )

    db.commit()
    db.refresh(proposal)
    return ProposalResponse.model_validate(proposal)
