"""Tender management API endpoints."""

import logging
from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.api.schemas import SuccessResponse
from procurement.core.errors import ConflictError, InvalidInputError, NotFoundError
from procurement.core.events import EntityTypes, EventActions, log_event
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import Approval, Invoice, Proposal, ServiceOrder, Tender, TenderStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tenders", tags=["tenders"])

ORDER_COLUMNS = {
    "code": Tender.code,
    "deadline": Tender.deadline,
    "created_at": Tender.created_at,
}


# Schemas
class TenderCreate(BaseModel):
    code: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    budget: float = Field(..., gt=0)
    delivery_max_months: int = Field(..., gt=0)
    deadline: datetime
    status: TenderStatus = TenderStatus.BORRADOR


class TenderUpdate(BaseModel):
    code: Optional[str] = Field(None, min_length=1, max_length=100)
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    budget: Optional[float] = Field(None, gt=0)
    delivery_max_months: Optional[int] = Field(None, gt=0)
    deadline: Optional[datetime] = None
    status: Optional[TenderStatus] = None


class TenderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    code: str
    title: str
    description: Optional[str]
    budget: float
    delivery_max_months: int
    deadline: datetime
    status: str
    created_by: Optional[UUID]
    created_at: datetime
    updated_at: datetime


class TenderListResponse(BaseModel):
    items: List[TenderResponse]
    total: int
    limit: int
    offset: int


def to_naive_utc(value: datetime) -> datetime:
    """Timestamps are stored as naive UTC."""
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _ensure_future(deadline: datetime) -> datetime:
    deadline = to_naive_utc(deadline)
    if deadline <= datetime.utcnow():
        raise InvalidInputError(
            "Deadline must be in the future",
            [{"field": "deadline", "message": "must be in the future"}],
        )
    return deadline


def _ensure_code_free(db: Session, code: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(Tender.id).filter(Tender.code == code)
    if exclude_id is not None:
        query = query.filter(Tender.id != exclude_id)
    if query.first() is not None:
        raise ConflictError(f"A tender with code {code} already exists")


def _get_tender(db: Session, tender_id: UUID) -> Tender:
    tender = db.query(Tender).filter(Tender.id == tender_id).first()
    if not tender:
        raise NotFoundError("Tender not found")
    return tender


def _ensure_deletable(db: Session, tender: Tender) -> None:
    """Approvals and purchasing records outlive a tender; refuse to drop them."""
    proposal_ids = select(Proposal.id).where(Proposal.tender_id == tender.id)

    has_approvals = db.query(Approval.id).filter(
        or_(Approval.tender_id == tender.id, Approval.proposal_id.in_(proposal_ids))
    ).first()
    if has_approvals:
        raise ConflictError(f"Tender {tender.code} has approvals and cannot be deleted")

    has_orders = db.query(ServiceOrder.id).filter(ServiceOrder.proposal_id.in_(proposal_ids)).first()
    has_invoices = db.query(Invoice.id).filter(Invoice.proposal_id.in_(proposal_ids)).first()
    if has_orders or has_invoices:
        raise ConflictError(f"Tender {tender.code} has service orders or invoices and cannot be deleted")


# Endpoints
@router.get("", response_model=TenderListResponse)
@require_permission("tenders:list")
async def list_tenders(
    status_filter: Optional[TenderStatus] = Query(None, alias="status"),
    q: Optional[str] = Query(None, description="Matches code or title"),
    order_by: Literal["code", "deadline", "created_at"] = "created_at",
    order_dir: Literal["asc", "desc"] = "desc",
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """List tenders with filtering and ordering."""
    query = db.query(Tender)

    if status_filter:
        query = query.filter(Tender.status == status_filter.value)
    if q:
        pattern = f"%{q.strip()}%"
        query = query.filter(or_(Tender.code.ilike(pattern), Tender.title.ilike(pattern)))

    total = query.count()

    column = ORDER_COLUMNS[order_by]
    query = query.order_by(column.asc() if order_dir == "asc" else column.desc())
    tenders = query.offset(offset).limit(limit).all()

    return TenderListResponse(
        items=[TenderResponse.model_validate(t) for t in tenders],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=TenderResponse, status_code=status.HTTP_201_CREATED)
@require_permission("tenders:manage")
async def create_tender(
    data: TenderCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Create a tender. New tenders normally start as ``borrador``."""
    deadline = _ensure_future(data.deadline)
    _ensure_code_free(db, data.code)

    tender = Tender(
        code=data.code,
        title=data.title,
        description=data.description,
        budget=data.budget,
        delivery_max_months=data.delivery_max_months,
        deadline=deadline,
        status=data.status.value,
        created_by=current_user.user_id,
    )
    db.add(tender)
    db.flush()

    log_event(
        db,
        EntityTypes.TENDER,
        tender.id,
        EventActions.CREATED,
        {"code": tender.code, "title": tender.title, "status": tender.status},
        actor_id=current_user.user_id,
    )
    db.commit()
    db.refresh(tender)

    logger.info("Tender %s created by %s", tender.code, current_user.email)
    return TenderResponse.model_validate(tender)


@router.patch("/{tender_id}", response_model=TenderResponse)
@require_permission("tenders:manage")
async def update_tender(
    tender_id: UUID,
    data: TenderUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Partially update a tender."""
    tender = _get_tender(db, tender_id)
    changes = data.model_dump(exclude_unset=True)

    if changes.get("code") and changes["code"] != tender.code:
        _ensure_code_free(db, changes["code"], exclude_id=tender.id)
    if changes.get("deadline") is not None:
        changes["deadline"] = _ensure_future(changes["deadline"])
    if changes.get("status") is not None:
        changes["status"] = TenderStatus(changes["status"]).value

    old_status = tender.status
    for field, value in changes.items():
        if value is None and field != "description":
            continue
        setattr(tender, field, value)
    db.flush()

    log_event(
        db,
        EntityTypes.TENDER,
        tender.id,
        EventActions.UPDATED,
        {"fields": sorted(changes)},
        actor_id=current_user.user_id,
    )
    if tender.status != old_status:
        log_event(
            db,
            EntityTypes.TENDER,
            tender.id,
            EventActions.STATUS_CHANGED,
            {"old_status": old_status, "new_status": tender.status},
            actor_id=current_user.user_id,
        )
    db.commit()
    db.refresh(tender)

    return TenderResponse.model_validate(tender)


@router.delete("/{tender_id}", response_model=SuccessResponse)
@require_permission("tenders:manage")
async def delete_tender(
    tender_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    tender = _get_tender(db, tender_id)
    code = tender.code
    _ensure_deletable(db, tender)

    db.delete(tender)
    db.flush()
    log_event(
        db,
        EntityTypes.TENDER,
        tender_id,
        EventActions.DELETED,
        {"code": code},
        actor_id=current_user.user_id,
    )
    db.commit()

    logger.info("Tender %s deleted by %s", code, current_user.email)
    return SuccessResponse(message=f"Tender {code} deleted")
