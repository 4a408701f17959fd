"""Service (purchase) order API endpoints. Admin only."""

import logging
from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.core.errors import ConflictError, NotFoundError, UnprocessableError
from procurement.core.events import EntityTypes, EventActions, log_event
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import Proposal, ProposalStatus, ServiceOrder, ServiceOrderStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/service-orders", tags=["service-orders"])

ORDER_COLUMNS = {
    "created_at": ServiceOrder.created_at,
    "po_number": ServiceOrder.po_number,
    "status": ServiceOrder.status,
}


# Schemas
class ServiceOrderCreate(BaseModel):
    proposal_id: UUID
    po_number: str = Field(..., min_length=1, max_length=100)
    pdf_url: Optional[str] = Field(None, max_length=512)


class ServiceOrderUpdate(BaseModel):
    po_number: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[ServiceOrderStatus] = None
    pdf_url: Optional[str] = Field(None, max_length=512)


class ServiceOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    proposal_id: UUID
    po_number: str
    pdf_url: Optional[str]
    status: str
    created_at: datetime
    updated_at: datetime


class ServiceOrderListResponse(BaseModel):
    items: List[ServiceOrderResponse]
    total: int
    limit: int
    offset: int


def _ensure_po_free(db: Session, po_number: str, exclude_id: Optional[UUID] = None) -> None:
    query = db.query(ServiceOrder.id).filter(ServiceOrder.po_number == po_number)
    if exclude_id is not None:
        query = query.filter(ServiceOrder.id != exclude_id)
    if query.first():
        raise ConflictError(f"Purchase order number {po_number} already exists")


# Endpoints
@router.get("", response_model=ServiceOrderListResponse)
@require_permission("service_orders:list")
async def list_service_orders(
    proposal_id: Optional[UUID] = None,
    status_filter: Optional[ServiceOrderStatus] = Query(None, alias="status"),
    order_by: Literal["created_at", "po_number", "status"] = "created_at",
    order_dir: Literal["asc", "desc"] = "desc",
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    query = db.query(ServiceOrder)

    if proposal_id:
        query = query.filter(ServiceOrder.proposal_id == proposal_id)
    if status_filter:
        query = query.filter(ServiceOrder.status == status_filter.value)

    total = query.count()

    column = ORDER_COLUMNS[order_by]
    orders = (
        query.order_by(column.asc() if order_dir == "asc" else column.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return ServiceOrderListResponse(
        items=[ServiceOrderResponse.model_validate(o) for o in orders],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=ServiceOrderResponse, status_code=status.HTTP_201_CREATED)
@require_permission("service_orders:create")
async def create_service_order(
    data: ServiceOrderCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Issue the purchase order for an awarded proposal."""
    proposal = db.query(Proposal).filter(Proposal.id == data.proposal_id).first()
    if not proposal:
        raise NotFoundError("Proposal not found")
    if proposal.status != ProposalStatus.ADJUDICADA.value:
        raise UnprocessableError("Service orders can only be issued for awarded proposals")

    if db.query(ServiceOrder.id).filter(ServiceOrder.proposal_id == proposal.id).first():
        raise ConflictError("A service order already exists for this proposal")
    _ensure_po_free(db, data.po_number)

    order = ServiceOrder(
        proposal_id=proposal.id,
        po_number=data.po_number,
        pdf_url=data.pdf_url,
        status=ServiceOrderStatus.EMITIDA.value,
    )
    db.add(order)
    db.flush()

    log_event(
        db,
        EntityTypes.SERVICE_ORDER,
        order.id,
        EventActions.CREATED,
        {"proposal_id": proposal.id, "po_number": order.po_number, "status": order.status},
        actor_id=current_user.user_id,
    )
    db.commit()
    db.refresh(order)

    logger.info("Service order %s issued for proposal %s", order.po_number, proposal.id)
    return ServiceOrderResponse.model_validate(order)


@router.patch("/{order_id}", response_model=ServiceOrderResponse)
@require_permission("service_orders:update")
async def update_service_order(
    order_id: UUID,
    data: ServiceOrderUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    order = db.query(ServiceOrder).filter(ServiceOrder.id == order_id).first()
    if not order:
        raise NotFoundError("Service order not found")

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    if "po_number" in changes and changes["po_number"] != order.po_number:
        _ensure_po_free(db, changes["po_number"], exclude_id=order.id)
    if "status" in changes:
        changes["status"] = ServiceOrderStatus(changes["status"]).value

    previous_status = order.status
    for field, value in changes.items():
        setattr(order, field, value)
    db.flush()

    log_event(
        db,
        EntityTypes.SERVICE_ORDER,
        order.id,
        EventActions.UPDATED,
        {"fields": sorted(changes), "previous_status": previous_status, "status": order.status},
        actor_id=current_user.user_id,
    )
    db.commit()
    db.refresh(order)
    return ServiceOrderResponse.model_validate(order)
