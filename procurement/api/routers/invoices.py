"""Supplier invoice API endpoints."""

import logging
from decimal import Decimal
from typing import List, Literal, Optional
from uuid import UUID
from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from procurement.api.deps import get_db, get_current_user
from procurement.api.schemas import SuccessResponse
from procurement.core.errors import ForbiddenError, NotFoundError, UnprocessableError
from procurement.core.events import EntityTypes, EventActions, log_event
from procurement.core.rbac import require_permission
from procurement.core.security import AuthContext
from procurement.db.models import (
    Invoice,
    InvoiceStatus,
    Proposal,
    ProposalStatus,
    ServiceOrder,
    ServiceOrderStatus,
)
from procurement.services.notifications import NotificationService, NotificationTemplates

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])

ORDER_COLUMNS = {
    "created_at": Invoice.created_at,
    "amount": Invoice.amount,
    "status": Invoice.status,
}


# Schemas
class InvoiceCreate(BaseModel):
    proposal_id: UUID
    service_order_id: Optional[UUID] = None
    invoice_url: str = Field(..., min_length=1, max_length=512)
    amount: float = Field(..., gt=0)


class InvoiceUpdate(BaseModel):
    invoice_url: Optional[str] = Field(None, min_length=1, max_length=512)
    amount: Optional[float] = Field(None, gt=0)
    status: Optional[InvoiceStatus] = None
    reason: Optional[str] = Field(None, max_length=500, description="Sent to the supplier on rejection")


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    proposal_id: UUID
    service_order_id: Optional[UUID]
    invoice_url: str
    amount: float
    status: str
    created_at: datetime
    updated_at: datetime


class InvoiceListResponse(BaseModel):
    items: List[InvoiceResponse]
    total: int
    limit: int
    offset: int


def _get_invoice(db: Session, invoice_id: UUID) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise NotFoundError("Invoice not found")
    return invoice


def _ensure_owner(current_user: AuthContext, proposal: Proposal) -> None:
    """Admins act on any invoice; suppliers only on their own proposals."""
    if current_user.is_admin:
        return
    if not current_user.is_supplier or proposal.supplier_id != current_user.supplier_id:
        raise ForbiddenError("This invoice belongs to another supplier")


def _ensure_within_award(amount: float, proposal: Proposal) -> None:
    if Decimal(str(amount)) > Decimal(proposal.amount):
        raise UnprocessableError("Invoice amount exceeds the awarded proposal amount")


# Endpoints
@router.get("", response_model=InvoiceListResponse)
@require_permission("invoices:list")
async def list_invoices(
    proposal_id: Optional[UUID] = None,
    service_order_id: Optional[UUID] = None,
    supplier_id: Optional[UUID] = Query(None, description="Admins only"),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    order_by: Literal["created_at", "amount", "status"] = "created_at",
    order_dir: Literal["asc", "desc"] = "desc",
    limit: int = Query(10, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """
    List invoices.

    Admins see every invoice; supplier users only those raised against
    their own proposals.
    """
    query = db.query(Invoice).join(Proposal, Invoice.proposal_id == Proposal.id)

    if current_user.is_admin:
        if supplier_id:
            query = query.filter(Proposal.supplier_id == supplier_id)
    elif current_user.is_supplier:
        query = query.filter(Proposal.supplier_id == current_user.supplier_id)
    else:
        raise ForbiddenError("No supplier is linked to this account")

    if proposal_id:
        query = query.filter(Invoice.proposal_id == proposal_id)
    if service_order_id:
        query = query.filter(Invoice.service_order_id == service_order_id)
    if status_filter:
        query = query.filter(Invoice.status == status_filter.value)

    total = query.count()

    column = ORDER_COLUMNS[order_by]
    invoices = (
        query.order_by(column.asc() if order_dir == "asc" else column.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )

    return InvoiceListResponse(
        items=[InvoiceResponse.model_validate(i) for i in invoices],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
@require_permission("invoices:submit")
async def create_invoice(
    data: InvoiceCreate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Raise an invoice against an awarded proposal and tell the admins."""
    proposal = db.query(Proposal).filter(Proposal.id == data.proposal_id).first()
    if not proposal:
        raise NotFoundError("Proposal not found")
    _ensure_owner(current_user, proposal)

    if proposal.status != ProposalStatus.ADJUDICADA.value:
        raise UnprocessableError("Invoices can only be raised for awarded proposals")
    _ensure_within_award(data.amount, proposal)

    if data.service_order_id:
        order = db.query(ServiceOrder).filter(ServiceOrder.id == data.service_order_id).first()
        if not order:
            raise NotFoundError("Service order not found")
        if order.proposal_id != proposal.id:
            raise UnprocessableError("Service order belongs to another proposal")
        if order.status != ServiceOrderStatus.APROBADA.value:
            raise UnprocessableError("Service order is not approved")

    invoice = Invoice(
        proposal_id=proposal.id,
        service_order_id=data.service_order_id,
        invoice_url=data.invoice_url,
        amount=data.amount,
        status=InvoiceStatus.RECIBIDA.value,
    )
    db.add(invoice)
    db.flush()

    log_event(
        db,
        EntityTypes.INVOICE,
        invoice.id,
        EventActions.CREATED,
        {
            "proposal_id": proposal.id,
            "service_order_id": data.service_order_id,
            "amount": data.amount,
            "status": invoice.status,
        },
        actor_id=current_user.user_id,
    )

    notifications = NotificationService(db)
    notifications.send_safely(
        notifications.notify_admins,
        **NotificationTemplates.invoice_received(data.amount, invoice.id),
    )

    db.commit()
    db.refresh(invoice)

    logger.info("Invoice %s received for proposal %s", invoice.id, proposal.id)
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
@require_permission("invoices:update")
async def update_invoice(
    invoice_id: UUID,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """
    Update an invoice.

    Suppliers may correct the document or amount of their own invoices;
    only admins move an invoice through validation and payment.
    """
    invoice = _get_invoice(db, invoice_id)
    _ensure_owner(current_user, invoice.proposal)

    changes = data.model_dump(exclude_unset=True, exclude_none=True)
    reason = changes.pop("reason", None)

    if "status" in changes:
        if not current_user.is_admin:
            raise ForbiddenError("Suppliers cannot change the invoice status")
        changes["status"] = InvoiceStatus(changes["status"]).value
        if changes["status"] == invoice.status:
            del changes["status"]
        elif not invoice.can_move_to(changes["status"]):
            raise UnprocessableError(
                f"Invoice cannot move from {invoice.status} to {changes['status']}"
            )
    if "amount" in changes:
        _ensure_within_award(changes["amount"], invoice.proposal)

    previous_status = invoice.status
    for field, value in changes.items():
        setattr(invoice, field, value)
    db.flush()

    log_event(
        db,
        EntityTypes.INVOICE,
        invoice.id,
        EventActions.UPDATED,
        {
            "fields": sorted(changes),
            "previous_status": previous_status,
            "status": invoice.status,
            "updated_by_role": current_user.role,
        },
        actor_id=current_user.user_id,
    )

    if invoice.status != previous_status:
        template = None
        if invoice.status == InvoiceStatus.PAGADA.value:
            template = NotificationTemplates.invoice_paid(invoice.amount, invoice.id)
        elif invoice.status == InvoiceStatus.RECHAZADA.value:
            template = NotificationTemplates.invoice_rejected(reason or "no reason given", invoice.id)
        if template:
            notifications = NotificationService(db)
            notifications.send_safely(notifications.notify_supplier, invoice.proposal.supplier_id, **template)

    db.commit()
    db.refresh(invoice)
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", response_model=SuccessResponse)
@require_permission("invoices:delete")
async def delete_invoice(
    invoice_id: UUID,
    db: Session = Depends(get_db),
    current_user: AuthContext = Depends(get_current_user),
):
    """Withdraw an invoice that has not been processed yet."""
    invoice = _get_invoice(db, invoice_id)
    _ensure_owner(current_user, invoice.proposal)

    if invoice.status != InvoiceStatus.RECIBIDA.value:
        raise UnprocessableError("Only invoices still in recibida can be deleted")

    payload = {
        "proposal_id": invoice.proposal_id,
        "amount": invoice.amount,
        "previous_status": invoice.status,
        "deleted_by_role": current_user.role,
    }
    db.delete(invoice)
    db.flush()
    log_event(db, EntityTypes.INVOICE, invoice_id, EventActions.DELETED, payload, actor_id=current_user.user_id)
    db.commit()

    logger.info("Invoice %s deleted by %s", invoice_id, current_user.email)
    return SuccessResponse(message="Invoice deleted")
