"""Factory functions for creating test database records.

Each factory creates a model instance, adds it to the session, and flushes
so that defaults (id, created_at, etc.) are populated. All fields have
sensible defaults but can be overridden via keyword arguments.

Usage::

    from tests.factories import create_tender, create_approval

    def test_something(db_session):
        tender = create_tender(db_session, status="borrador")
        approval = create_approval(db_session, tender=tender, scope="apertura_tender")
        assert approval.target_type == "tender"
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from procurement.core.approval.tokens import TOKEN_TTL, generate_approval_token
from procurement.core.security import create_access_token
from procurement.db.models import (
    Approval,
    Invoice,
    Notification,
    Profile,
    Proposal,
    RfpDoc,
    ServiceOrder,
    Supplier,
    Tender,
)


_counter = 0


def _next_id() -> int:
    """Return a monotonically increasing integer for unique default values."""
    global _counter
    _counter += 1
    return _counter


def auth_headers(profile: Profile) -> dict:
    """Bearer header carrying a JWT for ``profile``."""
    return {"Authorization": f"Bearer {create_access_token(profile.id)}"}


# ---------------------------------------------------------------------------
# Supplier / Profile
# ---------------------------------------------------------------------------


def create_supplier(
    session: Session,
    *,
    name: Optional[str] = None,
    rnc: Optional[str] = None,
    status: str = "activo",
    certified: bool = False,
) -> Supplier:
    n = _next_id()
    supplier = Supplier(
        name=name or f"Supplier {n}",
        rnc=rnc or f"RNC-{n:05d}",
        status=status,
        certified=certified,
        certifications=[],
    )
    session.add(supplier)
    session.flush()
    return supplier


def create_profile(
    session: Session,
    *,
    email: Optional[str] = None,
    role: str = "user",
    full_name: Optional[str] = None,
    supplier: Optional[Supplier] = None,
    is_active: bool = True,
) -> Profile:
    n = _next_id()
    profile = Profile(
        email=email or f"user{n}@procurement.test",
        full_name=full_name or f"User {n}",
        role=role,
        supplier_id=supplier.id if supplier else None,
        is_active=is_active,
    )
    session.add(profile)
    session.flush()
    return profile


# ---------------------------------------------------------------------------
# Tender / Proposal
# ---------------------------------------------------------------------------


def create_tender(
    session: Session,
    *,
    code: Optional[str] = None,
    title: Optional[str] = None,
    status: str = "borrador",
    budget: float = 250000,
    delivery_max_months: int = 12,
    deadline: Optional[datetime] = None,
    created_by: Optional[Profile] = None,
) -> Tender:
    n = _next_id()
    tender = Tender(
        code=code or f"LIC-{n:04d}",
        title=title or f"Tender {n}",
        description="Test tender",
        budget=budget,
        delivery_max_months=delivery_max_months,
        deadline=deadline or datetime.utcnow() + timedelta(days=30),
        status=status,
        created_by=created_by.id if created_by else None,
    )
    session.add(tender)
    session.flush()
    return tender


def create_proposal(
    session: Session,
    *,
    tender: Tender,
    supplier: Supplier,
    amount: float = 120000,
    delivery_months: int = 6,
    status: str = "recibida",
) -> Proposal:
    proposal = Proposal(
        tender_id=tender.id,
        supplier_id=supplier.id,
        amount=amount,
        delivery_months=delivery_months,
        status=status,
    )
    session.add(proposal)
    session.flush()
    return proposal


# ---------------------------------------------------------------------------
# Service order / Invoice / RFP document
# ---------------------------------------------------------------------------


def create_service_order(
    session: Session,
    *,
    proposal: Proposal,
    po_number: Optional[str] = None,
    status: str = "emitida",
) -> ServiceOrder:
    order = ServiceOrder(
        proposal_id=proposal.id,
        po_number=po_number or f"OC-{_next_id():05d}",
        status=status,
    )
    session.add(order)
    session.flush()
    return order


def create_invoice(
    session: Session,
    *,
    proposal: Proposal,
    service_order: Optional[ServiceOrder] = None,
    amount: float = 50000,
    status: str = "recibida",
) -> Invoice:
    invoice = Invoice(
        proposal_id=proposal.id,
        service_order_id=service_order.id if service_order else None,
        invoice_url=f"invoices/{_next_id()}.pdf",
        amount=amount,
        status=status,
    )
    session.add(invoice)
    session.flush()
    return invoice


def create_rfp_doc(
    session: Session,
    *,
    tender: Tender,
    title: str = "Technical requirements",
    required_fields=None,
    is_mandatory: bool = True,
) -> RfpDoc:
    doc = RfpDoc(
        tender_id=tender.id,
        title=title,
        required_fields=required_fields or [],
        is_mandatory=is_mandatory,
    )
    session.add(doc)
    session.flush()
    return doc


# ---------------------------------------------------------------------------
# Approval / Notification
# ---------------------------------------------------------------------------


def create_approval(
    session: Session,
    *,
    scope: str = "comite_rfp",
    proposal: Optional[Proposal] = None,
    tender: Optional[Tender] = None,
    approver_email: str = "a@x.com",
    decision: str = "pending",
    token: Optional[str] = None,
    expires_at: Optional[datetime] = None,
    created_at: Optional[datetime] = None,
    comment: Optional[str] = None,
) -> Approval:
    now = datetime.utcnow()
    approval = Approval(
        scope=scope,
        proposal_id=proposal.id if proposal else None,
        tender_id=tender.id if tender else None,
        approver_email=approver_email,
        decision=decision,
        token=token or generate_approval_token(),
        expires_at=expires_at or now + TOKEN_TTL,
        comment=comment,
        created_at=created_at or now,
    )
    if decision != "pending":
        approval.decided_at = now
        approval.decided_by = approver_email
    session.add(approval)
    session.flush()
    return approval


def create_notification(
    session: Session,
    *,
    user: Profile,
    title: str = "Heads up",
    message: str = "Something happened",
    type: str = "info",
    read: bool = False,
) -> Notification:
    notification = Notification(
        user_id=user.id,
        title=title,
        message=message,
        type=type,
        extra_data={},
        read=read,
    )
    session.add(notification)
    session.flush()
    return notification
