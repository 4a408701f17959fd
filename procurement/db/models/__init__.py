"""Database models for the procurement platform."""

from procurement.db.models.supplier import Supplier, SupplierStatus
from procurement.db.models.profile import Profile
from procurement.db.models.tender import Tender, TenderStatus
from procurement.db.models.proposal import Proposal, ProposalStatus
from procurement.db.models.approval import Approval
from procurement.db.models.service_order import ServiceOrder, ServiceOrderStatus
from procurement.db.models.invoice import Invoice, InvoiceStatus, INVOICE_TRANSITIONS
from procurement.db.models.rfp_doc import RfpDoc
from procurement.db.models.event import Event
from procurement.db.models.notification import Notification, NotificationType

__all__ = [
    "Supplier",
    "SupplierStatus",
    "Profile",
    "Tender",
    "TenderStatus",
    "Proposal",
    "ProposalStatus",
    "Approval",
    "ServiceOrder",
    "ServiceOrderStatus",
    "Invoice",
    "InvoiceStatus",
    "INVOICE_TRANSITIONS",
    "RfpDoc",
    "Event",
    "Notification",
    "NotificationType",
]
