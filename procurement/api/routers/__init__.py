from . import (
    approvals,
    events,
    health,
    invoices,
    notifications,
    proposals,
    rfp,
    service_orders,
    suppliers,
    tenders,
)

__all__ = [
    "approvals",
    "events",
    "health",
    "invoices",
    "notifications",
    "proposals",
    "rfp",
    "service_orders",
    "suppliers",
    "tenders",
]
