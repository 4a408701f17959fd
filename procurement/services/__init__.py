"""Services for the procurement platform."""

from .notifications import NotificationService, NotificationTemplates

__all__ = [
    "NotificationService",
    "NotificationTemplates",
]
