"""In-app notification service.

Handles:
- Direct and bulk notifications to profiles
- Fan-out to admins, to active suppliers and to a single supplier
- Predefined templates for tender, proposal, approval and invoice events
- Best-effort delivery that never aborts the caller's transaction
"""

import logging
from typing import Optional, Dict, Any, List, Iterable, Callable
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from procurement.core.security import ADMIN_ROLE, SUPPLIER_ROLE
from procurement.db.models import Notification, NotificationType, Profile, Supplier, SupplierStatus

logger = logging.getLogger(__name__)


class NotificationTemplates:
    """Builders for the notification content of common events."""

    @staticmethod
    def tender_opened(tender_title: str, tender_id: UUID) -> Dict[str, Any]:
        return {
            "title": "New tender available",
            "message": f"A new tender has been published: {tender_title}",
            "type": NotificationType.TENDER,
            "entity_type": "tender",
            "entity_id": tender_id,
            "action_url": f"/tenders/{tender_id}",
        }

    @staticmethod
    def proposal_received(tender_title: str, supplier_name: str, proposal_id: UUID) -> Dict[str, Any]:
        return {
            "title": "New proposal received",
            "message": f"{supplier_name} submitted a proposal for: {tender_title}",
            "type": NotificationType.PROPOSAL,
            "entity_type": "proposal",
            "entity_id": proposal_id,
            "action_url": "/proposals",
        }

    @staticmethod
    def proposal_status_changed(tender_title: str, new_status: str, proposal_id: UUID) -> Dict[str, Any]:
        return {
            "title": "Proposal status updated",
            "message": f'Your proposal for "{tender_title}" changed to: {new_status}',
            "type": NotificationType.SUCCESS if new_status == "adjudicada" else NotificationType.INFO,
            "entity_type": "proposal",
            "entity_id": proposal_id,
            "action_url": "/proposals",
        }

    @staticmethod
    def approval_required(subject: str, approval_id: UUID) -> Dict[str, Any]:
        return {
            "title": "Approval required",
            "message": f"Your approval is required for: {subject}",
            "type": NotificationType.APPROVAL,
            "entity_type": "approval",
            "entity_id": approval_id,
            "action_url": "/approvals",
        }

    @staticmethod
    def approval_decided(subject: str, decision: str, approval_id: UUID) -> Dict[str, Any]:
        approved = decision == "approved"
        return {
            "title": "Approval granted" if approved else "Approval rejected",
            "message": f'"{subject}" has been {"approved" if approved else "rejected"}',
            "type": NotificationType.APPROVAL,
            "entity_type": "approval",
            "entity_id": approval_id,
            "action_url": "/approvals",
        }

    @staticmethod
    def invoice_received(amount: Any, invoice_id: UUID) -> Dict[str, Any]:
        return {
            "title": "New invoice received",
            "message": f"An invoice for RD${amount} was submitted",
            "type": NotificationType.INVOICE,
            "entity_type": "invoice",
            "entity_id": invoice_id,
            "action_url": "/invoices",
        }

    @staticmethod
    def invoice_paid(amount: Any, invoice_id: UUID) -> Dict[str, Any]:
        return {
            "title": "Invoice paid",
            "message": f"Your invoice for RD${amount} has been paid",
            "type": NotificationType.SUCCESS,
            "entity_type": "invoice",
            "entity_id": invoice_id,
            "action_url": "/invoices",
        }

    @staticmethod
    def invoice_rejected(reason: str, invoice_id: UUID) -> Dict[str, Any]:
        return {
            "title": "Invoice rejected",
            "message": f"Your invoice was rejected: {reason}",
            "type": NotificationType.ERROR,
            "entity_type": "invoice",
            "entity_id": invoice_id,
            "action_url": "/invoices",
        }


class NotificationService:
    """Creates notifications inside the caller's session (no commit)."""

    def __init__(self, db: Session):
        self.db = db

    def create_notification(
        self,
        user_id: UUID,
        title: str,
        message: str,
        type: NotificationType = NotificationType.INFO,
        *,
        entity_type: Optional[str] = None,
        entity_id: Optional[UUID] = None,
        action_url: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """Create a single notification for a profile."""
        notification = Notification(
            user_id=user_id,
            title=title,
            message=message,
            type=NotificationType(type).value,
            entity_type=entity_type,
            entity_id=entity_id,
            action_url=action_url,
            extra_data=metadata or {},
        )
        self.db.add(notification)
        self.db.flush()
        return notification

    def create_bulk_notifications(self, user_ids: Iterable[UUID], **params) -> List[Notification]:
        """Create the same notification for several profiles."""
        notifications = [
            Notification(
                user_id=user_id,
                title=params["title"],
                message=params["message"],
                type=NotificationType(params.get("type", NotificationType.INFO)).value,
                entity_type=params.get("entity_type"),
                entity_id=params.get("entity_id"),
                action_url=params.get("action_url"),
                extra_data=params.get("metadata") or {},
            )
            for user_id in user_ids
        ]
        self.db.add_all(notifications)
        self.db.flush()
        return notifications

    def notify_admins(self, **params) -> List[Notification]:
        """Notify every active admin."""
        admin_ids = [
            row.id
            for row in self.db.query(Profile.id).filter(
                Profile.role == ADMIN_ROLE,
                Profile.is_active.is_(True),
            )
        ]
        if not admin_ids:
            logger.warning("No admins found to notify")
            return []
        return self.create_bulk_notifications(admin_ids, **params)

    def notify_active_suppliers(self, **params) -> List[Notification]:
        """Notify every user linked to a supplier whose status is ``activo``."""
        user_ids = [
            row.id
            for row in self.db.query(Profile.id)
            .join(Supplier, Profile.supplier_id == Supplier.id)
            .filter(
                Profile.role == SUPPLIER_ROLE,
                Profile.is_active.is_(True),
                Supplier.status == SupplierStatus.ACTIVO.value,
            )
        ]
        if not user_ids:
            logger.warning("No active suppliers found to notify")
            return []
        return self.create_bulk_notifications(user_ids, **params)

    def notify_supplier(self, supplier_id: UUID, **params) -> List[Notification]:
        """Notify the users of one supplier."""
        user_ids = [
            row.id
            for row in self.db.query(Profile.id).filter(
                Profile.supplier_id == supplier_id,
                Profile.is_active.is_(True),
            )
        ]
        if not user_ids:
            logger.warning("No profile found for supplier %s", supplier_id)
            return []
        return self.create_bulk_notifications(user_ids, **params)

    def notify_email(self, email: str, **params) -> Optional[Notification]:
        """Notify the profile registered under ``email``, if there is one."""
        profile = self.db.query(Profile).filter(
            Profile.email == email.lower(),
            Profile.is_active.is_(True),
        ).first()
        if profile is None:
            logger.info("No registered profile for %s; skipping in-app notification", email)
            return None
        return self.create_notification(profile.id, **params)

    def send_safely(self, send: Callable[..., Any], *args, **kwargs) -> None:
        """Run ``send`` in a savepoint; a store failure is logged, never raised."""
        try:
            with self.db.begin_nested():
                send(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.warning("Failed to create notification: %s", exc)
