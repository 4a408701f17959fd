"""Approval service for managing proposal and tender sign-offs.

Provides the high-level API over the approval state machine, including
database persistence, audit events and notifications. Every operation
raises a ``ProcurementError`` subclass on failure; the caller owns the
transaction and commits on success.
"""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Optional, Dict, Any, Callable, Union
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy import case, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from procurement.core.errors import (
    ConflictError,
    InternalError,
    InvalidInputError,
    NotFoundError,
    ProcurementError,
)
from procurement.core.events import EntityTypes, EventActions, log_event
from procurement.core.logger import redact_token
from procurement.core.rbac import Action, Permission, Resource, ensure_permission
from procurement.core.security import AuthContext
from procurement.db.models import Approval, Proposal, Tender, TenderStatus
from procurement.services.notifications import NotificationService, NotificationTemplates
from .machine import ApprovalStateMachine, TokenExpiredError
from .schemas import ApprovalCreate
from .states import (
    ApprovalDecision,
    ApprovalScope,
    TENDER_OPENING_SCOPES,
    transition_for_decision,
)
from .tokens import issue_token, is_expired

logger = logging.getLogger(__name__)


@contextmanager
def _database_errors(operation: str):
    """Surface store failures as ``InternalError``; structured errors pass through."""
    try:
        yield
    except ProcurementError:
        raise
    except SQLAlchemyError as exc:
        logger.error("Database error during %s", operation, exc_info=True)
        raise InternalError("A database error occurred") from exc


class ApprovalService:
    """
    High-level service for approvals.

    Handles:
    - Creating approvals for a proposal or tender (admin only)
    - Recording decisions presented with a bearer token
    - Role-scoped listing and lookup
    - Reissuing the token of an expired, still pending approval
    """

    def __init__(self, db: Session, now: Callable[[], datetime] = datetime.utcnow):
        """
        Initialize the approval service.

        Args:
            db: Database session
            now: Clock returning naive UTC datetimes
        """
        self.db = db
        self.now = now
        self.notifications = NotificationService(db)

    def create_approval(
        self,
        auth: Optional[AuthContext],
        data: Union[ApprovalCreate, Dict[str, Any]],
    ) -> Dict[str, Any]:
        """
        Create a pending approval and issue its token.

        Returns:
            The created approval, including the live token

        Raises:
            UnauthenticatedError / ForbiddenError: Caller is not an admin
            InvalidInputError: Bad shape, or not exactly one target
            NotFoundError: Target does not exist
            ConflictError: An approval already exists for this target and scope
        """
        ensure_permission(
            auth,
            Permission(Resource.APPROVALS, Action.CREATE),
            "Only administrators can create approvals",
        )
        data = self._validate_create(data)

        with _database_errors("approval creation"):
            target = self._resolve_target(data)

            if self._find_existing(data.scope, data.proposal_id, data.tender_id) is not None:
                raise ConflictError("An approval already exists for this scope and target")

            token, expires_at = issue_token(self.now)
            approval = Approval(
                scope=data.scope.value,
                proposal_id=data.proposal_id,
                tender_id=data.tender_id,
                approver_email=data.approver_email.lower(),
                decision=ApprovalDecision.PENDING.value,
                comment=data.comment,
                token=token,
                expires_at=expires_at,
                created_by=auth.user_id,
            )

            try:
                with self.db.begin_nested():
                    self.db.add(approval)
                    self.db.flush()
            except IntegrityError as exc:
                raise ConflictError("An approval already exists for this scope and target") from exc

            log_event(
                self.db,
                EntityTypes.APPROVAL,
                approval.id,
                EventActions.CREATED,
                {
                    "target": {"type": approval.target_type, "id": approval.target_id},
                    "scope": approval.scope,
                    "approver_email": approval.approver_email,
                    "token_prefix": redact_token(token),
                },
                actor_id=auth.user_id,
            )
            logger.info(
                "Approval %s created for %s %s (scope=%s, token=%s)",
                approval.id, approval.target_type, approval.target_id,
                approval.scope, redact_token(token),
            )

            self.notifications.send_safely(
                self.notifications.notify_email,
                approval.approver_email,
                **NotificationTemplates.approval_required(self._describe(target), approval.id),
            )

            return self._approval_to_dict(approval, include_token=True)

    def decide(
        self,
        token: str,
        decision: Union[ApprovalDecision, str],
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Record a decision on the approval identified by ``token``.

        No caller identity is involved: the token is the credential and
        ``decided_by`` is always the approval's ``approver_email``.

        Raises:
            InvalidInputError: Decision is not approved/rejected
            NotFoundError: Unknown, malformed or already processed token
            GoneError: Token has expired
        """
        try:
            decision = ApprovalDecision(decision)
            transition = transition_for_decision(decision)
        except ValueError:
            raise InvalidInputError(
                "Decision must be 'approved' or 'rejected'",
                [{"field": "decision", "message": "must be 'approved' or 'rejected'"}],
            )

        with _database_errors("approval decision"):
            approval = self.db.query(Approval).filter(
                Approval.token == token,
                Approval.decision == ApprovalDecision.PENDING.value,
            ).first()
            if approval is None:
                raise NotFoundError("Invalid or already processed token")

            now = self.now()
            machine = ApprovalStateMachine(
                approval.id,
                ApprovalDecision(approval.decision),
                approval.expires_at,
                approval.approver_email,
            )
            record = machine.transition(transition, now=now, comment=comment)

            values = {
                "decision": record["decision"],
                "decided_at": record["decided_at"],
                "decided_by": record["decided_by"],
                "updated_at": now,
            }
            if record["comment"]:
                values["comment"] = record["comment"]

            # Single conditional write; a concurrent decision leaves zero rows here
            result = self.db.execute(
                update(Approval)
                .where(
                    Approval.token == token,
                    Approval.decision == ApprovalDecision.PENDING.value,
                    Approval.expires_at >= now,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.refresh(approval)
                if approval.decision == ApprovalDecision.PENDING.value and is_expired(approval.expires_at, now):
                    raise TokenExpiredError(approval.expires_at)
                raise NotFoundError("Invalid or already processed token")

            self.db.refresh(approval)

            log_event(
                self.db,
                EntityTypes.APPROVAL,
                approval.id,
                EventActions.APPROVED if decision == ApprovalDecision.APPROVED else EventActions.REJECTED,
                {
                    "target": {"type": approval.target_type, "id": approval.target_id},
                    "scope": approval.scope,
                    "approver_email": approval.approver_email,
                    "comment": approval.comment,
                    "decided_at": approval.decided_at,
                },
            )
            logger.info("Approval %s %s by %s", approval.id, approval.decision, approval.decided_by)

            if approval.scope in {s.value for s in TENDER_OPENING_SCOPES} and approval.tender_id:
                self._apply_tender_opening(approval)

            self.notifications.send_safely(
                self.notifications.notify_admins,
                **NotificationTemplates.approval_decided(
                    self._describe(approval.tender or approval.proposal),
                    approval.decision,
                    approval.id,
                ),
            )

            return self._approval_to_dict(approval)

    def list_approvals(
        self,
        auth: Optional[AuthContext],
        *,
        proposal_id: Optional[UUID] = None,
        tender_id: Optional[UUID] = None,
        scope: Optional[Union[ApprovalScope, str]] = None,
        decision: Optional[Union[ApprovalDecision, str]] = None,
        approver_email: Optional[str] = None,
        limit: int = 10,
        offset: int = 0,
    ) -> Dict[str, Any]:
        """
        List approvals visible to the caller.

        Admins see everything and may filter by ``approver_email``. Anyone
        else only ever sees approvals addressed to their own email; an
        ``approver_email`` filter from them is ignored.

        Pending approvals come first, then newest first.
        """
        ensure_permission(auth, Permission(Resource.APPROVALS, Action.LIST))

        with _database_errors("approval listing"):
            query = self._visible(auth)
            if auth.is_admin and approver_email:
                query = query.filter(Approval.approver_email == approver_email.lower())

            if proposal_id:
                query = query.filter(Approval.proposal_id == proposal_id)
            if tender_id:
                query = query.filter(Approval.tender_id == tender_id)
            if scope:
                query = query.filter(Approval.scope == ApprovalScope(scope).value)
            if decision:
                query = query.filter(Approval.decision == ApprovalDecision(decision).value)

            total = query.count()

            approvals = (
                query.options(
                    joinedload(Approval.proposal).joinedload(Proposal.tender),
                    joinedload(Approval.tender),
                )
                .order_by(
                    case((Approval.decision == ApprovalDecision.PENDING.value, 0), else_=1),
                    Approval.created_at.desc(),
                )
                .offset(offset)
                .limit(limit)
                .all()
            )

            return {
                "items": [self._approval_to_dict(a) for a in approvals],
                "total": total,
                "limit": limit,
                "offset": offset,
            }

    def get_approval(self, auth: Optional[AuthContext], approval_id: UUID) -> Dict[str, Any]:
        """Get one approval under the same visibility rule as the listing."""
        ensure_permission(auth, Permission(Resource.APPROVALS, Action.READ))

        with _database_errors("approval lookup"):
            approval = self._visible(auth).filter(Approval.id == approval_id).first()
            if approval is None:
                raise NotFoundError(f"Approval {approval_id} not found")
            return self._approval_to_dict(approval)

    def reissue(self, auth: Optional[AuthContext], approval_id: UUID) -> Dict[str, Any]:
        """
        Mint a fresh token for an approval whose token expired undecided.

        The record keeps its id, target and scope, so the one-per-scope
        rule still holds.

        Raises:
            NotFoundError: Unknown approval
            ConflictError: Approval already decided, or its token is still valid
        """
        ensure_permission(
            auth,
            Permission(Resource.APPROVALS, Action.MANAGE),
            "Only administrators can reissue approval tokens",
        )

        with _database_errors("approval reissue"):
            approval = self.db.query(Approval).filter(Approval.id == approval_id).first()
            if approval is None:
                raise NotFoundError(f"Approval {approval_id} not found")
            if approval.decision != ApprovalDecision.PENDING.value:
                raise ConflictError(f"Approval is already {approval.decision}")
            if not is_expired(approval.expires_at, self.now()):
                raise ConflictError("Approval token has not expired yet")

            token, expires_at = issue_token(self.now)
            approval.token = token
            approval.expires_at = expires_at
            self.db.flush()

            log_event(
                self.db,
                EntityTypes.APPROVAL,
                approval.id,
                EventActions.REISSUED,
                {
                    "target": {"type": approval.target_type, "id": approval.target_id},
                    "scope": approval.scope,
                    "approver_email": approval.approver_email,
                    "token_prefix": redact_token(token),
                },
                actor_id=auth.user_id,
            )
            logger.info("Approval %s token reissued (%s)", approval.id, redact_token(token))

            self.notifications.send_safely(
                self.notifications.notify_email,
                approval.approver_email,
                **NotificationTemplates.approval_required(
                    self._describe(approval.tender or approval.proposal), approval.id
                ),
            )

            return self._approval_to_dict(approval, include_token=True)

    # Internals

    def _validate_create(self, data: Union[ApprovalCreate, Dict[str, Any]]) -> ApprovalCreate:
        if not isinstance(data, ApprovalCreate):
            try:
                data = ApprovalCreate.model_validate(data)
            except ValidationError as exc:
                raise InvalidInputError.from_validation_errors(exc.errors())

        if (data.proposal_id is None) == (data.tender_id is None):
            message = "Exactly one of proposal_id or tender_id is required"
            raise InvalidInputError(
                message,
                [
                    {"field": "proposal_id", "message": message},
                    {"field": "tender_id", "message": message},
                ],
            )
        return data

    def _resolve_target(self, data: ApprovalCreate) -> Union[Proposal, Tender]:
        if data.proposal_id is not None:
            target = self.db.query(Proposal).options(joinedload(Proposal.tender)).filter(
                Proposal.id == data.proposal_id
            ).first()
            if target is None:
                raise NotFoundError("Proposal not found")
        else:
            target = self.db.query(Tender).filter(Tender.id == data.tender_id).first()
            if target is None:
                raise NotFoundError("Tender not found")
        return target

    def _find_existing(
        self,
        scope: ApprovalScope,
        proposal_id: Optional[UUID],
        tender_id: Optional[UUID],
    ) -> Optional[Approval]:
        query = self.db.query(Approval).filter(Approval.scope == scope.value)
        if proposal_id is not None:
            query = query.filter(Approval.proposal_id == proposal_id)
        else:
            query = query.filter(Approval.tender_id == tender_id)
        return query.first()

    def _visible(self, auth: AuthContext):
        query = self.db.query(Approval)
        if not auth.is_admin:
            query = query.filter(Approval.approver_email == auth.email.lower())
        return query

    def _apply_tender_opening(self, approval: Approval) -> None:
        """Open or cancel the tender an ``apertura_tender`` approval gates."""
        tender = self.db.query(Tender).filter(Tender.id == approval.tender_id).first()
        if tender is None:
            logger.warning("Tender %s for approval %s no longer exists", approval.tender_id, approval.id)
            return

        old_status = tender.status
        approved = approval.decision == ApprovalDecision.APPROVED.value
        tender.status = (TenderStatus.ABIERTA if approved else TenderStatus.CANCELADA).value
        self.db.flush()

        log_event(
            self.db,
            EntityTypes.TENDER,
            tender.id,
            EventActions.STATUS_CHANGED,
            {
                "old_status": old_status,
                "new_status": tender.status,
                "approval_id": approval.id,
            },
        )
        logger.info("Tender %s moved %s -> %s by approval %s", tender.code, old_status, tender.status, approval.id)

        if approved:
            self.notifications.send_safely(
                self.notifications.notify_active_suppliers,
                **NotificationTemplates.tender_opened(tender.title, tender.id),
            )

    @staticmethod
    def _describe(target: Union[Proposal, Tender, None]) -> str:
        if isinstance(target, Tender):
            return f"{target.code} - {target.title}"
        if isinstance(target, Proposal) and target.tender is not None:
            return f"Proposal for {target.tender.code} - {target.tender.title}"
        return "approval request"

    @staticmethod
    def _tender_to_dict(tender: Optional[Tender]) -> Optional[Dict[str, Any]]:
        if tender is None:
            return None
        return {
            "id": tender.id,
            "code": tender.code,
            "title": tender.title,
            "status": tender.status,
            "budget": tender.budget,
            "deadline": tender.deadline,
        }

    def _approval_to_dict(self, approval: Approval, include_token: bool = False) -> Dict[str, Any]:
        """Convert an approval with its target context to a dictionary."""
        proposal = None
        if approval.proposal is not None:
            proposal = {
                "id": approval.proposal.id,
                "amount": approval.proposal.amount,
                "delivery_months": approval.proposal.delivery_months,
                "status": approval.proposal.status,
                "supplier_id": approval.proposal.supplier_id,
                "tender": self._tender_to_dict(approval.proposal.tender),
            }

        result = {
            "id": approval.id,
            "scope": approval.scope,
            "proposal_id": approval.proposal_id,
            "tender_id": approval.tender_id,
            "approver_email": approval.approver_email,
            "decision": approval.decision,
            "decided_at": approval.decided_at,
            "decided_by": approval.decided_by,
            "comment": approval.comment,
            "expires_at": approval.expires_at,
            "created_at": approval.created_at,
            "proposal": proposal,
            "tender": self._tender_to_dict(approval.tender),
        }
        if include_token:
            result["token"] = approval.token
        return result
