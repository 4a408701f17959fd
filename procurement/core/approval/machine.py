"""Approval state machine implementation.

Validates decisions against the current state and the token's expiry and
records what was decided. Persistence and side effects live in
``ApprovalService``.
"""

import logging
from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID

from procurement.core.errors import ConflictError, GoneError
from .states import (
    ApprovalDecision,
    ApprovalTransition,
    can_transition,
    get_transition_rule,
    TERMINAL_STATES,
)
from .tokens import is_expired

logger = logging.getLogger(__name__)


class TransitionError(ConflictError):
    """Raised when a state transition is invalid."""

    def __init__(self, message: str, from_state: ApprovalDecision, transition: ApprovalTransition):
        super().__init__(message)
        self.from_state = from_state
        self.transition = transition


class TokenExpiredError(GoneError):
    """Raised when a decision arrives after the token's expiry."""

    def __init__(self, expires_at: datetime):
        super().__init__("Approval token has expired")
        self.expires_at = expires_at


class ApprovalStateMachine:
    """
    State machine for a single approval.

    Manages the pending → approved/rejected transition with:
    - Validation of valid transitions
    - Expiry guard on the bearer token
    - Decision record (who, when, comment)
    """

    def __init__(
        self,
        approval_id: UUID,
        current_state: ApprovalDecision,
        expires_at: datetime,
        approver_email: str,
    ):
        """
        Initialize the state machine.

        Args:
            approval_id: ID of the approval
            current_state: Current decision state
            expires_at: Token expiry (naive UTC)
            approver_email: Identity recorded as ``decided_by``
        """
        self.approval_id = approval_id
        self._state = current_state
        self.expires_at = expires_at
        self.approver_email = approver_email

    @property
    def state(self) -> ApprovalDecision:
        """Current state of the approval."""
        return self._state

    @property
    def is_terminal(self) -> bool:
        """Check if current state is terminal (no further transitions)."""
        return self._state in TERMINAL_STATES

    def is_expired(self, now: datetime) -> bool:
        return is_expired(self.expires_at, now)

    def can_perform(self, transition: ApprovalTransition, now: datetime) -> bool:
        """Check if a transition can be performed from current state at ``now``."""
        return can_transition(self._state, transition) and not self.is_expired(now)

    def transition(
        self,
        transition: ApprovalTransition,
        *,
        now: datetime,
        comment: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Perform a decision.

        Args:
            transition: APPROVE or REJECT
            now: Decision instant (naive UTC)
            comment: Optional decision comment

        Returns:
            The decision record: new ``decision``, ``decided_at``,
            ``decided_by`` and ``comment`` (None when not supplied)

        Raises:
            TransitionError: If the approval is no longer pending
            TokenExpiredError: If ``now`` is past the token's expiry
        """
        if not can_transition(self._state, transition):
            raise TransitionError(
                f"Cannot perform {transition.value} from state {self._state.value}",
                self._state,
                transition,
            )

        if self.is_expired(now):
            raise TokenExpiredError(self.expires_at)

        rule = get_transition_rule(self._state, transition)
        record = {
            "approval_id": self.approval_id,
            "from_state": self._state.value,
            "decision": rule.to_state.value,
            "decided_at": now,
            "decided_by": self.approver_email,
            "comment": comment or None,
        }

        self._state = rule.to_state
        logger.debug("Approval %s moved %s -> %s", self.approval_id, record["from_state"], record["decision"])
        return record
