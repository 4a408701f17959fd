"""Approval workflow for proposals and tenders.

Token-based sign-offs with a fixed expiry and at most one approval per
target and scope.
"""

from .states import (
    ApprovalScope,
    ApprovalDecision,
    ApprovalTransition,
    TERMINAL_STATES,
    TENDER_OPENING_SCOPES,
    can_transition,
    get_target_state,
)
from .tokens import TOKEN_LENGTH, TOKEN_TTL, issue_token, is_expired
from .machine import ApprovalStateMachine, TransitionError, TokenExpiredError
from .service import ApprovalService

__all__ = [
    "ApprovalScope",
    "ApprovalDecision",
    "ApprovalTransition",
    "TERMINAL_STATES",
    "TENDER_OPENING_SCOPES",
    "can_transition",
    "get_target_state",
    "TOKEN_LENGTH",
    "TOKEN_TTL",
    "issue_token",
    "is_expired",
    "ApprovalStateMachine",
    "TransitionError",
    "TokenExpiredError",
    "ApprovalService",
]
