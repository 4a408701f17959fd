"""Approval workflow scopes, decisions and transitions.

State Machine Diagram:

    ┌──────────┐   approve (token, before expiry)   ┌──────────┐
    │ PENDING  │───────────────────────────────────►│ APPROVED │
    └────┬─────┘                                    └──────────┘
         │         reject (token, before expiry)    ┌──────────┐
         └─────────────────────────────────────────►│ REJECTED │
                                                    └──────────┘

Both outcomes are terminal. The only guard is the token's expiry.
"""

from enum import Enum
from typing import Set, Dict, Optional, NamedTuple


class ApprovalScope(str, Enum):
    """Sign-off stages. Several scopes may exist for one target."""

    APERTURA_TENDER = "apertura_tender"     # Tender opening
    COMITE_RFP = "comite_rfp"               # RFP committee
    COMITE_EJECUTIVO = "comite_ejecutivo"   # Executive committee
    GERENTE_TI = "gerente_ti"               # IT manager
    DIRECTOR_TI = "director_ti"             # IT director
    VP_TI = "vp_ti"                         # IT vice-president


class ApprovalDecision(str, Enum):
    """Decision states of an approval."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalTransition(str, Enum):
    """Actions a token holder can take."""

    APPROVE = "approve"    # PENDING → APPROVED
    REJECT = "reject"      # PENDING → REJECTED


class TransitionRule(NamedTuple):
    """Defines a valid state transition."""
    from_state: ApprovalDecision
    to_state: ApprovalDecision
    transition: ApprovalTransition


TRANSITION_RULES: list[TransitionRule] = [
    TransitionRule(ApprovalDecision.PENDING, ApprovalDecision.APPROVED, ApprovalTransition.APPROVE),
    TransitionRule(ApprovalDecision.PENDING, ApprovalDecision.REJECTED, ApprovalTransition.REJECT),
]

VALID_TRANSITIONS: Dict[ApprovalDecision, Set[ApprovalTransition]] = {}
TRANSITION_TARGETS: Dict[tuple[ApprovalDecision, ApprovalTransition], TransitionRule] = {}

for rule in TRANSITION_RULES:
    VALID_TRANSITIONS.setdefault(rule.from_state, set()).add(rule.transition)
    TRANSITION_TARGETS[(rule.from_state, rule.transition)] = rule


TERMINAL_STATES: Set[ApprovalDecision] = {
    ApprovalDecision.APPROVED,
    ApprovalDecision.REJECTED,
}

# Decision values a token holder may submit
DECIDED_STATES: Set[ApprovalDecision] = TERMINAL_STATES

# Scopes whose outcome moves the targeted tender's status
TENDER_OPENING_SCOPES: Set[ApprovalScope] = {
    ApprovalScope.APERTURA_TENDER,
}


def can_transition(from_state: ApprovalDecision, transition: ApprovalTransition) -> bool:
    """Check if a transition is valid from the given state."""
    return transition in VALID_TRANSITIONS.get(from_state, set())


def get_transition_rule(
    from_state: ApprovalDecision, transition: ApprovalTransition
) -> Optional[TransitionRule]:
    """Get the transition rule for a state/action combination."""
    return TRANSITION_TARGETS.get((from_state, transition))


def get_target_state(
    from_state: ApprovalDecision, transition: ApprovalTransition
) -> Optional[ApprovalDecision]:
    """Get the target state for a transition."""
    rule = get_transition_rule(from_state, transition)
    return rule.to_state if rule else None


def transition_for_decision(decision: ApprovalDecision) -> ApprovalTransition:
    """Map a submitted decision to the transition that produces it."""
    if decision == ApprovalDecision.APPROVED:
        return ApprovalTransition.APPROVE
    if decision == ApprovalDecision.REJECTED:
        return ApprovalTransition.REJECT
    raise ValueError(f"{decision.value} is not a decision outcome")
