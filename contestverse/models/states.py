"""
Entity State Machines

Every status field that changes over an entity's lifetime is an Enum here,
and every legal change is listed in TRANSITIONS. Services call
ensure_transition() before issuing the conditional update that applies it.

Contest approval:    pending -> approved | rejected   (admin)
Contest completion:  open -> completed                (winner declared)
Submission:          pending -> winner                (winner declared)
Creator application: pending -> approved | rejected   (admin)
"""
from enum import Enum
from typing import Dict, FrozenSet, Tuple, Type

from contestverse.services.errors import ConflictError


class UserRole(str, Enum):
    """User roles"""
    USER = "user"
    CREATOR = "creator"
    ADMIN = "admin"


class ApprovalStatus(str, Enum):
    """Contest approval gate controlled by admins"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ContestStatus(str, Enum):
    """Contest completion state"""
    OPEN = "open"
    COMPLETED = "completed"


class SubmissionStatus(str, Enum):
    PENDING = "pending"
    WINNER = "winner"


class CreatorStatus(str, Enum):
    """Creator application review state"""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


TRANSITIONS: Dict[Type[Enum], Dict[Enum, FrozenSet[Enum]]] = {
    ApprovalStatus: {
        ApprovalStatus.PENDING: frozenset({ApprovalStatus.APPROVED, ApprovalStatus.REJECTED}),
        ApprovalStatus.APPROVED: frozenset(),
        ApprovalStatus.REJECTED: frozenset(),
    },
    ContestStatus: {
        ContestStatus.OPEN: frozenset({ContestStatus.COMPLETED}),
        ContestStatus.COMPLETED: frozenset(),
    },
    SubmissionStatus: {
        SubmissionStatus.PENDING: frozenset({SubmissionStatus.WINNER}),
        SubmissionStatus.WINNER: frozenset(),
    },
    CreatorStatus: {
        CreatorStatus.PENDING: frozenset({CreatorStatus.APPROVED, CreatorStatus.REJECTED}),
        CreatorStatus.APPROVED: frozenset(),
        CreatorStatus.REJECTED: frozenset(),
    },
}


def can_transition(current: Enum, target: Enum) -> bool:
    """Check whether moving from current to target is allowed"""
    table = TRANSITIONS.get(type(target), {})
    return target in table.get(current, frozenset())


def ensure_transition(state_type: Type[Enum], current: str, target: str) -> Tuple[Enum, Enum]:
    """
    Validate a state change and return both states as enum members.

    Stored documents may carry missing or unknown values; those are read as
    the initial state of the machine.

    Raises:
        ConflictError: if the transition is not in TRANSITIONS
    """
    try:
        target_state = state_type(target)
    except ValueError:
        raise ConflictError(f"Invalid {state_type.__name__} value: {target}")

    try:
        current_state = state_type(current)
    except ValueError:
        current_state = next(iter(TRANSITIONS[state_type]))

    if not can_transition(current_state, target_state):
        raise ConflictError(
            f"Cannot change {state_type.__name__} from {current_state.value} to {target_state.value}"
        )

    return current_state, target_state
