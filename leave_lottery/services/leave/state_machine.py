"""
Application status transitions.

Callers ask "is this transition legal from the status the row has right
now" instead of assuming they drove the row into its current state; the
lottery draw and the confirmation batch move rows independently of this
service.
"""
from typing import Dict, FrozenSet

from leave_lottery.core.exceptions import StateConflictError
from leave_lottery.models.shared.enums import ApplicationStatus as S, ExternalTransition

ALLOWED_TRANSITIONS: Dict[S, FrozenSet[S]] = {
    S.BEFORE_LOTTERY: frozenset({
        S.AFTER_LOTTERY,
        S.CANCELLED_BEFORE_LOTTERY,
        S.PENDING_CANCELLATION,
    }),
    S.AFTER_LOTTERY: frozenset({
        S.CONFIRMED,
        S.WITHDRAWN,
        S.CANCELLED_AFTER_LOTTERY,
    }),
    S.PENDING_APPROVAL: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.PENDING_CANCELLATION: frozenset({S.CANCELLED_BEFORE_LOTTERY, S.BEFORE_LOTTERY}),
    S.CONFIRMED: frozenset({S.AFTER_LOTTERY}),
    S.WITHDRAWN: frozenset(),
    S.CANCELLED: frozenset(),
    S.CANCELLED_BEFORE_LOTTERY: frozenset(),
    S.CANCELLED_AFTER_LOTTERY: frozenset(),
}

EXTERNAL_TRANSITIONS: Dict[ExternalTransition, tuple] = {
    ExternalTransition.LOTTERY_DRAWN: (S.BEFORE_LOTTERY, S.AFTER_LOTTERY),
    ExternalTransition.CONFIRMED: (S.AFTER_LOTTERY, S.CONFIRMED),
    ExternalTransition.WITHDRAWN: (S.AFTER_LOTTERY, S.WITHDRAWN),
    ExternalTransition.UNCONFIRMED: (S.CONFIRMED, S.AFTER_LOTTERY),
}


def can_transition(current: S, target: S) -> bool:
    return S(target) in ALLOWED_TRANSITIONS.get(S(current), frozenset())


def ensure_transition(current: S, target: S) -> None:
    if not can_transition(current, target):
        raise StateConflictError(
            f"Application cannot move from {S(current).value} to {S(target).value}"
        )


def is_terminal(status: S) -> bool:
    return not ALLOWED_TRANSITIONS.get(S(status))
