"""Booking status transitions.

A booking request starts as ``pending``. The provider confirms, declines or
marks it done, and the client cancels it. Gating is by role only: the current
status is taken as stored and is never checked against the action.
"""

from dataclasses import dataclass
from enum import Enum


class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    DECLINED = "declined"
    CANCELED = "canceled"
    DONE = "done"


class BookingAction(str, Enum):
    CONFIRM = "confirm"
    DECLINE = "decline"
    CANCEL = "cancel"
    DONE = "done"


ACTIVE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


@dataclass(frozen=True)
class TransitionApplied:
    status: BookingStatus


@dataclass(frozen=True)
class TransitionRejected:
    reason: str


TransitionResult = TransitionApplied | TransitionRejected

PROVIDER = "provider"
CLIENT = "client"

# action -> (party allowed to perform it, resulting status)
BOOKING_TRANSITIONS: dict[BookingAction, tuple[str, BookingStatus]] = {
    BookingAction.CONFIRM: (PROVIDER, BookingStatus.CONFIRMED),
    BookingAction.DECLINE: (PROVIDER, BookingStatus.DECLINED),
    BookingAction.CANCEL: (CLIENT, BookingStatus.CANCELED),
    BookingAction.DONE: (PROVIDER, BookingStatus.DONE),
}


def _parse_action(action: object) -> BookingAction | None:
    if isinstance(action, BookingAction):
        return action
    if not isinstance(action, str):
        return None
    try:
        return BookingAction(action)
    except ValueError:
        return None


def resolve_next_booking_status(
    current_status: BookingStatus | str,
    action: BookingAction | str,
    is_client: bool,
    is_provider: bool,
) -> TransitionResult:
    parsed = _parse_action(action)
    if parsed is None:
        return TransitionRejected(reason="Invalid action")

    party, next_status = BOOKING_TRANSITIONS[parsed]
    if party == PROVIDER and not is_provider:
        return TransitionRejected(reason=f"Only the provider can {parsed.value} this booking")
    if party == CLIENT and not is_client:
        return TransitionRejected(reason=f"Only the client can {parsed.value} this booking")
    return TransitionApplied(status=next_status)
