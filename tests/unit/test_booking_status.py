import pytest

from framebook.domain.booking_status import (
    BookingAction,
    BookingStatus,
    TransitionApplied,
    TransitionRejected,
    resolve_next_booking_status,
)


def test_provider_can_confirm():
    result = resolve_next_booking_status("pending", "confirm", is_client=False, is_provider=True)
    assert result == TransitionApplied(status=BookingStatus.CONFIRMED)


def test_provider_can_decline():
    result = resolve_next_booking_status("pending", "decline", is_client=False, is_provider=True)
    assert result == TransitionApplied(status=BookingStatus.DECLINED)


def test_client_can_cancel():
    result = resolve_next_booking_status("pending", "cancel", is_client=True, is_provider=False)
    assert result == TransitionApplied(status=BookingStatus.CANCELED)


def test_provider_can_mark_done():
    result = resolve_next_booking_status("confirmed", "done", is_client=False, is_provider=True)
    assert result == TransitionApplied(status=BookingStatus.DONE)


def test_client_cannot_confirm():
    result = resolve_next_booking_status("pending", "confirm", is_client=True, is_provider=False)
    assert isinstance(result, TransitionRejected)


def test_provider_cannot_cancel():
    result = resolve_next_booking_status("pending", "cancel", is_client=False, is_provider=True)
    assert isinstance(result, TransitionRejected)


@pytest.mark.parametrize("action", ["xxx", "", "CONFIRM", "confirmed", None, 1])
def test_unknown_action_is_rejected_for_any_role(action):
    for is_client, is_provider in [(True, False), (False, True), (True, True), (False, False)]:
        result = resolve_next_booking_status("pending", action, is_client=is_client, is_provider=is_provider)
        assert isinstance(result, TransitionRejected)


@pytest.mark.parametrize("action", list(BookingAction))
def test_stranger_is_always_rejected(action):
    result = resolve_next_booking_status("pending", action, is_client=False, is_provider=False)
    assert isinstance(result, TransitionRejected)


def test_current_status_is_not_a_precondition():
    # done from pending and confirm from a finished booking are both allowed
    assert resolve_next_booking_status("pending", "done", False, True) == TransitionApplied(BookingStatus.DONE)
    assert resolve_next_booking_status("declined", "confirm", False, True) == TransitionApplied(
        BookingStatus.CONFIRMED
    )
    assert resolve_next_booking_status("garbage", "cancel", True, False) == TransitionApplied(
        BookingStatus.CANCELED
    )


def test_role_gates_are_independent():
    assert resolve_next_booking_status("pending", "confirm", True, True) == TransitionApplied(
        BookingStatus.CONFIRMED
    )
    assert resolve_next_booking_status("pending", "cancel", True, True) == TransitionApplied(
        BookingStatus.CANCELED
    )


def test_rejection_is_never_a_status():
    result = resolve_next_booking_status("pending", "confirm", is_client=True, is_provider=False)
    assert not isinstance(result, TransitionApplied)
    assert result.reason
    assert result != BookingStatus.PENDING
