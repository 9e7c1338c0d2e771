from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError

from framebook.schemas.booking import BookingCreateRequest
from framebook.services.booking_service import booking_window, clamp_duration

START = datetime(2026, 6, 1, 10, 0, tzinfo=UTC)


@pytest.mark.parametrize(("minutes", "expected"), [(5, 15), (15, 15), (90, 90), (239.6, 240), (600, 240)])
def test_clamp_duration(minutes, expected):
    assert clamp_duration(minutes) == expected


def test_window_from_start_and_end():
    payload = BookingCreateRequest(provider_id=1, starts_at=START, ends_at=START + timedelta(minutes=45))
    assert booking_window(payload) == (START, 45)


def test_window_from_date_defaults_to_an_hour():
    payload = BookingCreateRequest(provider_id=1, date=START)
    assert booking_window(payload) == (START, 60)


def test_window_from_date_clamps_duration():
    payload = BookingCreateRequest(provider_id=1, date=START, duration_minutes=1000)
    assert booking_window(payload) == (START, 240)


def test_offset_datetimes_are_normalized_to_utc():
    payload = BookingCreateRequest(provider_id=1, date="2026-06-01T12:00:00+02:00")
    assert payload.date == START


def test_window_requires_start_before_end():
    with pytest.raises(ValidationError):
        BookingCreateRequest(provider_id=1, starts_at=START, ends_at=START)


def test_window_requires_some_time():
    with pytest.raises(ValidationError):
        BookingCreateRequest(provider_id=1)
