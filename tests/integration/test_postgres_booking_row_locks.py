import os
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import HTTPException
from sqlalchemy import select

from framebook.db.models import Booking, BookingStatus, Unavailability, User, UserRole
from framebook.db.session import Database
from framebook.services.booking_service import LOCK_CONFLICT_DETAIL, change_booking_status
from framebook.services.schedule_service import (
    BOOKING_OVERLAP_DETAIL,
    add_unavailability,
    lock_provider_calendar,
)

TEST_POSTGRES_DATABASE_URL = os.getenv("TEST_POSTGRES_DATABASE_URL")


@pytest.fixture(scope="module")
def postgres_database():
    if not TEST_POSTGRES_DATABASE_URL:
        pytest.skip("TEST_POSTGRES_DATABASE_URL is not set")

    database = Database(TEST_POSTGRES_DATABASE_URL)
    database.drop_all()
    database.create_all()
    try:
        yield database
    finally:
        database.drop_all()
        database.dispose()


def _seed_parties(database: Database, prefix: str) -> tuple[int, int]:
    seed_session = database.session()
    provider = User(
        email=f"{prefix}-provider@example.com",
        username=f"{prefix}_provider",
        hashed_password="x",
        role=UserRole.VIDEOGRAPHER.value,
    )
    client = User(
        email=f"{prefix}-client@example.com",
        username=f"{prefix}_client",
        hashed_password="x",
        role=UserRole.CLIENT.value,
    )
    seed_session.add_all([provider, client])
    seed_session.commit()
    ids = provider.id, client.id
    seed_session.close()
    return ids


@pytest.mark.postgres
def test_status_change_conflicts_while_row_is_locked_then_succeeds(postgres_database):
    provider_id, client_id = _seed_parties(postgres_database, "pg-lock")
    seed_session = postgres_database.session()
    booking = Booking(
        client_id=client_id,
        provider_id=provider_id,
        starts_at=datetime.now(UTC) + timedelta(days=1),
        duration_minutes=60,
        status=BookingStatus.PENDING.value,
    )
    seed_session.add(booking)
    seed_session.commit()
    booking_id = booking.id
    seed_session.close()

    lock_holder = postgres_database.session()
    try:
        locked = lock_holder.scalar(select(Booking).where(Booking.id == booking_id).with_for_update())
        assert locked is not None

        contender = postgres_database.session()
        try:
            with pytest.raises(HTTPException) as exc_info:
                change_booking_status(db=contender, booking_id=booking_id, actor_id=provider_id, action="confirm")
            assert exc_info.value.status_code == 409
            assert exc_info.value.detail == LOCK_CONFLICT_DETAIL
        finally:
            contender.close()
    finally:
        lock_holder.rollback()
        lock_holder.close()

    success_session = postgres_database.session()
    updated = change_booking_status(db=success_session, booking_id=booking_id, actor_id=provider_id, action="confirm")
    assert updated.status == BookingStatus.CONFIRMED.value
    success_session.close()


@pytest.mark.postgres
def test_busy_time_waits_for_calendar_lock_and_sees_new_booking(postgres_database):
    provider_id, client_id = _seed_parties(postgres_database, "pg-busy")
    starts_at = datetime.now(UTC) + timedelta(days=2)

    def add_busy_time() -> Unavailability:
        contender = postgres_database.session()
        try:
            provider = contender.get(User, provider_id)
            return add_unavailability(
                db=contender,
                provider=provider,
                starts_at=starts_at + timedelta(minutes=30),
                ends_at=starts_at + timedelta(minutes=90),
            )
        finally:
            contender.close()

    lock_holder = postgres_database.session()
    try:
        assert lock_provider_calendar(db=lock_holder, provider_id=provider_id) is not None
        lock_holder.add(
            Booking(
                client_id=client_id,
                provider_id=provider_id,
                starts_at=starts_at,
                duration_minutes=60,
                status=BookingStatus.PENDING.value,
            )
        )
        lock_holder.flush()

        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(add_busy_time)
            with pytest.raises(TimeoutError):
                future.result(timeout=0.5)

            lock_holder.commit()
            with pytest.raises(HTTPException) as exc_info:
                future.result(timeout=5)
    finally:
        lock_holder.close()

    assert exc_info.value.status_code == 409
    assert exc_info.value.detail == BOOKING_OVERLAP_DETAIL

    check_session = postgres_database.session()
    assert check_session.scalars(select(Unavailability).where(Unavailability.provider_id == provider_id)).all() == []
    check_session.close()
