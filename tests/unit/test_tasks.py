from datetime import UTC, datetime, timedelta

from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from framebook.db.models import Booking, BookingStatus, User, UserRole
from framebook.db.session import Database
from framebook.tasks.reminders import find_upcoming_bookings_for_reminder


def _build_session() -> Session:
    database = Database(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.create_all()
    return database.session()


def _seed_provider_and_client(db: Session) -> tuple[User, User]:
    provider = User(
        email="task-provider@example.com",
        username="task_provider",
        hashed_password="x",
        role=UserRole.PHOTOGRAPHER.value,
    )
    client = User(
        email="task-client@example.com",
        username="task_client",
        hashed_password="x",
        role=UserRole.CLIENT.value,
    )
    db.add_all([provider, client])
    db.flush()
    return provider, client


def test_reminders_include_only_confirmed_bookings_in_window():
    db = _build_session()
    provider, client = _seed_provider_and_client(db)
    now = datetime.now(UTC)

    def booking(starts_in: timedelta, status: BookingStatus) -> Booking:
        return Booking(
            client_id=client.id,
            provider_id=provider.id,
            starts_at=now + starts_in,
            duration_minutes=60,
            status=status.value,
        )

    near = booking(timedelta(minutes=30), BookingStatus.CONFIRMED)
    db.add_all(
        [
            near,
            booking(timedelta(hours=5), BookingStatus.CONFIRMED),
            booking(timedelta(minutes=45), BookingStatus.PENDING),
            booking(timedelta(minutes=-30), BookingStatus.CONFIRMED),
        ]
    )
    db.commit()

    upcoming = find_upcoming_bookings_for_reminder(db=db, now=now)

    assert [b.id for b in upcoming] == [near.id]
    db.close()
