import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.orm import Session

from framebook.core.config import settings
from framebook.db.models import Booking, BookingStatus
from framebook.db.session import Database
from framebook.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def find_upcoming_bookings_for_reminder(db: Session, now: datetime | None = None) -> list[Booking]:
    current_time = now or datetime.now(UTC)
    reminder_until = current_time + timedelta(minutes=settings.reminder_lookahead_minutes)

    upcoming = db.scalars(
        select(Booking)
        .where(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.starts_at >= current_time,
            Booking.starts_at < reminder_until,
        )
        .order_by(Booking.starts_at)
    ).all()
    return list(upcoming)


@celery_app.task(name="bookings.remind_upcoming")
def remind_upcoming_bookings_task() -> dict[str, int]:
    database = Database(settings.database_url)
    db = database.session()
    try:
        upcoming = find_upcoming_bookings_for_reminder(db=db)
        for booking in upcoming:
            logger.info(
                "booking_reminder booking_id=%s client_id=%s provider_id=%s starts_at=%s",
                booking.id,
                booking.client_id,
                booking.provider_id,
                booking.starts_at.isoformat(),
            )
        return {"to_remind": len(upcoming)}
    finally:
        db.close()
        database.dispose()
