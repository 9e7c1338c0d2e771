import logging
from datetime import datetime

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from framebook.db.models import Booking, Unavailability, User
from framebook.db.models.booking import as_utc
from framebook.db.session import is_postgresql_session
from framebook.domain.booking_status import ACTIVE_STATUSES

logger = logging.getLogger(__name__)

USER_NOT_FOUND_DETAIL = "User not found"
NOT_A_PROVIDER_DETAIL = "User is not a provider"
BUSY_OVERLAP_DETAIL = "Busy interval overlaps existing busy"
BOOKING_OVERLAP_DETAIL = "Busy interval overlaps existing booking"


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    return a_start < b_end and a_end > b_start


def has_busy_overlap(db: Session, provider_id: int, starts_at: datetime, ends_at: datetime) -> bool:
    busy = db.execute(
        select(Unavailability.starts_at, Unavailability.ends_at).where(Unavailability.provider_id == provider_id)
    ).all()
    return any(overlaps(starts_at, ends_at, as_utc(b_start), as_utc(b_end)) for b_start, b_end in busy)


def has_active_booking_overlap(db: Session, provider_id: int, starts_at: datetime, ends_at: datetime) -> bool:
    bookings = db.scalars(
        select(Booking).where(
            Booking.provider_id == provider_id,
            Booking.status.in_([s.value for s in ACTIVE_STATUSES]),
        )
    ).all()
    return any(overlaps(starts_at, ends_at, as_utc(b.starts_at), b.ends_at) for b in bookings)


def lock_provider_calendar(db: Session, provider_id: int) -> User | None:
    """Load a provider, holding its row lock on PostgreSQL until commit.

    Booking creation and busy-time creation both take this lock before their
    overlap checks, so writes to one provider calendar are serialized.
    """
    query = select(User).where(User.id == provider_id)
    if is_postgresql_session(db):
        query = query.with_for_update()
    return db.scalar(query)


def get_provider_by_username(db: Session, username: str) -> User:
    user = db.scalar(select(User).where(User.username == username))
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=USER_NOT_FOUND_DETAIL)
    if not user.is_provider:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=NOT_A_PROVIDER_DETAIL)
    return user


def get_provider_calendar(db: Session, username: str) -> tuple[list[Unavailability], list[Booking]]:
    provider = get_provider_by_username(db=db, username=username)
    busy = db.scalars(
        select(Unavailability)
        .where(Unavailability.provider_id == provider.id)
        .order_by(Unavailability.starts_at)
    ).all()
    bookings = db.scalars(
        select(Booking).where(Booking.provider_id == provider.id).order_by(Booking.starts_at)
    ).all()
    return list(busy), list(bookings)


def add_unavailability(db: Session, provider: User, starts_at: datetime, ends_at: datetime) -> Unavailability:
    if not provider.is_provider:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only providers can add busy time")
    lock_provider_calendar(db=db, provider_id=provider.id)

    if has_busy_overlap(db=db, provider_id=provider.id, starts_at=starts_at, ends_at=ends_at):
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=BUSY_OVERLAP_DETAIL)
    if has_active_booking_overlap(db=db, provider_id=provider.id, starts_at=starts_at, ends_at=ends_at):
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=BOOKING_OVERLAP_DETAIL)

    item = Unavailability(provider_id=provider.id, starts_at=starts_at, ends_at=ends_at)
    db.add(item)
    db.commit()
    db.refresh(item)
    logger.info("unavailability_added provider_id=%s item_id=%s", provider.id, item.id)
    return item


def remove_unavailability(db: Session, provider_id: int, item_id: int) -> None:
    item = db.get(Unavailability, item_id)
    if not item:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Busy interval not found")
    if item.provider_id != provider_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")

    db.delete(item)
    db.commit()
    logger.info("unavailability_removed provider_id=%s item_id=%s", provider_id, item_id)
