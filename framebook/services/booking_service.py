import logging
from datetime import UTC, datetime, timedelta

from fastapi import HTTPException, status
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, joinedload

from framebook.core.config import settings
from framebook.core.metrics import BOOKING_TRANSITIONS
from framebook.db.models import Booking, BookingStatus, User
from framebook.db.session import is_postgresql_session
from framebook.domain.booking_status import (
    BookingAction,
    TransitionApplied,
    TransitionRejected,
    resolve_next_booking_status,
)
from framebook.schemas.booking import BookingCreateRequest
from framebook.services.schedule_service import (
    NOT_A_PROVIDER_DETAIL,
    has_active_booking_overlap,
    has_busy_overlap,
    lock_provider_calendar,
)

logger = logging.getLogger(__name__)

BOOKING_NOT_FOUND_DETAIL = "Booking not found"
CANNOT_BOOK_SELF_DETAIL = "Cannot book yourself"
PROVIDER_BUSY_DETAIL = "Provider is busy at this time"
SLOT_ALREADY_BOOKED_DETAIL = "This slot is already booked"
NOT_A_PARTY_DETAIL = "Not enough permissions"
LOCK_CONFLICT_DETAIL = "Booking is being updated. Retry the request."
STATUS_CHANGED_DETAIL = "Booking status changed concurrently. Reload and retry."
PG_LOCK_NOT_AVAILABLE_SQLSTATE = "55P03"


def _is_pg_lock_not_available(exc: OperationalError) -> bool:
    original_error = getattr(exc, "orig", None)
    if original_error is None:
        return False

    sqlstate = getattr(original_error, "sqlstate", None)
    if sqlstate is None:
        sqlstate = getattr(original_error, "pgcode", None)

    return sqlstate == PG_LOCK_NOT_AVAILABLE_SQLSTATE


def clamp_duration(minutes: float) -> int:
    return max(
        settings.min_booking_duration_minutes,
        min(settings.max_booking_duration_minutes, round(minutes)),
    )


def booking_window(payload: BookingCreateRequest) -> tuple[datetime, int]:
    """Return the start and clamped duration of a requested booking."""
    if payload.starts_at is not None and payload.ends_at is not None:
        seconds = (payload.ends_at - payload.starts_at).total_seconds()
        return payload.starts_at, clamp_duration(seconds / 60)

    requested = payload.duration_minutes
    if requested is None:
        requested = settings.default_booking_duration_minutes
    return payload.date, clamp_duration(requested)


def create_booking(db: Session, client_id: int, payload: BookingCreateRequest) -> Booking:
    if payload.provider_id == client_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=CANNOT_BOOK_SELF_DETAIL)

    provider = lock_provider_calendar(db=db, provider_id=payload.provider_id)
    if not provider:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Provider not found")
    if not provider.is_provider:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=NOT_A_PROVIDER_DETAIL)

    starts_at, duration_minutes = booking_window(payload)
    ends_at = starts_at + timedelta(minutes=duration_minutes)

    if has_busy_overlap(db=db, provider_id=provider.id, starts_at=starts_at, ends_at=ends_at):
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=PROVIDER_BUSY_DETAIL)
    if has_active_booking_overlap(db=db, provider_id=provider.id, starts_at=starts_at, ends_at=ends_at):
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLOT_ALREADY_BOOKED_DETAIL)

    note = payload.note.strip() if payload.note else None
    booking = Booking(
        client_id=client_id,
        provider_id=provider.id,
        starts_at=starts_at,
        duration_minutes=duration_minutes,
        note=note or None,
        status=BookingStatus.PENDING.value,
    )
    db.add(booking)
    db.commit()
    db.refresh(booking)
    logger.info(
        "booking_created booking_id=%s client_id=%s provider_id=%s",
        booking.id,
        client_id,
        provider.id,
    )
    return booking


def _metric_action(action: str) -> str:
    if action in {known.value for known in BookingAction}:
        return action
    return "invalid"


def change_booking_status(db: Session, booking_id: int, actor_id: int, action: str) -> Booking:
    """Apply a client or provider action to a booking and persist the new status."""
    metric_action = _metric_action(action)
    try:
        query = select(Booking).where(Booking.id == booking_id).execution_options(populate_existing=True)
        if is_postgresql_session(db):
            query = query.with_for_update(nowait=True)

        booking = db.scalar(query)
        if not booking:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOKING_NOT_FOUND_DETAIL)

        is_client = booking.client_id == actor_id
        is_provider = booking.provider_id == actor_id
        if not (is_client or is_provider):
            db.rollback()
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_A_PARTY_DETAIL)

        loaded_status = booking.status
        result = resolve_next_booking_status(
            loaded_status,
            action,
            is_client=is_client,
            is_provider=is_provider,
        )

        match result:
            case TransitionRejected(reason=reason):
                db.rollback()
                BOOKING_TRANSITIONS.labels(action=metric_action, outcome="rejected").inc()
                logger.info(
                    "booking_transition_rejected booking_id=%s actor_id=%s action=%s reason=%s",
                    booking_id,
                    actor_id,
                    metric_action,
                    reason,
                )
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=reason)
            case TransitionApplied(status=next_status):
                updated = db.execute(
                    update(Booking)
                    .where(Booking.id == booking_id, Booking.status == loaded_status)
                    .values(status=next_status.value, updated_at=datetime.now(UTC))
                )
                if updated.rowcount != 1:
                    db.rollback()
                    BOOKING_TRANSITIONS.labels(action=metric_action, outcome="conflict").inc()
                    raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=STATUS_CHANGED_DETAIL)
                db.commit()
    except OperationalError as exc:
        db.rollback()
        if _is_pg_lock_not_available(exc):
            BOOKING_TRANSITIONS.labels(action=metric_action, outcome="conflict").inc()
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=LOCK_CONFLICT_DETAIL) from None
        raise

    db.refresh(booking)
    BOOKING_TRANSITIONS.labels(action=metric_action, outcome="applied").inc()
    logger.info(
        "booking_transition_applied booking_id=%s actor_id=%s action=%s from=%s to=%s",
        booking_id,
        actor_id,
        metric_action,
        loaded_status,
        booking.status,
    )
    return booking


def _page(bookings: list[Booking], limit: int) -> tuple[list[Booking], int | None]:
    next_cursor = bookings[-1].id if len(bookings) == limit else None
    return bookings, next_cursor


def list_client_bookings(
    db: Session,
    client_id: int,
    limit: int,
    cursor: int | None = None,
    status_filter: BookingStatus | None = None,
) -> tuple[list[Booking], int | None]:
    query = (
        select(Booking)
        .options(joinedload(Booking.provider), joinedload(Booking.review))
        .where(Booking.client_id == client_id)
    )
    if status_filter:
        query = query.where(Booking.status == status_filter.value)
    if cursor is not None:
        query = query.where(Booking.id < cursor)

    bookings = db.scalars(query.order_by(Booking.id.desc()).limit(limit)).unique().all()
    return _page(list(bookings), limit)


def list_provider_bookings(
    db: Session,
    provider: User,
    limit: int,
    cursor: int | None = None,
    status_filter: BookingStatus | None = None,
) -> tuple[list[Booking], int | None]:
    if not provider.is_provider:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Only providers can view requests")

    query = select(Booking).options(joinedload(Booking.client)).where(Booking.provider_id == provider.id)
    if status_filter:
        query = query.where(Booking.status == status_filter.value)
    if cursor is not None:
        query = query.where(Booking.id < cursor)

    bookings = db.scalars(query.order_by(Booking.id.desc()).limit(limit)).unique().all()
    return _page(list(bookings), limit)


def get_booking_for_party(db: Session, booking_id: int, user_id: int) -> Booking:
    booking = db.scalar(
        select(Booking)
        .options(joinedload(Booking.client), joinedload(Booking.provider))
        .where(Booking.id == booking_id)
    )
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=BOOKING_NOT_FOUND_DETAIL)
    if user_id not in (booking.client_id, booking.provider_id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_A_PARTY_DETAIL)
    return booking
