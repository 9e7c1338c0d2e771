from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from framebook.api.deps import enforce_rate_limit, get_current_user, get_rate_limiter
from framebook.api.pagination import CursorParam, LimitParam, parse_cursor
from framebook.core.rate_limiter import RateLimiter, RateLimitScope
from framebook.db.models import Booking, BookingStatus, User
from framebook.db.session import get_db
from framebook.schemas.booking import (
    BookingActionRequest,
    BookingCreateRequest,
    BookingResponse,
    ClientBookingPage,
    ClientBookingResponse,
    ProviderBookingPage,
    ProviderBookingResponse,
)
from framebook.services.booking_service import (
    change_booking_status,
    create_booking,
    get_booking_for_party,
    list_client_bookings,
    list_provider_bookings,
)
from framebook.services.calendar_service import build_booking_calendar_ics

router = APIRouter(prefix="/bookings", tags=["bookings"])


def _client_view(booking: Booking) -> ClientBookingResponse:
    base = BookingResponse.model_validate(booking).model_dump()
    return ClientBookingResponse(
        **base,
        provider_username=booking.provider.username,
        provider_role=booking.provider.role,
        review_id=booking.review.id if booking.review else None,
        review_rating=booking.review.rating if booking.review else None,
    )


def _provider_view(booking: Booking) -> ProviderBookingResponse:
    base = BookingResponse.model_validate(booking).model_dump()
    return ProviderBookingResponse(**base, client_username=booking.client.username)


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking_request(
    payload: BookingCreateRequest,
    current_user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
    db: Session = Depends(get_db),
) -> BookingResponse:
    enforce_rate_limit(limiter, RateLimitScope.BOOKING_CREATE, current_user.id)
    booking = create_booking(db=db, client_id=current_user.id, payload=payload)
    return BookingResponse.model_validate(booking)


@router.get("/my", response_model=ClientBookingPage, status_code=status.HTTP_200_OK)
def list_my_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    cursor: CursorParam = None,
    limit: LimitParam = 20,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ClientBookingPage:
    bookings, next_cursor = list_client_bookings(
        db=db,
        client_id=current_user.id,
        limit=limit,
        cursor=parse_cursor(cursor),
        status_filter=status_filter,
    )
    return ClientBookingPage(bookings=[_client_view(b) for b in bookings], next_cursor=next_cursor)


@router.get("/to-me", response_model=ProviderBookingPage, status_code=status.HTTP_200_OK)
def list_bookings_to_me(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    cursor: CursorParam = None,
    limit: LimitParam = 20,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProviderBookingPage:
    bookings, next_cursor = list_provider_bookings(
        db=db,
        provider=current_user,
        limit=limit,
        cursor=parse_cursor(cursor),
        status_filter=status_filter,
    )
    return ProviderBookingPage(bookings=[_provider_view(b) for b in bookings], next_cursor=next_cursor)


@router.patch("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def update_booking_status(
    booking_id: int,
    payload: BookingActionRequest,
    current_user: User = Depends(get_current_user),
    limiter: RateLimiter = Depends(get_rate_limiter),
    db: Session = Depends(get_db),
) -> BookingResponse:
    enforce_rate_limit(limiter, RateLimitScope.BOOKING_ACTION, current_user.id)
    booking = change_booking_status(
        db=db,
        booking_id=booking_id,
        actor_id=current_user.id,
        action=payload.action,
    )
    return BookingResponse.model_validate(booking)


@router.get("/{booking_id}/calendar.ics", status_code=status.HTTP_200_OK)
def download_booking_calendar_file(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    booking = get_booking_for_party(db=db, booking_id=booking_id, user_id=current_user.id)
    ics_content = build_booking_calendar_ics(
        booking_id=booking.id,
        starts_at=booking.starts_at,
        ends_at=booking.ends_at,
        provider_username=booking.provider.username,
        client_username=booking.client.username,
        booking_status=booking.status,
        note=booking.note,
    )
    filename = f"booking-{booking.id}.ics"
    return Response(
        content=ics_content,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
