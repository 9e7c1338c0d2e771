from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from framebook.db.session import get_db
from framebook.schemas.booking import BookingResponse
from framebook.schemas.review import ProviderReviewResponse, ProviderReviewsResponse
from framebook.schemas.schedule import ProviderCalendarResponse, UnavailabilityResponse
from framebook.schemas.user import ProviderIdResponse
from framebook.services.review_service import list_provider_reviews
from framebook.services.schedule_service import get_provider_by_username, get_provider_calendar

router = APIRouter(prefix="/providers", tags=["providers"])


@router.get("/{username}/id", response_model=ProviderIdResponse, status_code=status.HTTP_200_OK)
def get_provider_id(username: str, db: Session = Depends(get_db)) -> ProviderIdResponse:
    provider = get_provider_by_username(db=db, username=username)
    return ProviderIdResponse(id=provider.id)


@router.get("/{username}/calendar", response_model=ProviderCalendarResponse, status_code=status.HTTP_200_OK)
def get_calendar(username: str, db: Session = Depends(get_db)) -> ProviderCalendarResponse:
    busy, bookings = get_provider_calendar(db=db, username=username)
    return ProviderCalendarResponse(
        busy=[UnavailabilityResponse.model_validate(item) for item in busy],
        bookings=[BookingResponse.model_validate(booking) for booking in bookings],
    )


@router.get("/{username}/reviews", response_model=ProviderReviewsResponse, status_code=status.HTTP_200_OK)
def get_reviews(username: str, db: Session = Depends(get_db)) -> ProviderReviewsResponse:
    reviews, avg_rating = list_provider_reviews(db=db, username=username)
    return ProviderReviewsResponse(
        reviews=[
            ProviderReviewResponse(
                id=review.id,
                booking_id=review.booking_id,
                rating=review.rating,
                text=review.text,
                created_at=review.created_at,
                client_username=review.client.username,
            )
            for review in reviews
        ],
        avg_rating=avg_rating,
        count=len(reviews),
    )
