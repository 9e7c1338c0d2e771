import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from framebook.db.models import Booking, BookingStatus, Review, User

logger = logging.getLogger(__name__)

REVIEW_EXISTS_DETAIL = "Review already exists"
BOOKING_NOT_DONE_DETAIL = "Booking must be done to review"
MAX_PROVIDER_REVIEWS = 100


def create_review(db: Session, client_id: int, booking_id: int, rating: int, text: str) -> Review:
    booking = db.scalar(select(Booking).options(joinedload(Booking.review)).where(Booking.id == booking_id))
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    if booking.client_id != client_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not enough permissions")
    if booking.status != BookingStatus.DONE.value:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=BOOKING_NOT_DONE_DETAIL)
    if booking.review is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=REVIEW_EXISTS_DETAIL)

    review = Review(
        booking_id=booking.id,
        client_id=booking.client_id,
        provider_id=booking.provider_id,
        rating=rating,
        text=text.strip(),
    )
    db.add(review)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=REVIEW_EXISTS_DETAIL) from None
    db.refresh(review)
    logger.info("review_created review_id=%s booking_id=%s rating=%s", review.id, booking.id, rating)
    return review


def list_provider_reviews(db: Session, username: str) -> tuple[list[Review], float]:
    provider = db.scalar(select(User).where(User.username == username))
    if not provider:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    reviews = db.scalars(
        select(Review)
        .options(joinedload(Review.client))
        .where(Review.provider_id == provider.id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .limit(MAX_PROVIDER_REVIEWS)
    ).all()
    avg_rating = sum(review.rating for review in reviews) / len(reviews) if reviews else 0.0
    return list(reviews), avg_rating
