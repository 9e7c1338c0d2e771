from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from framebook.api.deps import get_current_user
from framebook.db.models import User
from framebook.db.session import get_db
from framebook.schemas.review import ReviewCreateRequest, ReviewResponse
from framebook.services.review_service import create_review

router = APIRouter(prefix="/reviews", tags=["reviews"])


@router.post("", response_model=ReviewResponse, status_code=status.HTTP_201_CREATED)
def create_booking_review(
    payload: ReviewCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ReviewResponse:
    review = create_review(
        db=db,
        client_id=current_user.id,
        booking_id=payload.booking_id,
        rating=payload.rating,
        text=payload.text,
    )
    return ReviewResponse.model_validate(review)
