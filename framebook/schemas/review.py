from datetime import datetime

from pydantic import BaseModel, Field


class ReviewCreateRequest(BaseModel):
    booking_id: int
    rating: int = Field(ge=1, le=5)
    text: str = Field(default="", max_length=2000)


class ReviewResponse(BaseModel):
    id: int
    booking_id: int
    rating: int
    text: str
    created_at: datetime

    model_config = {"from_attributes": True}


class ProviderReviewResponse(ReviewResponse):
    client_username: str


class ProviderReviewsResponse(BaseModel):
    reviews: list[ProviderReviewResponse]
    avg_rating: float
    count: int
