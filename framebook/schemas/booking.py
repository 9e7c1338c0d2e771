from datetime import UTC, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from framebook.domain.booking_status import BookingStatus


def _to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class BookingCreateRequest(BaseModel):
    """Either ``starts_at``/``ends_at`` or ``date`` with an optional duration."""

    provider_id: int
    starts_at: datetime | None = None
    ends_at: datetime | None = None
    date: datetime | None = None
    duration_minutes: int | None = None
    note: str | None = Field(default=None, max_length=1000)

    @field_validator("starts_at", "ends_at", "date")
    @classmethod
    def normalize_timezone(cls, value: datetime | None) -> datetime | None:
        return _to_utc(value)

    @model_validator(mode="after")
    def validate_window(self) -> "BookingCreateRequest":
        if self.starts_at is not None and self.ends_at is not None:
            if self.ends_at <= self.starts_at:
                raise ValueError("starts_at must be earlier than ends_at")
            return self
        if self.date is None:
            raise ValueError("Provide starts_at and ends_at, or date")
        return self


class BookingActionRequest(BaseModel):
    action: str


class BookingResponse(BaseModel):
    id: int
    client_id: int
    provider_id: int
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int | None
    note: str | None
    status: BookingStatus
    created_at: datetime
    updated_at: datetime | None

    model_config = {"from_attributes": True}


class ClientBookingResponse(BookingResponse):
    provider_username: str
    provider_role: str
    review_id: int | None = None
    review_rating: int | None = None


class ProviderBookingResponse(BookingResponse):
    client_username: str


class ClientBookingPage(BaseModel):
    bookings: list[ClientBookingResponse]
    next_cursor: int | None


class ProviderBookingPage(BaseModel):
    bookings: list[ProviderBookingResponse]
    next_cursor: int | None
