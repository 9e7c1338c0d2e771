from datetime import UTC, datetime

from pydantic import BaseModel, field_validator, model_validator

from framebook.schemas.booking import BookingResponse


class UnavailabilityCreateRequest(BaseModel):
    starts_at: datetime
    ends_at: datetime

    @field_validator("starts_at", "ends_at")
    @classmethod
    def normalize_timezone(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @model_validator(mode="after")
    def validate_interval(self) -> "UnavailabilityCreateRequest":
        if self.ends_at <= self.starts_at:
            raise ValueError("starts_at must be earlier than ends_at")
        return self


class UnavailabilityResponse(BaseModel):
    id: int
    starts_at: datetime
    ends_at: datetime

    model_config = {"from_attributes": True}


class ProviderCalendarResponse(BaseModel):
    busy: list[UnavailabilityResponse]
    bookings: list[BookingResponse]
