from datetime import UTC, datetime

from framebook.domain.booking_status import BookingStatus

ICS_STATUS_BY_BOOKING_STATUS = {
    BookingStatus.PENDING.value: "TENTATIVE",
    BookingStatus.DECLINED.value: "CANCELLED",
    BookingStatus.CANCELED.value: "CANCELLED",
}


def _format_ics_datetime(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")


def _escape_ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", r"\;")
        .replace(",", r"\,")
        .replace("\r\n", r"\n")
        .replace("\n", r"\n")
    )


def to_ics_status(booking_status: str) -> str:
    return ICS_STATUS_BY_BOOKING_STATUS.get(booking_status, "CONFIRMED")


def build_booking_calendar_ics(
    booking_id: int,
    starts_at: datetime,
    ends_at: datetime,
    provider_username: str,
    client_username: str,
    booking_status: str,
    note: str | None = None,
) -> str:
    summary = _escape_ics_text(f"Shoot with {provider_username}")
    description_lines = [
        f"Booking #{booking_id}",
        f"Provider: {provider_username}",
        f"Client: {client_username}",
    ]
    if note:
        description_lines.append(f"Note: {note}")
    description = _escape_ics_text("\n".join(description_lines))

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//framebook//Bookings//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:booking-{booking_id}@framebook.local",
        f"DTSTAMP:{_format_ics_datetime(datetime.now(UTC))}",
        f"DTSTART:{_format_ics_datetime(starts_at)}",
        f"DTEND:{_format_ics_datetime(ends_at)}",
        f"SUMMARY:{summary}",
        f"DESCRIPTION:{description}",
        f"STATUS:{to_ics_status(booking_status)}",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
    return "\r\n".join(lines)
