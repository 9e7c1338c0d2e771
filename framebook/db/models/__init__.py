from framebook.db.models.booking import Booking
from framebook.db.models.review import Review
from framebook.db.models.unavailability import Unavailability
from framebook.db.models.user import User
from framebook.domain.booking_status import BookingStatus
from framebook.domain.roles import UserRole

__all__ = [
    "User",
    "UserRole",
    "Booking",
    "BookingStatus",
    "Unavailability",
    "Review",
]
