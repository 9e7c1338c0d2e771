from enum import Enum


class UserRole(str, Enum):
    CLIENT = "CLIENT"
    VIDEOGRAPHER = "VIDEOGRAPHER"
    PHOTOGRAPHER = "PHOTOGRAPHER"
    ADMIN = "ADMIN"


def _coerce_role(role: "UserRole | str | None") -> UserRole | None:
    if isinstance(role, UserRole):
        return role
    if not isinstance(role, str):
        return None
    try:
        return UserRole(role)
    except ValueError:
        return None


def is_provider_role(role: UserRole | str | None) -> bool:
    """Return True when the role can receive bookings (photographers and videographers)."""
    match _coerce_role(role):
        case UserRole.VIDEOGRAPHER | UserRole.PHOTOGRAPHER:
            return True
        case UserRole.CLIENT | UserRole.ADMIN | None:
            return False
