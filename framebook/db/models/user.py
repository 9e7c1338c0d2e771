from datetime import datetime

from sqlalchemy import Boolean, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from framebook.db.base import Base
from framebook.domain.roles import UserRole, is_provider_role


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    username: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default=UserRole.CLIENT.value)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )

    client_bookings = relationship("Booking", back_populates="client", foreign_keys="Booking.client_id")
    provider_bookings = relationship("Booking", back_populates="provider", foreign_keys="Booking.provider_id")
    unavailability = relationship("Unavailability", back_populates="provider", cascade="all, delete-orphan")

    @property
    def is_provider(self) -> bool:
        return is_provider_role(self.role)
