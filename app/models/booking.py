"""
Booking model - a traveler reservation of an experience package slot.

Bookings only soft-reference the catalog: experience and package links are
nulled on delete, and the package name / start time are copied on the row
so capacity can still be counted after a business replaces its packages.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, TYPE_CHECKING

from sqlalchemy import DECIMAL, Date, DateTime, Enum as SQLEnum, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import UUIDBase

if TYPE_CHECKING:
    from app.models.experience import Experience
    from app.models.profile import Profile


BOOKING_STATUSES = ("pending", "confirmed", "cancelled")
PAYMENT_STATUSES = ("pending", "paid")


class Booking(UUIDBase):
    """A reservation created at checkout."""

    __tablename__ = "bookings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    experience_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    package_option_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("package_options.id", ondelete="SET NULL"),
        nullable=True,
    )

    # Snapshot of the selection
    package_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    booking_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    booking_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)  # "HH:MM"
    participants: Mapped[int] = mapped_column(Integer, nullable=False)
    headcounts: Mapped[Optional[dict]] = mapped_column(JSONB, nullable=True)  # {"adult": 2, "child": 1}
    language: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Financials
    total_price: Mapped[Decimal] = mapped_column(DECIMAL(12, 2), nullable=False)
    currency: Mapped[str] = mapped_column(String(3), default="usd")

    # Contact
    contact_email: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    special_requests: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Status
    status: Mapped[str] = mapped_column(
        SQLEnum(*BOOKING_STATUSES, name="booking_status_enum"),
        default="pending",
    )
    payment_status: Mapped[str] = mapped_column(
        SQLEnum(*PAYMENT_STATUSES, name="payment_status_enum"),
        default="pending",
    )

    # Payment tracking
    checkout_session_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    payment_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    user: Mapped["Profile"] = relationship("Profile")
    experience: Mapped[Optional["Experience"]] = relationship("Experience")

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, date={self.booking_date}, status='{self.status}')>"


# Import at end to avoid circular imports
from app.models.experience import Experience  # noqa: E402
from app.models.profile import Profile  # noqa: E402
