"""
Experience and Review models.

An experience is a bookable tour/activity owned by a business profile.
Its purchasable variants live in PackageOption (see package_option.py).
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import DECIMAL, Date, Enum as SQLEnum, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import UUIDBase

if TYPE_CHECKING:
    from app.models.package_option import PackageOption
    from app.models.profile import Profile


class Experience(UUIDBase):
    """
    A bookable product.

    price is the base price: used as the "from" price when no package
    declares age categories, and to derive the default tier schedule.
    """

    __tablename__ = "experiences"

    business_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("user_profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)

    # Location
    location: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    country: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Commercial
    price: Mapped[Decimal] = mapped_column(DECIMAL(10, 2), nullable=False, default=Decimal("0"))
    duration: Mapped[int] = mapped_column(Integer, default=1)  # hours
    max_participants: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    languages: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    additional_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # [{"hours_before": 24, "refund_percent": 100}, ...]
    cancellation_policy: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)

    # Reputation
    rating: Mapped[float] = mapped_column(Float, default=0)
    reviews_count: Mapped[int] = mapped_column(Integer, default=0)

    # Media
    image_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    images: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)

    status: Mapped[str] = mapped_column(
        SQLEnum("draft", "active", "inactive", name="experience_status_enum"),
        default="active",
    )

    # Relationships
    business: Mapped["Profile"] = relationship("Profile")
    packages: Mapped[List["PackageOption"]] = relationship(
        "PackageOption",
        back_populates="experience",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PackageOption.position",
    )
    reviews: Mapped[List["Review"]] = relationship(
        "Review",
        back_populates="experience",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Experience(id={self.id}, title='{self.title}', status='{self.status}')>"


class Review(UUIDBase):
    """A traveler review of an experience."""

    __tablename__ = "reviews"

    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_name: Mapped[str] = mapped_column(String(255), nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    review_date: Mapped[date] = mapped_column("date", Date, nullable=False)

    experience: Mapped["Experience"] = relationship("Experience", back_populates="reviews")

    def __repr__(self) -> str:
        return f"<Review(id={self.id}, rating={self.rating})>"


# Import at end to avoid circular imports
from app.models.package_option import PackageOption  # noqa: E402
from app.models.profile import Profile  # noqa: E402
