"""
PackageOption model - a purchasable variant of an Experience
("Standard", "Premium", ...), with its time slots and itinerary.

Age-category tiers, blackout dates/weekdays and inclusion lists are stored
as JSONB on the package row. Packages are replaced wholesale when a business
edits an experience (delete then reinsert), so their ids are not stable.
"""

import uuid
from datetime import time
from typing import List, Optional, TYPE_CHECKING

from sqlalchemy import Float, ForeignKey, Integer, String, Text, Time
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import UUIDBase

if TYPE_CHECKING:
    from app.models.experience import Experience


class PackageOption(UUIDBase):
    """
    A package of an experience.

    age_categories:
      [{"label": "Adult", "min": 13, "max": null, "price": 50}, ...]
    unavailable_dates:
      ["2026-12-25", ...] (ISO calendar dates)
    unavailable_days:
      [0, 6] weekday indices, 0=Sunday..6=Saturday
    """

    __tablename__ = "package_options"

    experience_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Display / insertion order within the experience
    position: Mapped[int] = mapped_column(Integer, default=0)

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Meeting point
    meeting_point_address: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    meeting_point_lat: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    meeting_point_lng: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    meeting_point_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Pricing tiers
    age_categories: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)

    # Content
    inclusions: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)
    exclusions: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)
    additional_info: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Availability
    unavailable_dates: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)
    unavailable_days: Mapped[Optional[list]] = mapped_column(JSONB, nullable=True)

    # Relationships
    experience: Mapped["Experience"] = relationship("Experience", back_populates="packages")
    start_end_times: Mapped[List["PackageStartEndTime"]] = relationship(
        "PackageStartEndTime",
        back_populates="package_option",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PackageStartEndTime.start_time",
    )
    itinerary_steps: Mapped[List["PackageItineraryStep"]] = relationship(
        "PackageItineraryStep",
        back_populates="package_option",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="(PackageItineraryStep.day, PackageItineraryStep.order_index)",
    )

    def __repr__(self) -> str:
        return f"<PackageOption(id={self.id}, name='{self.name}')>"


class PackageStartEndTime(UUIDBase):
    """A bookable time slot of a package, with its capacity."""

    __tablename__ = "package_option_start_end_times"

    package_option_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("package_options.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    capacity: Mapped[int] = mapped_column(Integer, default=10)

    package_option: Mapped["PackageOption"] = relationship(
        "PackageOption", back_populates="start_end_times"
    )

    def __repr__(self) -> str:
        return f"<PackageStartEndTime(id={self.id}, start={self.start_time}, capacity={self.capacity})>"


class PackageItineraryStep(UUIDBase):
    """An ordered step of a package itinerary."""

    __tablename__ = "package_itinerary_steps"

    package_option_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("package_options.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day: Mapped[int] = mapped_column(Integer, default=1)
    order_index: Mapped[int] = mapped_column(Integer, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)  # "1 hour"

    package_option: Mapped["PackageOption"] = relationship(
        "PackageOption", back_populates="itinerary_steps"
    )

    def __repr__(self) -> str:
        return f"<PackageItineraryStep(day={self.day}, order={self.order_index}, title='{self.title}')>"


# Import at end to avoid circular imports
from app.models.experience import Experience  # noqa: E402
