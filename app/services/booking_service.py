"""
Booking service: turns a booking-widget selection into a Booking row.

The selection is re-validated server-side against the catalog (date
availability, slot, headcounts, participant cap) and the total is recomputed
with the pricing engine; the client-side total is never trusted.

Slot capacity is enforced at creation: the slot row is locked with
SELECT ... FOR UPDATE so concurrent bookings for the same slot serialize,
then the participants of every non-cancelled booking on that
experience/package/date/start time are summed against the slot capacity.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking
from app.models.package_option import PackageStartEndTime
from app.services.availability import DEFAULT_HORIZON_DAYS, is_bookable
from app.services.booking_selection import category_floor
from app.services.package_catalog import CatalogPackage, ExperienceCatalog, TimeSlot, load_catalog
from app.services.pricing_engine import compute_total

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base class for booking failures; status_code is the HTTP mapping."""

    status_code = 400

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ExperienceNotFoundError(BookingError):
    status_code = 404


class InvalidSelectionError(BookingError):
    status_code = 400


class CapacityExceededError(BookingError):
    status_code = 409

    def __init__(self, remaining: int, requested: int):
        self.remaining = remaining
        self.requested = requested
        super().__init__(
            f"Only {remaining} place(s) left for this time slot, {requested} requested"
        )


@dataclass
class ValidatedBooking:
    package: CatalogPackage
    slot: TimeSlot
    booking_date: date
    headcounts: Dict[str, int]
    participants: int
    total_price: Decimal


def validate_booking_request(
    catalog: ExperienceCatalog,
    package_id: str,
    booking_date: str,
    start_time: str,
    headcounts: Dict[str, int],
    today: Optional[date] = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> ValidatedBooking:
    """
    Check a selection against the catalog and price it.

    Raises:
        InvalidSelectionError describing the first problem found
    """
    if not catalog.is_active:
        raise InvalidSelectionError("This experience is not bookable")

    package_index = catalog.package_index_of(package_id)
    if package_index is None:
        raise InvalidSelectionError(f"Unknown package '{package_id}'")
    package = catalog.packages[package_index]

    if not is_bookable(booking_date, catalog, package_index, horizon_days=horizon_days, today=today):
        raise InvalidSelectionError(f"Date {booking_date} is not available for this package")

    slot = package.find_slot(start_time)
    if slot is None:
        raise InvalidSelectionError(f"Start time {start_time} is not offered by this package")

    counts: Dict[str, int] = {}
    for key, count in (headcounts or {}).items():
        if package.find_category(key) is None:
            raise InvalidSelectionError(f"Unknown age category '{key}'")
        if count < 0:
            raise InvalidSelectionError(f"Negative headcount for '{key}'")
        counts[key] = count

    for category in package.age_categories:
        counts.setdefault(category.key, 0)
        floor = category_floor(package, category.key)
        if counts[category.key] < floor:
            raise InvalidSelectionError(
                f"At least {floor} '{category.label}' participant(s) required"
            )

    participants = sum(counts.values())
    if participants <= 0:
        raise InvalidSelectionError("At least one participant is required")
    if participants > catalog.max_people:
        raise InvalidSelectionError(f"At most {catalog.max_people} participants per booking")

    return ValidatedBooking(
        package=package,
        slot=slot,
        booking_date=date.fromisoformat(booking_date),
        headcounts=counts,
        participants=participants,
        total_price=compute_total(package.age_categories, counts),
    )


async def booked_participants(
    db: AsyncSession,
    experience_id: uuid.UUID,
    package_name: str,
    booking_date: date,
    start_time: str,
) -> int:
    """Participants already holding a place on a slot (cancelled bookings excluded)."""
    result = await db.execute(
        select(func.coalesce(func.sum(Booking.participants), 0)).where(
            Booking.experience_id == experience_id,
            Booking.package_name == package_name,
            Booking.booking_date == booking_date,
            Booking.booking_time == start_time,
            Booking.status != "cancelled",
        )
    )
    return int(result.scalar() or 0)


async def create_booking(
    db: AsyncSession,
    user_id: uuid.UUID,
    experience_id: uuid.UUID,
    package_id: str,
    booking_date: str,
    start_time: str,
    headcounts: Dict[str, int],
    contact_email: str,
    contact_phone: Optional[str] = None,
    special_requests: Optional[str] = None,
    language: Optional[str] = None,
    currency: str = "usd",
    default_max_people: int = 32,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    today: Optional[date] = None,
) -> Booking:
    """
    Validate, price and insert a pending booking.

    The caller owns the transaction: the booking is flushed, not committed,
    and the slot lock is held until the caller commits.
    """
    catalog = await load_catalog(db, experience_id, default_max_people=default_max_people)
    if catalog is None:
        raise ExperienceNotFoundError("Experience not found")

    validated = validate_booking_request(
        catalog,
        package_id=package_id,
        booking_date=booking_date,
        start_time=start_time,
        headcounts=headcounts,
        today=today,
        horizon_days=horizon_days,
    )

    # Serialize bookings on this slot
    slot_row = None
    if validated.slot.id:
        result = await db.execute(
            select(PackageStartEndTime)
            .where(PackageStartEndTime.id == uuid.UUID(validated.slot.id))
            .with_for_update()
        )
        slot_row = result.scalar_one_or_none()
    capacity = slot_row.capacity if slot_row is not None else validated.slot.capacity

    already_booked = await booked_participants(
        db,
        experience_id,
        validated.package.name,
        validated.booking_date,
        validated.slot.start_time,
    )
    remaining = max(capacity - already_booked, 0)
    if validated.participants > remaining:
        logger.info(
            "[Booking] Slot full for experience %s on %s %s (%d/%d booked, %d requested)",
            experience_id,
            validated.booking_date,
            validated.slot.start_time,
            already_booked,
            capacity,
            validated.participants,
        )
        raise CapacityExceededError(remaining=remaining, requested=validated.participants)

    booking = Booking(
        user_id=user_id,
        experience_id=experience_id,
        package_option_id=uuid.UUID(validated.package.id),
        package_name=validated.package.name,
        booking_date=validated.booking_date,
        booking_time=validated.slot.start_time,
        participants=validated.participants,
        headcounts=validated.headcounts,
        language=language,
        total_price=validated.total_price,
        currency=currency,
        contact_email=contact_email,
        contact_phone=contact_phone,
        special_requests=special_requests,
        status="pending",
        payment_status="pending",
    )
    db.add(booking)
    await db.flush()

    logger.info(
        "[Booking] Created booking %s: %d participant(s), total %s",
        booking.id,
        booking.participants,
        booking.total_price,
    )
    return booking


def cancel_booking(booking: Booking) -> bool:
    """Mark a booking cancelled. Returns False if it already was."""
    if booking.status == "cancelled":
        return False
    booking.status = "cancelled"
    booking.cancelled_at = datetime.now(timezone.utc)
    return True


def confirm_payment(booking: Booking, payment_id: Optional[str]) -> bool:
    """Mark a booking paid and confirmed. Returns False if it already was."""
    if booking.payment_status == "paid" and booking.status == "confirmed":
        return False
    booking.status = "confirmed"
    booking.payment_status = "paid"
    booking.payment_id = payment_id
    booking.paid_at = datetime.now(timezone.utc)
    return True
