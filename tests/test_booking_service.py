import uuid
from decimal import Decimal

import pytest

from app.models.booking import Booking
from app.models.package_option import PackageStartEndTime
from app.services import booking_service
from app.services.booking_service import (
    CapacityExceededError,
    ExperienceNotFoundError,
    InvalidSelectionError,
    cancel_booking,
    confirm_payment,
    create_booking,
    validate_booking_request,
)

from tests.factories import TODAY, FakeSession, make_catalog


def validate(catalog, package_index=0, booking_date="2026-03-03", start_time="09:00", headcounts=None):
    return validate_booking_request(
        catalog,
        package_id=catalog.packages[package_index].id,
        booking_date=booking_date,
        start_time=start_time,
        headcounts={"adult": 2, "child": 1} if headcounts is None else headcounts,
        today=TODAY,
    )


def test_valid_request_is_priced_server_side(catalog):
    validated = validate(catalog)

    assert validated.package.name == "Standard"
    assert validated.slot.start_time == "09:00"
    assert validated.participants == 3
    assert validated.headcounts == {"adult": 2, "child": 1}
    assert validated.total_price == Decimal("130.00")
    assert validated.booking_date.isoformat() == "2026-03-03"


def test_missing_categories_default_to_zero(catalog):
    validated = validate(catalog, headcounts={"adult": 1})
    assert validated.headcounts == {"adult": 1, "child": 0}
    assert validated.total_price == Decimal("50.00")


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"booking_date": "2026-03-04"}, "not available"),
        ({"booking_date": "2026-03-01"}, "not available"),
        ({"start_time": "11:00"}, "Start time"),
        ({"headcounts": {"adult": 1, "senior": 1}}, "Unknown age category"),
        ({"headcounts": {"adult": 2, "child": -1}}, "Negative"),
        ({"headcounts": {"adult": 0, "child": 2}}, "At least 1"),
        ({"headcounts": {"adult": 4}}, "At most 3"),
        ({"package_index": 1, "booking_date": "2026-03-03", "start_time": "10:00"}, "not available"),
    ],
)
def test_invalid_requests(catalog, kwargs, message):
    with pytest.raises(InvalidSelectionError) as exc_info:
        validate(catalog, **kwargs)
    assert message in exc_info.value.message
    assert exc_info.value.status_code == 400


def test_unknown_package(catalog):
    with pytest.raises(InvalidSelectionError):
        validate_booking_request(
            catalog,
            package_id="00000000-0000-0000-0000-000000000000",
            booking_date="2026-03-03",
            start_time="09:00",
            headcounts={"adult": 1},
            today=TODAY,
        )


def test_inactive_experience_is_not_bookable():
    with pytest.raises(InvalidSelectionError):
        validate(make_catalog(status="inactive"))


def test_capacity_error_maps_to_conflict():
    error = CapacityExceededError(remaining=2, requested=3)
    assert error.status_code == 409
    assert "2 place(s) left" in error.message


def test_cancel_booking_is_idempotent():
    booking = Booking(status="pending", payment_status="pending")

    assert cancel_booking(booking) is True
    assert booking.status == "cancelled"
    assert booking.cancelled_at is not None
    assert cancel_booking(booking) is False


def test_confirm_payment():
    booking = Booking(status="pending", payment_status="pending")

    assert confirm_payment(booking, "pi_123") is True
    assert (booking.status, booking.payment_status, booking.payment_id) == ("confirmed", "paid", "pi_123")
    assert booking.paid_at is not None
    assert confirm_payment(booking, "pi_123") is False


@pytest.fixture
def slot_bookings(catalog, monkeypatch):
    """Catalog loader and booked-participant count replaced; returns a setter for the count."""
    booked = {"count": 0}

    async def fake_load_catalog(db, experience_id, default_max_people=32):
        return catalog

    async def fake_booked_participants(db, experience_id, package_name, booking_date, start_time):
        return booked["count"]

    monkeypatch.setattr(booking_service, "load_catalog", fake_load_catalog)
    monkeypatch.setattr(booking_service, "booked_participants", fake_booked_participants)

    def set_booked(count):
        booked["count"] = count

    return set_booked


async def book(catalog, db, headcounts):
    return await create_booking(
        db,
        user_id=uuid.uuid4(),
        experience_id=uuid.UUID(catalog.experience_id),
        package_id=catalog.packages[0].id,
        booking_date="2026-03-03",
        start_time="09:00",
        headcounts=headcounts,
        contact_email="traveler@example.com",
        today=TODAY,
    )


async def test_create_booking_rejects_more_than_remaining_places(catalog, slot_bookings):
    slot_bookings(1)
    db = FakeSession(execute_result=PackageStartEndTime(capacity=3))

    with pytest.raises(CapacityExceededError) as exc_info:
        await book(catalog, db, {"adult": 2, "child": 1})

    assert exc_info.value.remaining == 2
    assert exc_info.value.requested == 3
    assert db.added == []


async def test_create_booking_fills_slot_exactly(catalog, slot_bookings):
    slot_bookings(1)
    db = FakeSession(execute_result=PackageStartEndTime(capacity=3))

    booking = await book(catalog, db, {"adult": 2})

    assert db.added == [booking]
    assert booking.id is not None
    assert (booking.status, booking.payment_status) == ("pending", "pending")
    assert booking.package_name == "Standard"
    assert booking.booking_time == "09:00"
    assert booking.participants == 2
    assert booking.total_price == Decimal("100.00")


async def test_create_booking_uses_locked_slot_capacity(catalog, slot_bookings):
    # The catalog says 10 places, the locked row says 2
    slot_bookings(0)
    db = FakeSession(execute_result=PackageStartEndTime(capacity=2))

    with pytest.raises(CapacityExceededError) as exc_info:
        await book(catalog, db, {"adult": 2, "child": 1})
    assert exc_info.value.remaining == 2


async def test_create_booking_full_slot(catalog, slot_bookings):
    slot_bookings(12)
    db = FakeSession(execute_result=None)

    with pytest.raises(CapacityExceededError) as exc_info:
        await book(catalog, db, {"adult": 1})
    assert exc_info.value.remaining == 0


async def test_create_booking_unknown_experience(monkeypatch):
    async def no_catalog(db, experience_id, default_max_people=32):
        return None

    monkeypatch.setattr(booking_service, "load_catalog", no_catalog)

    with pytest.raises(ExperienceNotFoundError):
        await book(make_catalog(), FakeSession(), {"adult": 1})
