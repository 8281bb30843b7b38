"""
Catalog, booking and session builders for tests (no database).
"""

import uuid
from datetime import date, time, timedelta
from decimal import Decimal

from app.models.booking import Booking
from app.models.experience import Experience
from app.models.package_option import PackageItineraryStep, PackageOption, PackageStartEndTime
from app.services.package_catalog import build_catalog

# A Monday
TODAY = date(2026, 3, 2)


def make_package(
    name,
    position=0,
    age_categories=None,
    slots=("09:00",),
    capacity=10,
    unavailable_dates=None,
    unavailable_days=None,
    itinerary=None,
):
    return PackageOption(
        id=uuid.uuid4(),
        position=position,
        name=name,
        age_categories=age_categories or [],
        inclusions=[],
        exclusions=[],
        unavailable_dates=unavailable_dates or [],
        unavailable_days=unavailable_days or [],
        start_end_times=[
            PackageStartEndTime(
                id=uuid.uuid4(),
                start_time=time.fromisoformat(start),
                end_time=None,
                capacity=capacity,
            )
            for start in slots
        ],
        itinerary_steps=itinerary or [],
    )


def make_experience(price="50", max_participants=None, status="active"):
    return Experience(
        id=uuid.uuid4(),
        title="Night Food Tour",
        price=Decimal(price),
        max_participants=max_participants,
        status=status,
    )


def make_catalog(today=TODAY, max_participants=3, status="active"):
    """
    Three packages:
      0 Standard: Adult 50 / Child 30, slots 09:00 and 14:00, blackout today+2
      1 Premium:  Adult 80 / Child 60, slot 10:00, weekday list [6] (Saturday)
      2 Basic:    no tiers (default schedule at the base price), slot 08:00
    """
    experience = make_experience(max_participants=max_participants, status=status)
    packages = [
        make_package(
            "Standard",
            position=0,
            age_categories=[
                {"label": "Child", "min": 4, "max": 12, "price": 30},
                {"label": "Adult", "min": 13, "max": None, "price": 50},
            ],
            slots=("14:00", "09:00"),
            unavailable_dates=[(today + timedelta(days=2)).isoformat()],
            itinerary=[
                PackageItineraryStep(day=1, order_index=1, title="Market"),
                PackageItineraryStep(day=1, order_index=0, title="Meet the guide"),
            ],
        ),
        make_package(
            "Premium",
            position=1,
            age_categories=[
                {"label": "Adult", "min": 13, "max": None, "price": 80},
                {"label": "Child", "min": 4, "max": 12, "price": 60},
            ],
            slots=("10:00",),
            unavailable_days=[6],
        ),
        make_package("Basic", position=2, age_categories=[], slots=("08:00",)),
    ]
    return build_catalog(experience, packages)


class FakeResult:
    def __init__(self, value):
        self.value = value

    def scalar_one_or_none(self):
        return self.value

    def scalar(self):
        return self.value


class FakeSession:
    """
    Stands in for an AsyncSession: get() looks up `objects` by primary key,
    execute() answers every statement with `execute_result`.
    """

    def __init__(self, objects=None, execute_result=None):
        self.objects = {obj.id: obj for obj in objects or []}
        self.execute_result = execute_result
        self.statements = []
        self.added = []
        self.commits = 0

    async def get(self, model, key):
        obj = self.objects.get(key)
        return obj if isinstance(obj, model) else None

    async def execute(self, statement):
        self.statements.append(statement)
        return FakeResult(self.execute_result)

    def add(self, obj):
        self.added.append(obj)

    async def flush(self):
        for obj in self.added:
            if getattr(obj, "id", None) is None:
                obj.id = uuid.uuid4()
            self.objects[obj.id] = obj

    async def commit(self):
        await self.flush()
        self.commits += 1

    async def rollback(self):
        pass


def make_booking(status="pending", payment_status="pending", checkout_session_id=None, booking_date=None):
    return Booking(
        id=uuid.uuid4(),
        user_id=uuid.uuid4(),
        experience_id=uuid.uuid4(),
        package_name="Standard",
        booking_date=booking_date or TODAY + timedelta(days=1),
        booking_time="09:00",
        participants=2,
        headcounts={"adult": 2, "child": 0},
        total_price=Decimal("100.00"),
        currency="usd",
        contact_email="traveler@example.com",
        status=status,
        payment_status=payment_status,
        checkout_session_id=checkout_session_id,
    )
