"""
Seed script - Creates demo data for development.

Run with: python -m scripts.seed_demo

Profiles normally come from Supabase signups; pass the auth user ids of
real accounts through DEMO_BUSINESS_ID / DEMO_TRAVELER_ID to log in as them.
"""

import asyncio
import os
import uuid
from datetime import date, time, timedelta
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import async_session_maker
from app.models.experience import Experience, Review
from app.models.package_option import PackageItineraryStep, PackageOption, PackageStartEndTime
from app.models.profile import Profile


def _env_uuid(name: str) -> uuid.UUID:
    value = os.getenv(name)
    return uuid.UUID(value) if value else uuid.uuid4()


async def create_profiles(db: AsyncSession) -> tuple[Profile, Profile]:
    """Create a demo business and a demo traveler."""
    business = Profile(
        id=_env_uuid("DEMO_BUSINESS_ID"),
        email="tours@wayfarer-demo.com",
        full_name="Lan Pham",
        role="business",
        business_name="Saigon Street Tours",
    )
    traveler = Profile(
        id=_env_uuid("DEMO_TRAVELER_ID"),
        email="traveler@wayfarer-demo.com",
        full_name="Demo Traveler",
        role="traveler",
    )
    db.add_all([business, traveler])
    await db.flush()
    print(f"✅ Created profiles: {business.email} (business), {traveler.email} (traveler)")
    return business, traveler


async def create_night_tour(db: AsyncSession, business: Profile) -> Experience:
    """Tuk-tuk night tour with two packages and weekday blackouts."""
    tour = Experience(
        business_id=business.id,
        title="Saigon by Night on a Tuk-Tuk",
        description="Street food, rooftop views and the city lights from the back of a tuk-tuk.",
        category="Food & Drink",
        location="District 1, Ho Chi Minh City",
        city="Ho Chi Minh City",
        country="Vietnam",
        latitude=10.7769,
        longitude=106.7009,
        price=Decimal("50"),
        duration=4,
        max_participants=12,
        languages="English, Vietnamese",
        cancellation_policy=[
            {"hours_before": 48, "refund_percent": 100},
            {"hours_before": 24, "refund_percent": 50},
        ],
        rating=4.8,
        reviews_count=2,
        image_url="https://images.unsplash.com/photo-1583417319070-4a69db38a482",
        images=[],
        status="active",
    )
    db.add(tour)
    await db.flush()

    standard = PackageOption(
        experience_id=tour.id,
        position=0,
        name="Standard",
        description="Shared tuk-tuk, six food stops.",
        meeting_point_address="Opera House steps, Lam Son Square",
        meeting_point_lat=10.7766,
        meeting_point_lng=106.7031,
        age_categories=[
            {"label": "Adult", "min": 13, "max": None, "price": 50},
            {"label": "Child", "min": 4, "max": 12, "price": 30},
        ],
        inclusions=["Food tastings", "Bottled water", "English-speaking guide"],
        exclusions=["Hotel pickup"],
        unavailable_dates=[(date.today() + timedelta(days=10)).isoformat()],
        # Weekend departures only
        unavailable_days=[0, 6],
        start_end_times=[
            PackageStartEndTime(start_time=time(18, 0), end_time=time(22, 0), capacity=12),
            PackageStartEndTime(start_time=time(19, 30), end_time=time(23, 30), capacity=8),
        ],
        itinerary_steps=[
            PackageItineraryStep(day=1, order_index=0, title="Meet at the Opera House", duration="15 minutes"),
            PackageItineraryStep(day=1, order_index=1, title="Ben Thanh street food", duration="1 hour"),
            PackageItineraryStep(day=1, order_index=2, title="Rooftop bar", duration="45 minutes"),
        ],
    )
    private = PackageOption(
        experience_id=tour.id,
        position=1,
        name="Private",
        description="Your own tuk-tuk and guide.",
        meeting_point_address="Hotel lobby pickup (District 1)",
        age_categories=[
            {"label": "Adult", "min": 13, "max": None, "price": 95},
            {"label": "Child", "min": 4, "max": 12, "price": 60},
            {"label": "Infant", "min": 0, "max": 3, "price": 0},
        ],
        inclusions=["Hotel pickup", "Food tastings", "Private guide"],
        exclusions=[],
        unavailable_dates=[],
        unavailable_days=[],
        start_end_times=[
            PackageStartEndTime(start_time=time(18, 0), end_time=time(22, 0), capacity=4),
        ],
        itinerary_steps=[],
    )
    db.add_all([standard, private])

    db.add_all([
        Review(experience_id=tour.id, user_name="Maya", rating=5,
               comment="Best food tour we did in Asia.", review_date=date.today() - timedelta(days=12)),
        Review(experience_id=tour.id, user_name="Jonas", rating=4,
               comment="Great guide, a bit rushed at the end.", review_date=date.today() - timedelta(days=40)),
    ])
    await db.flush()
    print(f"✅ Created experience: {tour.title} (ID: {tour.id})")
    return tour


async def create_day_trip(db: AsyncSession, business: Profile) -> Experience:
    """Mekong day trip without age categories (uses the default tiers)."""
    trip = Experience(
        business_id=business.id,
        title="Mekong Delta Day Trip",
        description="Floating markets, coconut workshops and a sampan ride.",
        category="Nature",
        location="My Tho",
        city="Ho Chi Minh City",
        country="Vietnam",
        price=Decimal("65"),
        duration=10,
        max_participants=None,
        languages="English",
        rating=0,
        reviews_count=0,
        images=[],
        status="active",
    )
    db.add(trip)
    await db.flush()

    db.add(PackageOption(
        experience_id=trip.id,
        position=0,
        name="Day trip",
        meeting_point_address="Pham Ngu Lao bus stop",
        age_categories=[],
        inclusions=["Lunch", "Boat ride"],
        exclusions=["Drinks"],
        unavailable_dates=[],
        unavailable_days=[],
        start_end_times=[PackageStartEndTime(start_time=time(7, 30), end_time=time(17, 30), capacity=20)],
        itinerary_steps=[],
    ))
    await db.flush()
    print(f"✅ Created experience: {trip.title} (ID: {trip.id})")
    return trip


async def seed_demo_data():
    """Main seed function."""
    print("🌱 Starting demo data seed...")

    async with async_session_maker() as db:
        # Check if data already exists
        result = await db.execute(select(Experience).limit(1))
        if result.scalar_one_or_none():
            print("⚠️  Data already exists. Skipping seed.")
            return

        business, traveler = await create_profiles(db)
        await create_night_tour(db, business)
        await create_day_trip(db, business)

        await db.commit()
        print("✅ Demo data seed completed!")
        print(f"\n📝 Demo accounts (Supabase auth user ids):")
        print(f"   Business: {business.id}")
        print(f"   Traveler: {traveler.id}")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
