"""
Business dashboard endpoints.

- tour (experience) management: list, detail, create, update, archive
- analytics: tours, active bookings, revenue, bookings per day, languages

Package options are never patched: an update deletes every package of the
experience and inserts the submitted ones (slots and itinerary cascade).
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, Field, field_validator, model_validator
from sqlalchemy import delete, func, select

from app.api.deps import BusinessUser, DbSession
from app.api.experiences import ExperienceResponse, PackageResponse
from app.config import get_settings
from app.models.booking import Booking
from app.models.experience import Experience
from app.models.package_option import PackageItineraryStep, PackageOption, PackageStartEndTime
from app.services.package_catalog import load_catalog

logger = logging.getLogger(__name__)
router = APIRouter()


# ============ SCHEMAS ============

class AgeCategoryInput(BaseModel):
    label: str = Field(..., min_length=1)
    min: int = Field(..., ge=0)
    max: Optional[int] = None
    price: Decimal = Field(..., ge=0)

    @model_validator(mode="after")
    def check_range(self):
        if self.max is not None and self.max <= self.min:
            raise ValueError("max age must be greater than min age")
        return self


class StartEndTimeInput(BaseModel):
    start_time: time
    end_time: Optional[time] = None
    capacity: int = Field(10, ge=1)


class ItineraryStepInput(BaseModel):
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None
    day: int = Field(1, ge=1)


def _default_slots() -> List[StartEndTimeInput]:
    return [StartEndTimeInput(start_time=time(9, 0), end_time=time(18, 0), capacity=10)]


class PackageInput(BaseModel):
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    meeting_point_address: Optional[str] = None
    meeting_point_lat: Optional[float] = None
    meeting_point_lng: Optional[float] = None
    meeting_point_details: Optional[str] = None
    age_categories: List[AgeCategoryInput] = Field(default_factory=list)
    start_end_times: List[StartEndTimeInput] = Field(default_factory=_default_slots)
    itinerary: List[ItineraryStepInput] = Field(default_factory=list)
    inclusions: List[str] = Field(default_factory=list)
    exclusions: List[str] = Field(default_factory=list)
    additional_info: Optional[str] = None
    unavailable_dates: List[date] = Field(default_factory=list)
    unavailable_days: List[int] = Field(default_factory=list)

    @field_validator("unavailable_days")
    @classmethod
    def check_weekdays(cls, v):
        if any(d < 0 or d > 6 for d in v):
            raise ValueError("weekday indices must be between 0 (Sunday) and 6 (Saturday)")
        return sorted(set(v))


class TourBase(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price: Decimal = Field(..., ge=0)
    duration: int = Field(1, ge=1)
    max_participants: Optional[int] = Field(None, ge=1)
    languages: Optional[str] = None
    additional_info: Optional[str] = None
    cancellation_policy: Optional[List[Dict[str, int]]] = None
    image_url: Optional[str] = None
    images: List[str] = Field(default_factory=list)
    status: str = Field("active", pattern="^(draft|active|inactive)$")


class TourCreate(TourBase):
    packages: List[PackageInput] = Field(default_factory=list)


class TourUpdate(TourBase):
    packages: List[PackageInput] = Field(default_factory=list)


class TourDetailResponse(BaseModel):
    experience: ExperienceResponse
    packages: List[PackageResponse]


class ChartData(BaseModel):
    labels: List[str]
    data: List[float]


class AnalyticsResponse(BaseModel):
    total_tours: int
    active_bookings: int
    total_revenue: Decimal
    total_customers: int
    charts: Dict[str, ChartData]


# ============ HELPERS ============

def build_package_rows(experience_id: uuid.UUID, packages: List[PackageInput]) -> List[PackageOption]:
    """New PackageOption rows (with slots and itinerary) in submission order."""
    rows = []
    for position, pkg in enumerate(packages):
        rows.append(PackageOption(
            experience_id=experience_id,
            position=position,
            name=pkg.name,
            description=pkg.description,
            meeting_point_address=pkg.meeting_point_address,
            meeting_point_lat=pkg.meeting_point_lat,
            meeting_point_lng=pkg.meeting_point_lng,
            meeting_point_details=pkg.meeting_point_details,
            age_categories=[
                {"label": c.label, "min": c.min, "max": c.max, "price": float(c.price)}
                for c in pkg.age_categories
            ],
            inclusions=[s for s in pkg.inclusions if s.strip()],
            exclusions=[s for s in pkg.exclusions if s.strip()],
            additional_info=pkg.additional_info,
            unavailable_dates=[d.isoformat() for d in pkg.unavailable_dates],
            unavailable_days=pkg.unavailable_days,
            start_end_times=[
                PackageStartEndTime(start_time=t.start_time, end_time=t.end_time, capacity=t.capacity)
                for t in pkg.start_end_times
            ],
            itinerary_steps=[
                PackageItineraryStep(
                    title=step.title,
                    description=step.description,
                    duration=step.duration,
                    day=step.day,
                    order_index=index,
                )
                for index, step in enumerate(pkg.itinerary)
            ],
        ))
    return rows


def _apply_tour_fields(experience: Experience, data: TourBase) -> None:
    for field in TourBase.model_fields:
        setattr(experience, field, getattr(data, field))


async def _get_own_tour_or_404(db, tour_id: uuid.UUID, business_id: uuid.UUID) -> Experience:
    result = await db.execute(
        select(Experience).where(Experience.id == tour_id, Experience.business_id == business_id)
    )
    experience = result.scalar_one_or_none()
    if not experience:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Tour not found")
    return experience


async def _tour_detail(db, experience: Experience) -> TourDetailResponse:
    settings = get_settings()
    catalog = await load_catalog(db, experience.id, default_max_people=settings.default_max_participants)
    return TourDetailResponse(
        experience=ExperienceResponse.model_validate(experience),
        packages=[PackageResponse.model_validate(p) for p in catalog.packages] if catalog else [],
    )


# ============ TOURS ============

@router.get("/tours", response_model=List[ExperienceResponse])
async def list_tours(db: DbSession, user: BusinessUser):
    result = await db.execute(
        select(Experience)
        .where(Experience.business_id == user.id)
        .order_by(Experience.created_at.desc())
    )
    return [ExperienceResponse.model_validate(e) for e in result.scalars().all()]


@router.get("/tours/{tour_id}", response_model=TourDetailResponse)
async def get_tour(tour_id: uuid.UUID, db: DbSession, user: BusinessUser):
    experience = await _get_own_tour_or_404(db, tour_id, user.id)
    return await _tour_detail(db, experience)


@router.post("/tours", response_model=TourDetailResponse, status_code=status.HTTP_201_CREATED)
async def create_tour(data: TourCreate, db: DbSession, user: BusinessUser):
    experience = Experience(id=uuid.uuid4(), business_id=user.id)
    _apply_tour_fields(experience, data)
    db.add(experience)
    db.add_all(build_package_rows(experience.id, data.packages))
    await db.commit()

    logger.info("[Business] Tour %s created by %s with %d package(s)", experience.id, user.id, len(data.packages))
    experience = await _get_own_tour_or_404(db, experience.id, user.id)
    return await _tour_detail(db, experience)


@router.put("/tours/{tour_id}", response_model=TourDetailResponse)
async def update_tour(tour_id: uuid.UUID, data: TourUpdate, db: DbSession, user: BusinessUser):
    """Update a tour and replace all of its packages."""
    experience = await _get_own_tour_or_404(db, tour_id, user.id)
    _apply_tour_fields(experience, data)

    await db.execute(delete(PackageOption).where(PackageOption.experience_id == experience.id))
    db.add_all(build_package_rows(experience.id, data.packages))
    await db.commit()

    logger.info("[Business] Tour %s updated, packages replaced (%d)", experience.id, len(data.packages))
    experience = await _get_own_tour_or_404(db, tour_id, user.id)
    return await _tour_detail(db, experience)


@router.delete("/tours/{tour_id}", status_code=status.HTTP_204_NO_CONTENT)
async def archive_tour(tour_id: uuid.UUID, db: DbSession, user: BusinessUser):
    """Archive a tour. Bookings keep referencing it."""
    experience = await _get_own_tour_or_404(db, tour_id, user.id)
    experience.status = "inactive"
    await db.commit()


# ============ ANALYTICS ============

def _chart(rows) -> ChartData:
    return ChartData(
        labels=[str(label) for label, _ in rows],
        data=[float(value or 0) for _, value in rows],
    )


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(
    db: DbSession,
    user: BusinessUser,
    range_days: int = Query(30, alias="range", ge=1, le=366),
):
    """Key figures over the last `range` days for the business's tours."""
    since = datetime.now(timezone.utc) - timedelta(days=range_days)
    own_experiences = select(Experience.id).where(Experience.business_id == user.id)

    total_tours = (await db.execute(
        select(func.count()).select_from(Experience).where(Experience.business_id == user.id)
    )).scalar() or 0

    active_bookings = (await db.execute(
        select(func.count()).select_from(Booking).where(
            Booking.experience_id.in_(own_experiences),
            Booking.status.in_(("confirmed", "pending")),
            Booking.booking_date >= date.today(),
        )
    )).scalar() or 0

    day = func.date(Booking.created_at)

    revenue_rows = (await db.execute(
        select(day, func.sum(Booking.total_price))
        .where(
            Booking.experience_id.in_(own_experiences),
            Booking.payment_status == "paid",
            Booking.created_at >= since,
        )
        .group_by(day)
        .order_by(day)
    )).all()

    booking_rows = (await db.execute(
        select(day, func.count())
        .where(
            Booking.experience_id.in_(own_experiences),
            Booking.created_at >= since,
        )
        .group_by(day)
        .order_by(day)
    )).all()

    language = func.coalesce(Booking.language, "Unknown")
    language_rows = (await db.execute(
        select(language, func.count())
        .where(Booking.experience_id.in_(own_experiences))
        .group_by(language)
        .order_by(func.count().desc())
    )).all()

    total_customers = (await db.execute(
        select(func.count(func.distinct(Booking.user_id)))
        .where(Booking.experience_id.in_(own_experiences))
    )).scalar() or 0

    total_revenue = sum((Decimal(str(value or 0)) for _, value in revenue_rows), Decimal("0"))

    return AnalyticsResponse(
        total_tours=total_tours,
        active_bookings=active_bookings,
        total_revenue=total_revenue.quantize(Decimal("0.01")),
        total_customers=total_customers,
        charts={
            "revenue": _chart(revenue_rows),
            "bookings": _chart(booking_rows),
            "demographics": _chart(language_rows),
        },
    )
