"""
Experience browsing endpoints and the booking widget backend.

- listing / detail / categories / reviews
- package catalog with tiers, slots and itinerary
- bookable dates, price quotes and selection state transitions
"""

import uuid
from datetime import date
from decimal import Decimal
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, HTTPException, Query, status
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import or_, select

from app.api.deps import DbSession
from app.config import get_settings
from app.models.experience import Experience, Review
from app.services.availability import available_dates_for
from app.services.booking_selection import (
    BookingSelection,
    SelectionCommand,
    SelectionSummary,
    reduce_selection,
    selection_summary,
)
from app.services.package_catalog import ExperienceCatalog, load_catalog
from app.services.pricing_engine import compute_from_price, compute_total, format_price, headline_price

router = APIRouter()

SORTABLE_FIELDS = {
    "rating": Experience.rating,
    "price": Experience.price,
    "duration": Experience.duration,
    "created_at": Experience.created_at,
    "title": Experience.title,
}


# ============ SCHEMAS ============

class ExperienceResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    price: Decimal
    duration: int
    max_participants: Optional[int] = None
    languages: Optional[str] = None
    additional_info: Optional[str] = None
    cancellation_policy: Optional[list] = None
    rating: float
    reviews_count: int
    image_url: Optional[str] = None
    images: Optional[list] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class ReviewResponse(BaseModel):
    id: uuid.UUID
    user_name: str
    rating: int
    comment: Optional[str] = None
    review_date: date

    model_config = ConfigDict(from_attributes=True)


class AgeCategoryResponse(BaseModel):
    key: str
    label: str
    min_age: int
    max_age: Optional[int] = None
    price: Decimal

    model_config = ConfigDict(from_attributes=True)


class TimeSlotResponse(BaseModel):
    id: Optional[str] = None
    start_time: str
    end_time: Optional[str] = None
    capacity: int

    model_config = ConfigDict(from_attributes=True)


class ItineraryStepResponse(BaseModel):
    day: int
    order_index: int
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class PackageResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    meeting_point_address: Optional[str] = None
    meeting_point_lat: Optional[float] = None
    meeting_point_lng: Optional[float] = None
    meeting_point_details: Optional[str] = None
    age_categories: List[AgeCategoryResponse]
    time_slots: List[TimeSlotResponse]
    itinerary: List[ItineraryStepResponse]
    inclusions: List[str]
    exclusions: List[str]
    additional_info: Optional[str] = None
    unavailable_dates: List[str]
    unavailable_days: List[int]

    model_config = ConfigDict(from_attributes=True)


class CatalogResponse(BaseModel):
    experience_id: str
    title: str
    base_price: Decimal
    max_people: int
    from_price: Decimal
    packages: List[PackageResponse]

    model_config = ConfigDict(from_attributes=True)


class AvailabilityResponse(BaseModel):
    package_index: Optional[int] = None
    dates: List[str]
    first_available: Optional[str] = None


class QuoteRequest(BaseModel):
    package_id: str
    selected_date: Optional[str] = None
    headcounts: Dict[str, int] = Field(default_factory=dict)


class QuoteResponse(BaseModel):
    package_id: str
    participants: int
    total_price: Decimal
    display_price: str


class SelectionRequest(BaseModel):
    state: BookingSelection = Field(default_factory=BookingSelection)
    command: SelectionCommand


class SelectionResponse(BaseModel):
    state: BookingSelection
    summary: SelectionSummary
    available_dates: List[str]


# ============ HELPERS ============

async def _get_catalog_or_404(db, experience_id: uuid.UUID) -> ExperienceCatalog:
    settings = get_settings()
    catalog = await load_catalog(db, experience_id, default_max_people=settings.default_max_participants)
    if catalog is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found")
    return catalog


# ============ ENDPOINTS ============

@router.get("", response_model=List[ExperienceResponse])
async def list_experiences(
    db: DbSession,
    category: Optional[str] = None,
    city: Optional[str] = None,
    country: Optional[str] = None,
    min_price: Optional[Decimal] = None,
    max_price: Optional[Decimal] = None,
    min_duration: Optional[int] = None,
    max_duration: Optional[int] = None,
    search: Optional[str] = None,
    sort_by: str = Query("rating", pattern="^(rating|price|duration|created_at|title)$"),
    sort_order: Literal["asc", "desc"] = "desc",
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
):
    """List active experiences with filters, sorting and pagination."""
    query = select(Experience).where(Experience.status == "active")

    if category:
        query = query.where(Experience.category == category)
    if city:
        query = query.where(Experience.city == city)
    if country:
        query = query.where(Experience.country == country)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            or_(
                Experience.title.ilike(pattern),
                Experience.description.ilike(pattern),
                Experience.city.ilike(pattern),
                Experience.country.ilike(pattern),
            )
        )
    if min_price is not None:
        query = query.where(Experience.price >= min_price)
    if max_price is not None:
        query = query.where(Experience.price <= max_price)
    if min_duration is not None:
        query = query.where(Experience.duration >= min_duration)
    if max_duration is not None:
        query = query.where(Experience.duration <= max_duration)

    column = SORTABLE_FIELDS[sort_by]
    query = query.order_by(column.asc() if sort_order == "asc" else column.desc())
    query = query.offset(offset).limit(limit)

    result = await db.execute(query)
    return [ExperienceResponse.model_validate(e) for e in result.scalars().all()]


@router.get("/categories", response_model=List[str])
async def list_categories(db: DbSession):
    """Distinct categories of active experiences."""
    result = await db.execute(
        select(Experience.category)
        .where(Experience.category.is_not(None), Experience.status == "active")
        .distinct()
        .order_by(Experience.category)
    )
    return [row[0] for row in result.fetchall() if row[0]]


@router.get("/{experience_id}", response_model=ExperienceResponse)
async def get_experience(experience_id: uuid.UUID, db: DbSession):
    experience = await db.get(Experience, experience_id)
    if not experience:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Experience not found")
    return ExperienceResponse.model_validate(experience)


@router.get("/{experience_id}/reviews", response_model=List[ReviewResponse])
async def list_reviews(experience_id: uuid.UUID, db: DbSession):
    result = await db.execute(
        select(Review)
        .where(Review.experience_id == experience_id)
        .order_by(Review.review_date.desc())
    )
    return [ReviewResponse.model_validate(r) for r in result.scalars().all()]


@router.get("/{experience_id}/packages", response_model=CatalogResponse)
async def get_packages(experience_id: uuid.UUID, db: DbSession):
    """Package catalog (tiers, slots, itinerary) and the "from" price."""
    catalog = await _get_catalog_or_404(db, experience_id)
    return CatalogResponse(
        experience_id=catalog.experience_id,
        title=catalog.title,
        base_price=catalog.base_price,
        max_people=catalog.max_people,
        from_price=compute_from_price(catalog.packages, catalog.base_price),
        packages=[PackageResponse.model_validate(p) for p in catalog.packages],
    )


@router.get("/{experience_id}/availability", response_model=AvailabilityResponse)
async def get_availability(
    experience_id: uuid.UUID,
    db: DbSession,
    package_index: Optional[int] = Query(None, ge=0),
):
    """
    Bookable dates for a package, or for all packages merged when
    no package index is given.
    """
    settings = get_settings()
    catalog = await _get_catalog_or_404(db, experience_id)
    if package_index is not None and catalog.package_at(package_index) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")

    dates = available_dates_for(catalog, package_index, horizon_days=settings.availability_horizon_days)
    return AvailabilityResponse(
        package_index=package_index,
        dates=dates,
        first_available=dates[0] if dates else None,
    )


@router.post("/{experience_id}/quote", response_model=QuoteResponse)
async def quote_price(experience_id: uuid.UUID, data: QuoteRequest, db: DbSession):
    """Price a headcount map for a package."""
    catalog = await _get_catalog_or_404(db, experience_id)
    package_index = catalog.package_index_of(data.package_id)
    if package_index is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Package not found")

    package = catalog.packages[package_index]
    return QuoteResponse(
        package_id=package.id,
        participants=sum(
            count for key, count in data.headcounts.items()
            if count > 0 and package.find_category(key) is not None
        ),
        total_price=compute_total(package.age_categories, data.headcounts),
        display_price=format_price(
            headline_price(catalog, package_index, data.selected_date, data.headcounts)
        ),
    )


@router.post("/{experience_id}/selection", response_model=SelectionResponse)
async def apply_selection_command(experience_id: uuid.UUID, data: SelectionRequest, db: DbSession):
    """
    Apply one booking-widget command to a client-held selection.

    The client sends its current state with the command and receives the
    new state, the derived price summary and the bookable dates for it.
    """
    settings = get_settings()
    catalog = await _get_catalog_or_404(db, experience_id)

    state = reduce_selection(
        data.state,
        data.command,
        catalog,
        horizon_days=settings.availability_horizon_days,
    )
    return SelectionResponse(
        state=state,
        summary=selection_summary(state, catalog, horizon_days=settings.availability_horizon_days),
        available_dates=available_dates_for(
            catalog, state.package_index, horizon_days=settings.availability_horizon_days
        ),
    )
