"""
Package catalog loader.

Fetches an experience with its package options, age-category tiers,
start/end time slots and itinerary steps, and normalizes them into plain
dataclasses consumed by the availability, pricing and selection engines.

Normalization rules:
- tiers sorted by descending min age (first tier = adult-equivalent)
- each tier gets a stable key (slug of its label, suffixed on collision)
  which is what headcount maps are keyed by
- a package without usable tiers falls back to a default
  Adult/Child/Infant schedule derived from the experience base price
- slots sorted by start time, itinerary by (day, order_index)
"""

import logging
import re
import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models.experience import Experience
from app.models.package_option import PackageOption

logger = logging.getLogger(__name__)

DEFAULT_MAX_PEOPLE = 32


@dataclass
class AgeCategory:
    """A pricing tier of a package."""
    key: str
    label: str
    min_age: int
    max_age: Optional[int]
    price: Decimal


@dataclass
class TimeSlot:
    id: Optional[str]
    start_time: str  # "HH:MM"
    end_time: Optional[str]
    capacity: int


@dataclass
class ItineraryStep:
    day: int
    order_index: int
    title: str
    description: Optional[str] = None
    duration: Optional[str] = None


@dataclass
class CatalogPackage:
    """A package option, normalized for the booking widget."""
    id: str
    name: str
    age_categories: List[AgeCategory]
    time_slots: List[TimeSlot] = field(default_factory=list)
    itinerary: List[ItineraryStep] = field(default_factory=list)
    unavailable_dates: List[str] = field(default_factory=list)
    unavailable_days: List[int] = field(default_factory=list)
    description: Optional[str] = None
    meeting_point_address: Optional[str] = None
    meeting_point_lat: Optional[float] = None
    meeting_point_lng: Optional[float] = None
    meeting_point_details: Optional[str] = None
    inclusions: List[str] = field(default_factory=list)
    exclusions: List[str] = field(default_factory=list)
    additional_info: Optional[str] = None

    def find_category(self, key: str) -> Optional[AgeCategory]:
        for category in self.age_categories:
            if category.key == key:
                return category
        return None

    def find_slot(self, start_time: str) -> Optional[TimeSlot]:
        for slot in self.time_slots:
            if slot.start_time == start_time:
                return slot
        return None


@dataclass
class ExperienceCatalog:
    experience_id: str
    title: str
    base_price: Decimal
    max_people: int
    packages: List[CatalogPackage] = field(default_factory=list)
    is_active: bool = True

    def package_index_of(self, package_id: str) -> Optional[int]:
        for index, package in enumerate(self.packages):
            if package.id == package_id:
                return index
        return None

    def package_at(self, index: Optional[int]) -> Optional[CatalogPackage]:
        if index is None or index < 0 or index >= len(self.packages):
            return None
        return self.packages[index]


# ─── Tier normalization ─────────────────────────────────────────────────────

def slugify_label(label: str) -> str:
    """Lowercase slug used as a category key ("Senior (65+)" -> "senior-65")."""
    slug = re.sub(r"[^a-z0-9]+", "-", label.strip().lower()).strip("-")
    return slug or "category"


def _assign_keys(categories: List[AgeCategory]) -> List[AgeCategory]:
    seen: Dict[str, int] = {}
    for category in categories:
        base = slugify_label(category.label)
        seen[base] = seen.get(base, 0) + 1
        category.key = base if seen[base] == 1 else f"{base}-{seen[base]}"
    return categories


def default_age_categories(base_price: Decimal) -> List[AgeCategory]:
    """Adult/Child/Infant schedule used when a package declares no tiers."""
    return _assign_keys([
        AgeCategory(key="", label="Adult", min_age=13, max_age=None, price=base_price),
        AgeCategory(key="", label="Child", min_age=4, max_age=12, price=base_price),
        AgeCategory(key="", label="Infant", min_age=0, max_age=3, price=Decimal("0")),
    ])


def _parse_category(raw: Any) -> Optional[AgeCategory]:
    if not isinstance(raw, dict):
        return None

    label = str(raw.get("label") or "").strip()
    if not label:
        return None

    try:
        min_age = int(raw.get("min"))
    except (TypeError, ValueError):
        return None

    max_raw = raw.get("max")
    max_age: Optional[int] = None
    if max_raw not in (None, ""):
        try:
            max_age = int(max_raw)
        except (TypeError, ValueError):
            return None
        if max_age <= min_age:
            return None

    try:
        price = Decimal(str(raw.get("price", 0)))
    except InvalidOperation:
        return None
    if not price.is_finite() or price < 0:
        return None

    return AgeCategory(key="", label=label, min_age=min_age, max_age=max_age, price=price)


def parse_age_categories(raw_categories: Any, base_price: Decimal) -> List[AgeCategory]:
    """
    Turn the JSONB tier list of a package into sorted, keyed AgeCategory objects.

    Malformed entries are dropped; if nothing usable remains the default
    schedule is returned instead.
    """
    categories: List[AgeCategory] = []
    for raw in raw_categories or []:
        category = _parse_category(raw)
        if category is None:
            logger.warning("[Catalog] Dropping malformed age category: %r", raw)
            continue
        categories.append(category)

    if not categories:
        return default_age_categories(base_price)

    categories.sort(key=lambda c: c.min_age, reverse=True)
    return _assign_keys(categories)


# ─── Package / catalog building ─────────────────────────────────────────────

def _format_time(value: Any) -> Optional[str]:
    if value is None:
        return None
    if hasattr(value, "strftime"):
        return value.strftime("%H:%M")
    # "HH:MM:SS" strings from raw rows
    return str(value)[:5]


def _clean_strings(values: Optional[Iterable[Any]]) -> List[str]:
    return [str(v).strip() for v in (values or []) if str(v).strip()]


def _clean_weekdays(values: Optional[Iterable[Any]]) -> List[int]:
    days = set()
    for value in values or []:
        try:
            day = int(value)
        except (TypeError, ValueError):
            continue
        if 0 <= day <= 6:
            days.add(day)
    return sorted(days)


def build_package(package: PackageOption, base_price: Decimal) -> CatalogPackage:
    """Normalize a PackageOption row (with slots and steps loaded)."""
    slots = [
        TimeSlot(
            id=str(slot.id) if slot.id else None,
            start_time=_format_time(slot.start_time),
            end_time=_format_time(slot.end_time),
            capacity=slot.capacity if slot.capacity is not None else 0,
        )
        for slot in package.start_end_times or []
        if slot.start_time is not None
    ]
    slots.sort(key=lambda s: s.start_time)

    steps = [
        ItineraryStep(
            day=step.day or 1,
            order_index=step.order_index or 0,
            title=step.title,
            description=step.description,
            duration=step.duration,
        )
        for step in package.itinerary_steps or []
    ]
    steps.sort(key=lambda s: (s.day, s.order_index))

    return CatalogPackage(
        id=str(package.id),
        name=package.name,
        description=package.description,
        age_categories=parse_age_categories(package.age_categories, base_price),
        time_slots=slots,
        itinerary=steps,
        unavailable_dates=sorted(set(_clean_strings(package.unavailable_dates))),
        unavailable_days=_clean_weekdays(package.unavailable_days),
        meeting_point_address=package.meeting_point_address,
        meeting_point_lat=package.meeting_point_lat,
        meeting_point_lng=package.meeting_point_lng,
        meeting_point_details=package.meeting_point_details,
        inclusions=_clean_strings(package.inclusions),
        exclusions=_clean_strings(package.exclusions),
        additional_info=package.additional_info,
    )


def build_catalog(
    experience: Experience,
    packages: Optional[Iterable[PackageOption]] = None,
    default_max_people: int = DEFAULT_MAX_PEOPLE,
) -> ExperienceCatalog:
    """Build the catalog of an experience. Packages default to experience.packages."""
    base_price = Decimal(str(experience.price if experience.price is not None else 0))
    rows = list(experience.packages if packages is None else packages)
    rows.sort(key=lambda p: p.position or 0)

    return ExperienceCatalog(
        experience_id=str(experience.id),
        title=experience.title,
        base_price=base_price,
        max_people=experience.max_participants or default_max_people,
        packages=[build_package(p, base_price) for p in rows],
        is_active=experience.status in (None, "active"),
    )


async def load_catalog(
    db: AsyncSession,
    experience_id: uuid.UUID,
    default_max_people: int = DEFAULT_MAX_PEOPLE,
) -> Optional[ExperienceCatalog]:
    """
    Load the catalog of an experience.

    Returns None if the experience does not exist, and a catalog with an
    empty package list if it has no packages.
    """
    result = await db.execute(
        select(Experience)
        .where(Experience.id == experience_id)
        .options(
            selectinload(Experience.packages).selectinload(PackageOption.start_end_times),
            selectinload(Experience.packages).selectinload(PackageOption.itinerary_steps),
        )
    )
    experience = result.scalar_one_or_none()
    if experience is None:
        return None

    catalog = build_catalog(experience, default_max_people=default_max_people)
    logger.debug(
        "[Catalog] Loaded %d package(s) for experience %s",
        len(catalog.packages),
        experience_id,
    )
    return catalog
