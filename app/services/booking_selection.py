"""
Selection state controller for the booking widget.

The in-progress choice of a traveler (package, date, start time and
per-category headcounts) is held in a serializable BookingSelection value.
Changes go through reduce_selection(state, command, catalog), which returns
a new value and never raises: a command that is not allowed in the current
state leaves it unchanged.

Rules:
- selecting a package resets its headcounts (first tier 1, others 0) and
  defaults the start time to the package's first slot
- counts only move once a date and a start time are selected
- a package's running total stays at or below the experience cap
- the first (adult-equivalent) tier cannot go below 1, the others below 0
- selecting a date re-resolves the start time against the package's slots
- clear_all returns to the empty selection
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Annotated, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from app.services.availability import DEFAULT_HORIZON_DAYS, is_bookable
from app.services.package_catalog import CatalogPackage, ExperienceCatalog
from app.services.pricing_engine import compute_total, format_price, headline_price

logger = logging.getLogger(__name__)


class BookingSelection(BaseModel):
    """Immutable booking-widget state. headcounts: package id -> tier key -> count."""

    model_config = ConfigDict(frozen=True)

    package_index: Optional[int] = None
    selected_date: Optional[str] = None
    start_time: Optional[str] = None
    headcounts: Dict[str, Dict[str, int]] = Field(default_factory=dict)


# ============ COMMANDS ============

class SelectPackage(BaseModel):
    type: Literal["select_package"] = "select_package"
    package_index: int


class SelectDate(BaseModel):
    type: Literal["select_date"] = "select_date"
    selected_date: str


class SelectStartTime(BaseModel):
    type: Literal["select_start_time"] = "select_start_time"
    start_time: str


class IncrementCategory(BaseModel):
    type: Literal["increment"] = "increment"
    category: str


class DecrementCategory(BaseModel):
    type: Literal["decrement"] = "decrement"
    category: str


class ClearAll(BaseModel):
    type: Literal["clear_all"] = "clear_all"


SelectionCommand = Annotated[
    Union[SelectPackage, SelectDate, SelectStartTime, IncrementCategory, DecrementCategory, ClearAll],
    Field(discriminator="type"),
]


# ============ HELPERS ============

def default_headcounts(package: CatalogPackage) -> Dict[str, int]:
    """First tier at 1, every other tier at 0."""
    counts = {category.key: 0 for category in package.age_categories}
    if package.age_categories:
        counts[package.age_categories[0].key] = 1
    return counts


def category_floor(package: CatalogPackage, key: str) -> int:
    if package.age_categories and package.age_categories[0].key == key:
        return 1
    return 0


def _first_start_time(package: Optional[CatalogPackage]) -> Optional[str]:
    if package is None or not package.time_slots:
        return None
    return package.time_slots[0].start_time


def current_headcounts(state: BookingSelection, package: CatalogPackage) -> Dict[str, int]:
    counts = state.headcounts.get(package.id)
    if counts is None:
        return default_headcounts(package)
    return dict(counts)


def _with_counts(state: BookingSelection, package: CatalogPackage, counts: Dict[str, int]) -> BookingSelection:
    headcounts = {pid: dict(c) for pid, c in state.headcounts.items()}
    headcounts[package.id] = counts
    return state.model_copy(update={"headcounts": headcounts})


# ============ TRANSITIONS ============

def _select_package(state: BookingSelection, command: SelectPackage, catalog: ExperienceCatalog) -> BookingSelection:
    package = catalog.package_at(command.package_index)
    if package is None:
        logger.debug("[Selection] Ignoring out-of-range package index %s", command.package_index)
        return state

    state = _with_counts(state, package, default_headcounts(package))
    return state.model_copy(update={
        "package_index": command.package_index,
        "start_time": _first_start_time(package),
    })


def _select_date(
    state: BookingSelection,
    command: SelectDate,
    catalog: ExperienceCatalog,
    today: Optional[date],
    horizon_days: int,
) -> BookingSelection:
    if not is_bookable(command.selected_date, catalog, state.package_index, horizon_days=horizon_days, today=today):
        logger.debug("[Selection] Ignoring unavailable date %s", command.selected_date)
        return state

    package = catalog.package_at(state.package_index)
    start_time = state.start_time
    if package is None:
        start_time = None
    elif start_time is None or package.find_slot(start_time) is None:
        start_time = _first_start_time(package)

    return state.model_copy(update={"selected_date": command.selected_date, "start_time": start_time})


def _select_start_time(state: BookingSelection, command: SelectStartTime, catalog: ExperienceCatalog) -> BookingSelection:
    package = catalog.package_at(state.package_index)
    if package is None or package.find_slot(command.start_time) is None:
        logger.debug("[Selection] Ignoring unknown start time %s", command.start_time)
        return state
    return state.model_copy(update={"start_time": command.start_time})


def _change_count(
    state: BookingSelection,
    category: str,
    delta: int,
    catalog: ExperienceCatalog,
) -> BookingSelection:
    package = catalog.package_at(state.package_index)
    if package is None or not state.selected_date or not state.start_time:
        return state
    if package.find_category(category) is None:
        logger.debug("[Selection] Unknown category %s for package %s", category, package.id)
        return state

    counts = current_headcounts(state, package)
    current = counts.get(category, 0)

    if delta > 0:
        if sum(counts.values()) >= catalog.max_people:
            return state
        counts[category] = current + 1
    else:
        if current <= category_floor(package, category):
            return state
        counts[category] = current - 1

    return _with_counts(state, package, counts)


def reduce_selection(
    state: BookingSelection,
    command: SelectionCommand,
    catalog: ExperienceCatalog,
    today: Optional[date] = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> BookingSelection:
    """Apply one command to a selection and return the resulting selection."""
    if isinstance(command, ClearAll):
        return BookingSelection()
    if isinstance(command, SelectPackage):
        return _select_package(state, command, catalog)
    if isinstance(command, SelectDate):
        return _select_date(state, command, catalog, today, horizon_days)
    if isinstance(command, SelectStartTime):
        return _select_start_time(state, command, catalog)
    if isinstance(command, IncrementCategory):
        return _change_count(state, command.category, 1, catalog)
    if isinstance(command, DecrementCategory):
        return _change_count(state, command.category, -1, catalog)

    logger.warning("[Selection] Unsupported command: %r", command)
    return state


# ============ SUMMARY ============

class SelectionSummary(BaseModel):
    """What the booking flow needs from a selection."""
    package_id: Optional[str] = None
    package_name: Optional[str] = None
    selected_date: Optional[str] = None
    start_time: Optional[str] = None
    headcounts: Dict[str, int] = Field(default_factory=dict)
    participants: int = 0
    total_price: Decimal = Decimal("0.00")
    display_price: str = "-"
    ready: bool = False


def selection_summary(
    state: BookingSelection,
    catalog: ExperienceCatalog,
    today: Optional[date] = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> SelectionSummary:
    """Price the selection. ready needs a date the current package still offers."""
    package = catalog.package_at(state.package_index)
    display = format_price(
        headline_price(
            catalog,
            state.package_index,
            state.selected_date,
            current_headcounts(state, package) if package else None,
        )
    )
    if package is None:
        return SelectionSummary(selected_date=state.selected_date, display_price=display)

    counts = current_headcounts(state, package)
    participants = sum(c for c in counts.values() if c > 0)
    total = compute_total(package.age_categories, counts)

    return SelectionSummary(
        package_id=package.id,
        package_name=package.name,
        selected_date=state.selected_date,
        start_time=state.start_time,
        headcounts=counts,
        participants=participants,
        total_price=total,
        display_price=display,
        ready=bool(
            state.selected_date
            and state.start_time
            and participants > 0
            and is_bookable(state.selected_date, catalog, state.package_index, horizon_days=horizon_days, today=today)
        ),
    )
