"""
Availability calculator: bookable calendar dates for a package.

A date is bookable when it is on or after today, not in the package's
unavailable-dates list and, when the package declares unavailable weekdays,
its weekday IS in that list. The weekday list therefore behaves as an
allow-list of those weekdays only; that is the behavior the booking widget
has always shipped with and it is kept as-is.

When no package is selected the blackouts of all packages are merged.

Weekdays are indexed 0=Sunday..6=Saturday. Dates are produced from
calendar fields (date.isoformat()), never from timestamps.
"""

from datetime import date, timedelta
from typing import Iterable, List, Optional, Set, Tuple

from app.services.package_catalog import ExperienceCatalog

# 12 months x 31 days
DEFAULT_HORIZON_DAYS = 12 * 31


def sunday_based_weekday(day: date) -> int:
    """Weekday index with 0=Sunday..6=Saturday."""
    return (day.weekday() + 1) % 7


def _is_excluded(
    candidate: date,
    unavailable_dates: Set[str],
    unavailable_weekdays: Set[int],
) -> bool:
    if candidate.isoformat() in unavailable_dates:
        return True
    if unavailable_weekdays and sunday_based_weekday(candidate) not in unavailable_weekdays:
        return True
    return False


def compute_available_dates(
    unavailable_dates: Iterable[str],
    unavailable_weekdays: Iterable[int],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    today: Optional[date] = None,
) -> List[str]:
    """
    Scan horizon_days day-steps from today and return the bookable ISO dates.

    The scan also stops as soon as a candidate falls after the end of next
    year. The result is ascending and free of duplicates; an empty list
    means there is nothing to book.
    """
    today = today or date.today()
    blocked_dates = set(unavailable_dates or [])
    blocked_days = set(unavailable_weekdays or [])

    available: List[str] = []
    for offset in range(max(horizon_days, 0)):
        candidate = today + timedelta(days=offset)
        if candidate.year > today.year + 1:
            break
        if _is_excluded(candidate, blocked_dates, blocked_days):
            continue
        available.append(candidate.isoformat())

    return available


def blackouts_for(
    catalog: ExperienceCatalog,
    package_index: Optional[int],
) -> Tuple[Set[str], Set[int]]:
    """
    Blackout dates and weekdays for the selected package, or the union over
    every package when none is selected.
    """
    package = catalog.package_at(package_index)
    if package is not None:
        return set(package.unavailable_dates), set(package.unavailable_days)

    dates: Set[str] = set()
    days: Set[int] = set()
    for pkg in catalog.packages:
        dates.update(pkg.unavailable_dates)
        days.update(pkg.unavailable_days)
    return dates, days


def available_dates_for(
    catalog: ExperienceCatalog,
    package_index: Optional[int] = None,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    today: Optional[date] = None,
) -> List[str]:
    dates, days = blackouts_for(catalog, package_index)
    return compute_available_dates(dates, days, horizon_days=horizon_days, today=today)


def is_bookable(
    day: str,
    catalog: ExperienceCatalog,
    package_index: Optional[int],
    horizon_days: int = DEFAULT_HORIZON_DAYS,
    today: Optional[date] = None,
) -> bool:
    """Whether an ISO date string is among the available dates of the selection."""
    try:
        candidate = date.fromisoformat(day)
    except (TypeError, ValueError):
        return False

    today = today or date.today()
    if candidate < today:
        return False
    if (candidate - today).days >= horizon_days or candidate.year > today.year + 1:
        return False

    dates, days = blackouts_for(catalog, package_index)
    return not _is_excluded(candidate, dates, days)
