from decimal import Decimal

from app.services.package_catalog import build_catalog, parse_age_categories
from app.services.pricing_engine import (
    compute_from_price,
    compute_total,
    format_price,
    headline_price,
)

from tests.factories import make_catalog, make_experience, make_package


def _standard_categories():
    return parse_age_categories(
        [
            {"label": "Adult", "min": 13, "max": None, "price": 50},
            {"label": "Child", "min": 4, "max": 12, "price": 30},
        ],
        Decimal("50"),
    )


def test_total_sums_price_times_headcount():
    total = compute_total(_standard_categories(), {"adult": 2, "child": 1})
    assert total == Decimal("130.00")


def test_total_ignores_missing_unknown_and_negative_counts():
    categories = _standard_categories()

    assert compute_total(categories, {"adult": 2}) == Decimal("100.00")
    assert compute_total(categories, {"adult": 1, "senior": 4}) == Decimal("50.00")
    assert compute_total(categories, {"adult": 2, "child": -3}) == Decimal("100.00")
    assert compute_total(categories, None) == Decimal("0.00")


def test_total_is_rounded_to_cents():
    categories = parse_age_categories(
        [{"label": "Adult", "min": 18, "price": "19.995"}], Decimal("0")
    )
    assert compute_total(categories, {"adult": 1}) == Decimal("20.00")


def test_from_price_is_cheapest_headline_price():
    experience = make_experience(price="100")
    packages = [
        make_package("A", 0, [{"label": "Adult", "min": 18, "price": 80}, {"label": "Child", "min": 2, "max": 17, "price": 10}]),
        make_package("B", 1, [{"label": "Adult", "min": 18, "price": 60}]),
    ]
    catalog = build_catalog(experience, packages)

    assert compute_from_price(catalog.packages, catalog.base_price) == Decimal("60.00")


def test_from_price_without_packages_is_base_price():
    assert compute_from_price([], Decimal("42")) == Decimal("42.00")


def test_headline_price_through_the_selection_steps():
    catalog = make_catalog()

    # No package: cheapest headline (Standard and Basic both at 50)
    assert headline_price(catalog, None, None) == Decimal("50.00")
    # Package, no date: its adult price
    assert headline_price(catalog, 1, None) == Decimal("80.00")
    # Date chosen: the total
    assert headline_price(catalog, 0, "2026-03-03", {"adult": 2, "child": 1}) == Decimal("130.00")
    # Date chosen but nothing to pay
    assert headline_price(catalog, 0, "2026-03-03", {"adult": 0, "child": 0}) is None


def test_format_price():
    assert format_price(Decimal("130")) == "130.00"
    assert format_price(Decimal("12.5")) == "12.50"
    assert format_price(None) == "-"
