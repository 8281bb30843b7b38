from decimal import Decimal

from app.models.package_option import PackageItineraryStep
from app.services.package_catalog import (
    build_catalog,
    build_package,
    default_age_categories,
    parse_age_categories,
    slugify_label,
)

from tests.factories import make_catalog, make_experience, make_package


def test_slugify_label():
    assert slugify_label("Adult") == "adult"
    assert slugify_label("Senior (65+)") == "senior-65"
    assert slugify_label("  ") == "category"


def test_default_schedule_from_base_price():
    categories = default_age_categories(Decimal("45"))

    assert [c.key for c in categories] == ["adult", "child", "infant"]
    assert [c.price for c in categories] == [Decimal("45"), Decimal("45"), Decimal("0")]
    assert categories[0].max_age is None
    assert (categories[2].min_age, categories[2].max_age) == (0, 3)


def test_tiers_sorted_by_descending_min_age():
    categories = parse_age_categories(
        [
            {"label": "Infant", "min": 0, "max": 3, "price": 0},
            {"label": "Adult", "min": 18, "max": None, "price": 40},
            {"label": "Youth", "min": 4, "max": 17, "price": 25},
        ],
        Decimal("40"),
    )
    assert [c.key for c in categories] == ["adult", "youth", "infant"]


def test_malformed_tiers_are_dropped():
    categories = parse_age_categories(
        [
            {"label": "", "min": 0, "price": 10},
            {"label": "Teen", "min": "abc", "price": 10},
            {"label": "Senior", "min": 65, "max": 60, "price": 10},
            {"label": "Student", "min": 18, "price": -5},
            "Adult",
            {"label": "Adult", "min": 18, "price": 40},
        ],
        Decimal("40"),
    )
    assert [(c.key, c.price) for c in categories] == [("adult", Decimal("40"))]


def test_nothing_usable_falls_back_to_defaults():
    assert [c.key for c in parse_age_categories(None, Decimal("10"))] == ["adult", "child", "infant"]
    assert [c.key for c in parse_age_categories([{"label": "Bad"}], Decimal("10"))] == ["adult", "child", "infant"]


def test_duplicate_labels_get_distinct_keys():
    categories = parse_age_categories(
        [
            {"label": "Adult", "min": 18, "price": 40},
            {"label": "Adult", "min": 12, "max": 17, "price": 30},
        ],
        Decimal("40"),
    )
    assert [c.key for c in categories] == ["adult", "adult-2"]


def test_build_package_normalizes_slots_itinerary_and_weekdays():
    row = make_package(
        "Standard",
        slots=("14:00", "09:30"),
        capacity=6,
        unavailable_dates=["2026-05-01", "2026-05-01"],
        unavailable_days=[7, "3", -1, 3],
        itinerary=[
            PackageItineraryStep(day=2, order_index=0, title="Day two"),
            PackageItineraryStep(day=1, order_index=1, title="Lunch"),
            PackageItineraryStep(day=1, order_index=0, title="Pickup"),
        ],
    )
    package = build_package(row, Decimal("50"))

    assert [s.start_time for s in package.time_slots] == ["09:30", "14:00"]
    assert all(s.capacity == 6 for s in package.time_slots)
    assert [s.title for s in package.itinerary] == ["Pickup", "Lunch", "Day two"]
    assert package.unavailable_dates == ["2026-05-01"]
    assert package.unavailable_days == [3]
    assert package.find_slot("09:30").end_time is None
    assert package.find_slot("10:00") is None


def test_catalog_orders_packages_and_uses_defaults(catalog):
    assert [p.name for p in catalog.packages] == ["Standard", "Premium", "Basic"]
    assert catalog.max_people == 3
    assert catalog.package_at(3) is None
    assert catalog.package_at(-1) is None
    assert catalog.package_index_of(catalog.packages[1].id) == 1
    assert catalog.package_index_of("nope") is None


def test_max_people_defaults_when_unset():
    catalog = build_catalog(make_experience(), [], default_max_people=32)
    assert catalog.max_people == 32
    assert catalog.packages == []


def test_inactive_experience():
    assert make_catalog(status="inactive").is_active is False
    assert make_catalog().is_active is True
