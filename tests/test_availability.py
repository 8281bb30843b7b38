from datetime import date, timedelta

from app.services.availability import (
    available_dates_for,
    blackouts_for,
    compute_available_dates,
    is_bookable,
    sunday_based_weekday,
)

from tests.factories import TODAY


def test_sunday_based_weekday():
    assert sunday_based_weekday(date(2026, 3, 1)) == 0  # Sunday
    assert sunday_based_weekday(TODAY) == 1  # Monday
    assert sunday_based_weekday(date(2026, 3, 7)) == 6  # Saturday


def test_no_blackouts_lists_every_day_of_the_horizon():
    dates = compute_available_dates([], [], today=TODAY)

    assert len(dates) == 372
    assert dates[0] == "2026-03-02"
    assert dates[-1] == "2027-03-08"
    assert dates == sorted(set(dates))


def test_past_dates_are_never_listed_or_bookable(catalog):
    dates = available_dates_for(catalog, 2, today=TODAY)

    assert min(dates) == TODAY.isoformat()
    assert not is_bookable("2026-03-01", catalog, 2, today=TODAY)
    assert is_bookable("2026-03-02", catalog, 2, today=TODAY)


def test_blackout_date_is_excluded():
    dates = compute_available_dates(["2026-03-04"], [], today=TODAY)

    assert "2026-03-04" not in dates
    assert "2026-03-03" in dates
    assert "2026-03-05" in dates


def test_weekday_list_keeps_only_those_weekdays():
    dates = compute_available_dates([], [6], today=TODAY)

    assert dates[0] == "2026-03-07"
    assert all(date.fromisoformat(d).weekday() == 5 for d in dates)


def test_weekday_list_and_blackout_dates_combine():
    dates = compute_available_dates(["2026-03-07"], [0, 6], today=TODAY)

    assert "2026-03-07" not in dates
    assert dates[0] == "2026-03-08"
    assert all(sunday_based_weekday(date.fromisoformat(d)) in (0, 6) for d in dates)


def test_scan_stops_after_next_year():
    today = date(2026, 12, 20)
    dates = compute_available_dates([], [], horizon_days=1000, today=today)

    assert dates[-1] == "2027-12-31"


def test_empty_horizon():
    assert compute_available_dates([], [], horizon_days=0, today=TODAY) == []


def test_every_weekday_blacked_out_leaves_all_days():
    # Listing every weekday keeps every weekday
    dates = compute_available_dates([], range(7), horizon_days=14, today=TODAY)
    assert len(dates) == 14


def test_no_package_selected_merges_blackouts(catalog):
    dates, days = blackouts_for(catalog, None)
    assert dates == {(TODAY + timedelta(days=2)).isoformat()}
    assert days == {6}

    merged = available_dates_for(catalog, None, today=TODAY)
    assert all(date.fromisoformat(d).weekday() == 5 for d in merged)


def test_selected_package_uses_its_own_blackouts(catalog):
    standard = available_dates_for(catalog, 0, today=TODAY)

    assert (TODAY + timedelta(days=2)).isoformat() not in standard
    assert (TODAY + timedelta(days=1)).isoformat() in standard


def test_is_bookable_rejects_garbage_and_out_of_horizon(catalog):
    assert not is_bookable("not-a-date", catalog, 0, today=TODAY)
    assert not is_bookable("2027-03-09", catalog, 2, today=TODAY)
    assert is_bookable("2027-03-08", catalog, 2, today=TODAY)
