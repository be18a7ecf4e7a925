import pytest
from datetime import date, datetime, timedelta

from backend.app.services.recurrence_service import (
    days_together, days_until, is_today, is_upcoming, next_occurrence, occurs_today, years_since
)

REFERENCE_DAYS = [
    date(2024, 1, 1),
    date(2024, 2, 28),
    date(2024, 2, 29),
    date(2024, 12, 31),
    date(2025, 3, 1),
    date(2025, 6, 15),
]

ANCHORS = [
    date(2023, 12, 25),
    date(2020, 1, 1),
    date(2019, 6, 15),
    date(2022, 12, 31),
]

# next_occurrence

def test_non_recurring_returns_original_date():
    original = date(2023, 12, 25)
    for today in REFERENCE_DAYS:
        assert next_occurrence(original, False, today) == original

def test_recurring_never_in_the_past_and_keeps_month_day():
    for anchor in ANCHORS:
        for today in REFERENCE_DAYS:
            upcoming = next_occurrence(anchor, True, today)
            assert upcoming >= today
            assert (upcoming.month, upcoming.day) == (anchor.month, anchor.day)
            assert upcoming.year in (today.year, today.year + 1)

def test_recurring_same_day_counts_as_occurring():
    assert next_occurrence(date(2023, 12, 25), True, date(2024, 12, 25)) == date(2024, 12, 25)

def test_recurring_rolls_to_next_year_once_passed():
    assert next_occurrence(date(2023, 12, 25), True, date(2024, 12, 26)) == date(2025, 12, 25)

def test_datetime_inputs_are_reduced_to_dates():
    # Late in the day still counts as today
    now = datetime(2024, 12, 25, 23, 59)
    assert next_occurrence(datetime(2023, 12, 25, 8, 0), True, now) == date(2024, 12, 25)
    assert days_until(date(2023, 12, 25), True, now) == 0

# Leap days

def test_leap_day_clamps_to_feb_28_in_common_years():
    assert next_occurrence(date(2020, 2, 29), True, date(2025, 1, 10)) == date(2025, 2, 28)

def test_leap_day_kept_in_leap_years():
    assert next_occurrence(date(2020, 2, 29), True, date(2024, 1, 10)) == date(2024, 2, 29)

def test_leap_day_after_clamped_date_rolls_into_next_year():
    # 2027 is a common year as well
    assert next_occurrence(date(2020, 2, 29), True, date(2026, 3, 1)) == date(2027, 2, 28)
    assert next_occurrence(date(2020, 2, 29), True, date(2027, 3, 1)) == date(2028, 2, 29)

def test_leap_day_is_today_only_on_feb_29():
    assert is_today(date(2020, 2, 29), date(2024, 2, 29))
    assert not is_today(date(2020, 2, 29), date(2025, 2, 28))
    assert days_until(date(2020, 2, 29), True, date(2025, 2, 28)) == 0

# days_until

def test_days_until_matches_next_occurrence():
    for anchor in ANCHORS:
        for today in REFERENCE_DAYS:
            expected = (next_occurrence(anchor, True, today) - today).days
            assert days_until(anchor, True, today) == expected
            assert days_until(anchor, True, today) >= 0

def test_days_until_christmas_scenario():
    assert days_until(date(2023, 12, 25), True, date(2024, 12, 25)) == 0
    assert days_until(date(2023, 12, 25), True, date(2024, 12, 26)) == 364

def test_days_until_past_one_off_date_is_negative():
    assert days_until(date(2024, 1, 1), False, date(2024, 1, 11)) == -10

# is_today / occurs_today

@pytest.mark.parametrize("value,today,expected", [
    (date(2023, 2, 14), date(2025, 2, 14), True),
    (date(2025, 2, 14), date(2025, 2, 14), True),
    (date(2023, 2, 14), date(2025, 2, 15), False),
    (date(2023, 3, 14), date(2025, 2, 14), False),
])
def test_is_today_ignores_year(value, today, expected):
    assert is_today(value, today) is expected

def test_occurs_today_requires_exact_date_for_one_off():
    assert occurs_today(date(2025, 2, 14), False, date(2025, 2, 14))
    assert not occurs_today(date(2023, 2, 14), False, date(2025, 2, 14))
    assert occurs_today(date(2023, 2, 14), True, date(2025, 2, 14))

# days_together / years_since

def test_days_together_valentines_scenario():
    start = date(2023, 2, 14)
    today = date(2025, 2, 14)
    # 2023-02-14 -> 2024-02-14 spans no Feb 29; 2024-02-14 -> 2025-02-14 spans 2024-02-29
    assert days_together(start, today) == 365 + 366
    assert is_today(start, today)
    assert years_since(start, today) == 2

def test_days_together_is_monotonic():
    start = date(2023, 2, 14)
    counts = [days_together(start, start + timedelta(days=n)) for n in range(0, 800, 7)]
    assert counts == sorted(counts)
    assert days_together(start, start) == 0

def test_days_together_never_negative_for_future_start():
    assert days_together(date(2025, 3, 1), date(2025, 2, 27)) == 2

# is_upcoming

def test_is_upcoming_window_edges():
    today = date(2025, 2, 14)
    assert is_upcoming(date(2020, 3, 16), True, today, 30)
    assert not is_upcoming(date(2020, 3, 17), True, today, 30)
    assert is_upcoming(date(2020, 2, 14), True, today, 0)

def test_is_upcoming_excludes_past_one_off():
    today = date(2025, 2, 14)
    assert not is_upcoming(date(2025, 2, 13), False, today, 30)
    assert is_upcoming(date(2025, 2, 20), False, today, 30)
