"""Yearly recurrence math for anniversaries.

Everything here is pure and takes the reference day explicitly. Datetimes
are reduced to their calendar date, so "same day" always means the same
calendar day regardless of the time.

Leap days: a Feb 29 anchor falls on Feb 28 in common years. ``is_today``
stays a strict month/day comparison and so never matches Feb 29 in a
common year.
"""

import calendar
from datetime import date, datetime, timedelta


def _as_date(value: date) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value


def on_month_day(year: int, month: int, day: int) -> date:
    """Build ``year-month-day``, clamping Feb 29 to Feb 28 in common years."""
    if month == 2 and day == 29 and not calendar.isleap(year):
        return date(year, 2, 28)
    return date(year, month, day)


def next_occurrence(original: date, recurring: bool, today: date) -> date:
    """
    Next date the anniversary falls on, counting today.

    - One-off anniversaries return their own date, even if it has passed
    - Recurring ones return this year's month/day, or next year's once it has gone by
    """
    original = _as_date(original)
    if not recurring:
        return original

    today = _as_date(today)
    candidate = on_month_day(today.year, original.month, original.day)
    if candidate >= today:
        return candidate
    return on_month_day(today.year + 1, original.month, original.day)


def days_until(original: date, recurring: bool, today: date) -> int:
    """Whole days from today to the next occurrence. Negative only for past one-off dates."""
    return (next_occurrence(original, recurring, today) - _as_date(today)).days


def is_today(value: date, today: date) -> bool:
    """Same month and day, any year."""
    value, today = _as_date(value), _as_date(today)
    return value.month == today.month and value.day == today.day


def occurs_today(original: date, recurring: bool, today: date) -> bool:
    if recurring:
        return is_today(original, today)
    return _as_date(original) == _as_date(today)


def days_together(relationship_start: date, today: date) -> int:
    return abs((_as_date(today) - _as_date(relationship_start)).days)


def years_since(anchor: date, today: date) -> int:
    return _as_date(today).year - _as_date(anchor).year


def is_upcoming(original: date, recurring: bool, today: date, window_days: int) -> bool:
    """True when the next occurrence lies within ``[today, today + window_days]``."""
    today = _as_date(today)
    upcoming = next_occurrence(original, recurring, today)
    return today <= upcoming <= today + timedelta(days=window_days)
