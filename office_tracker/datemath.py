"""Calendar arithmetic: month and quarter boundaries, business days, ISO dates.

All helpers accept either ``date`` or ``datetime`` values. A ``datetime`` is
truncated to its own calendar day before any arithmetic, so a late-evening
timestamp never spills into the next day.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta

from .models import QuarterRange


def normalize(value: date) -> date:
    """Return the calendar day of ``value`` (local midnight)."""

    if isinstance(value, datetime):
        return value.date()
    return value


def start_of_month(value: date) -> date:
    return normalize(value).replace(day=1)


def end_of_month(value: date) -> date:
    day = normalize(value)
    return day.replace(day=calendar.monthrange(day.year, day.month)[1])


def to_iso(value: date) -> str:
    return normalize(value).isoformat()


def from_iso(value: str) -> date:
    """Parse ``YYYY-MM-DD`` into a date; raises ``ValueError`` otherwise."""

    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except (AttributeError, ValueError) as exc:
        raise ValueError(f"Invalid date {value!r}. Use YYYY-MM-DD") from exc


def get_quarter(value: date) -> int:
    return (normalize(value).month - 1) // 3 + 1


def get_quarter_range(year: int, quarter: int) -> QuarterRange:
    if quarter not in (1, 2, 3, 4):
        raise ValueError(f"quarter must be 1-4, got {quarter!r}")
    start = date(year, (quarter - 1) * 3 + 1, 1)
    end = end_of_month(date(year, quarter * 3, 1))
    return QuarterRange(year=year, quarter=quarter, start=start, end=end)


def quarter_for(value: date) -> QuarterRange:
    day = normalize(value)
    return get_quarter_range(day.year, get_quarter(day))


def is_business_day(value: date) -> bool:
    """Monday through Friday. Public holidays are not excluded."""

    return normalize(value).weekday() < 5


def business_days_between_inclusive(start: date, end: date) -> int:
    first = normalize(start)
    last = normalize(end)
    if last < first:
        return 0
    total_days = (last - first).days + 1
    full_weeks, leftover = divmod(total_days, 7)
    count = full_weeks * 5
    for offset in range(leftover):
        if is_business_day(first + timedelta(days=full_weeks * 7 + offset)):
            count += 1
    return count


def is_same_day(left: date, right: date) -> bool:
    return normalize(left) == normalize(right)


def add_months(value: date, months: int) -> date:
    """Shift to the first day of the month ``months`` away from ``value``."""

    day = normalize(value)
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


__all__ = [
    "normalize",
    "start_of_month",
    "end_of_month",
    "to_iso",
    "from_iso",
    "get_quarter",
    "get_quarter_range",
    "quarter_for",
    "is_business_day",
    "business_days_between_inclusive",
    "is_same_day",
    "add_months",
]
