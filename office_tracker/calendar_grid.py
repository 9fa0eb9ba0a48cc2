"""Month layout for the attendance calendar: Sunday-first weeks of dates."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from .datemath import add_months, end_of_month, start_of_month

Week = List[Optional[date]]


def build_month_grid(view_date: date) -> List[Week]:
    """Return rows of seven cells; days outside the month are ``None``."""

    first = start_of_month(view_date)
    last = end_of_month(view_date)
    # date.weekday() is Monday=0; shift so Sunday opens the week
    leading = (first.weekday() + 1) % 7

    cells: List[Optional[date]] = [None] * leading
    cells.extend(first + timedelta(days=offset) for offset in range(last.day))
    while len(cells) % 7:
        cells.append(None)
    return [cells[i : i + 7] for i in range(0, len(cells), 7)]


@dataclass(slots=True)
class MonthCursor:
    """The month currently being viewed."""

    view_date: date

    def __post_init__(self) -> None:
        self.view_date = start_of_month(self.view_date)

    def previous(self) -> date:
        self.view_date = add_months(self.view_date, -1)
        return self.view_date

    def next(self) -> date:
        self.view_date = add_months(self.view_date, 1)
        return self.view_date

    def today(self, today: date) -> date:
        self.view_date = start_of_month(today)
        return self.view_date

    def weeks(self) -> List[Week]:
        return build_month_grid(self.view_date)


WEEKDAY_HEADERS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


__all__ = ["Week", "build_month_grid", "MonthCursor", "WEEKDAY_HEADERS"]
