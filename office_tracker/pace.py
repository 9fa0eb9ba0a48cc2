"""Quarterly pacing: how far ahead of or behind a linear attendance target."""

from __future__ import annotations

import math
from datetime import date
from typing import Iterable

from .datemath import business_days_between_inclusive, normalize, to_iso
from .models import AttendanceDay, AttendanceStatus, PaceSnapshot, QuarterRange


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def count_in_office(days: Iterable[AttendanceDay], quarter: QuarterRange) -> int:
    start_iso, end_iso = to_iso(quarter.start), to_iso(quarter.end)
    return sum(
        1
        for day in days
        if day.status is AttendanceStatus.IN and start_iso <= day.date_iso <= end_iso
    )


def compute_pace(
    days: Iterable[AttendanceDay],
    quarter: QuarterRange,
    today: date,
    target: int,
) -> PaceSnapshot:
    """Compare attendance so far with an even spread of ``target`` over business days."""

    in_office = count_in_office(days, quarter)
    current = normalize(today)
    clamped = min(max(current, quarter.start), quarter.end)

    total_biz = business_days_between_inclusive(quarter.start, quarter.end)
    elapsed_biz = business_days_between_inclusive(quarter.start, clamped)
    remaining_biz = max(0, total_biz - elapsed_biz)

    expected = _round_half_up(target * elapsed_biz / total_biz) if total_biz else 0
    needed = max(0, target - in_office)
    per_day = needed / remaining_biz if remaining_biz > 0 else float(needed)

    return PaceSnapshot(
        in_office_count=in_office,
        total_business_days=total_biz,
        elapsed_business_days=elapsed_biz,
        remaining_business_days=remaining_biz,
        expected_by_today=expected,
        ahead_behind=in_office - expected,
        needed_to_hit_target=needed,
        needed_per_business_day=per_day,
    )


def _days(count: int) -> str:
    return "day" if count == 1 else "days"


def describe_pace(snapshot: PaceSnapshot) -> str:
    if snapshot.ahead_behind > 0:
        headline = f"Ahead by {snapshot.ahead_behind} {_days(snapshot.ahead_behind)}"
    elif snapshot.ahead_behind < 0:
        behind = abs(snapshot.ahead_behind)
        headline = f"Behind by {behind} {_days(behind)}"
    else:
        headline = "On pace"
    return (
        f"{headline}. Remaining business days in quarter: {snapshot.remaining_business_days}. "
        f"Need {snapshot.needed_to_hit_target} more {_days(snapshot.needed_to_hit_target)}. "
        f"Avg required per business day: {snapshot.needed_per_business_day:.2f}"
    )


__all__ = ["compute_pace", "count_in_office", "describe_pace"]
