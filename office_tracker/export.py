"""CSV export of a quarter's attendance."""

from __future__ import annotations

import csv
import io
import re
from typing import Iterable

from .contract import STATUS_LABELS
from .datemath import to_iso
from .models import AttendanceDay, AttendanceStatus, QuarterRange

_NEWLINES = re.compile(r"\r?\n")


def export_filename(quarter: QuarterRange) -> str:
    return f"office_tracker_Q{quarter.quarter}_{quarter.year}.csv"


def quarter_csv(days: Iterable[AttendanceDay], quarter: QuarterRange) -> str:
    """Render every day with a status inside ``quarter`` as CSV, oldest first."""

    start_iso, end_iso = to_iso(quarter.start), to_iso(quarter.end)
    rows = sorted(
        (
            day
            for day in days
            if day.status is not AttendanceStatus.UNSET and start_iso <= day.date_iso <= end_iso
        ),
        key=lambda day: day.date_iso,
    )

    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["Date", "Status", "Notes"])
    for day in rows:
        writer.writerow(
            [day.date_iso, STATUS_LABELS[day.status.value], _NEWLINES.sub(" ", day.notes)]
        )
    return buffer.getvalue().rstrip("\n")


__all__ = ["export_filename", "quarter_csv"]
