"""Core orchestration logic for the attendance tracker."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable, Dict, Optional

from .calendar_grid import WEEKDAY_HEADERS, build_month_grid
from .datemath import from_iso, is_same_day, quarter_for, to_iso
from .export import export_filename, quarter_csv
from .models import AttendanceStatus
from .pace import compute_pace, describe_pace
from .store import AttendanceStore


class TrackerService:
    """High-level service combining the store with pace, calendar and export helpers."""

    def __init__(self, store: AttendanceStore, today: Callable[[], date] = date.today) -> None:
        self.store = store
        self._today = today

    def resolve_day(self, value: Optional[str] = None) -> date:
        return from_iso(value) if value else self._today()

    # region Mutations
    def set_status(self, iso: str, status: AttendanceStatus | str | None) -> Dict[str, Any]:
        day = from_iso(iso)
        record = self.store.set_status(to_iso(day), status)
        return {"date": to_iso(day), "record": record.to_dict() if record else None}

    def add_note(self, iso: str, note: str) -> Dict[str, Any]:
        day = from_iso(iso)
        record = self.store.add_note(to_iso(day), note)
        return {"date": to_iso(day), "record": record.to_dict() if record else None}

    def set_target(self, target: int) -> Dict[str, Any]:
        self.store.set_target(target)
        return {"target_per_quarter": self.store.target}

    # endregion

    # region Query helpers
    def get_pace(self, view_day: date) -> Dict[str, Any]:
        """Pace for the quarter containing ``view_day``, measured against today."""

        quarter = quarter_for(view_day)
        snapshot = compute_pace(
            self.store.state.days.values(), quarter, self._today(), self.store.target
        )
        return {
            "quarter": quarter.quarter,
            "year": quarter.year,
            "start": to_iso(quarter.start),
            "end": to_iso(quarter.end),
            "target": self.store.target,
            "summary": describe_pace(snapshot),
            **snapshot.to_dict(),
        }

    def get_month_calendar(self, view_day: date) -> Dict[str, Any]:
        today = self._today()
        weeks = []
        for week in build_month_grid(view_day):
            row = []
            for cell in week:
                if cell is None:
                    row.append(None)
                    continue
                iso = to_iso(cell)
                record = self.store.get(iso)
                row.append(
                    {
                        "date": iso,
                        "status": record.status.to_json() if record else None,
                        "notes": record.notes if record else "",
                        "today": is_same_day(cell, today),
                    }
                )
            weeks.append(row)
        return {
            "month": view_day.strftime("%Y-%m"),
            "headers": list(WEEKDAY_HEADERS),
            "weeks": weeks,
        }

    def export_quarter(self, view_day: date) -> Dict[str, str]:
        quarter = quarter_for(view_day)
        return {
            "filename": export_filename(quarter),
            "csv": quarter_csv(self.store.state.days.values(), quarter),
        }

    # endregion


__all__ = ["TrackerService"]
