"""Attendance state kept in memory and mirrored to a local key-value store."""

from __future__ import annotations

import json
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Protocol

from .contract import DEFAULT_TARGET_PER_QUARTER, STORAGE_KEY
from .datemath import to_iso
from .models import AttendanceDay, AttendanceState, AttendanceStatus

logger = logging.getLogger(__name__)


class InvalidTargetError(ValueError):
    """Raised when a quarterly target below one is requested."""


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...


def default_state(target: int = DEFAULT_TARGET_PER_QUARTER) -> AttendanceState:
    return AttendanceState(days={}, target_per_quarter=target)


def parse_state(raw: Optional[str], default_target: int = DEFAULT_TARGET_PER_QUARTER) -> AttendanceState:
    """Decode the persisted JSON document.

    Anything that is not a JSON object yields the default state. Individual
    day entries that cannot be understood are dropped.
    """

    if not raw:
        return default_state(default_target)
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Stored attendance state is not valid JSON; starting fresh")
        return default_state(default_target)
    if not isinstance(parsed, dict):
        logger.warning("Stored attendance state has an unexpected shape; starting fresh")
        return default_state(default_target)

    target = parsed.get("targetPerQuarter")
    if isinstance(target, bool) or not isinstance(target, (int, float)) or target < 1:
        target = default_target

    days: Dict[str, AttendanceDay] = {}
    raw_days = parsed.get("days")
    if isinstance(raw_days, dict):
        for iso, entry in raw_days.items():
            day = _parse_day(iso, entry)
            if day is not None and not day.is_empty:
                days[day.date_iso] = day
    return AttendanceState(days=days, target_per_quarter=int(target))


def _parse_day(iso: str, entry: Any) -> Optional[AttendanceDay]:
    if not isinstance(entry, dict):
        return None
    try:
        status = AttendanceStatus.parse(entry.get("status"))
    except ValueError:
        return None
    notes = entry.get("notes") or ""
    return AttendanceDay(
        date_iso=str(entry.get("dateISO") or iso),
        status=status,
        notes=str(notes),
    )


class AttendanceStore:
    """Single-writer owner of the attendance state.

    Every mutation is written through to storage immediately. A day record is
    removed once it carries neither a status nor notes.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        key: str = STORAGE_KEY,
        default_target: int = DEFAULT_TARGET_PER_QUARTER,
    ) -> None:
        self._storage = storage
        self._key = key
        self._default_target = default_target
        self.state = self.load()

    def load(self) -> AttendanceState:
        return parse_state(self._storage.get_item(self._key), self._default_target)

    def save(self) -> None:
        self._storage.set_item(self._key, json.dumps(self.state.to_dict()))

    @property
    def target(self) -> int:
        return self.state.target_per_quarter

    def get(self, iso: str) -> Optional[AttendanceDay]:
        return self.state.days.get(iso)

    def status_for(self, iso: str) -> AttendanceStatus:
        day = self.get(iso)
        return day.status if day else AttendanceStatus.UNSET

    def set_status(self, iso: str, status: AttendanceStatus | str | None) -> Optional[AttendanceDay]:
        resolved = AttendanceStatus.parse(status)
        existing = self.state.days.get(iso) or AttendanceDay(date_iso=iso)
        updated = AttendanceDay(date_iso=iso, status=resolved, notes=existing.notes)
        return self._put(updated)

    def add_note(self, iso: str, note: str) -> Optional[AttendanceDay]:
        existing = self.state.days.get(iso) or AttendanceDay(date_iso=iso)
        updated = AttendanceDay(date_iso=iso, status=existing.status, notes=note or "")
        return self._put(updated)

    def set_target(self, target: int) -> None:
        if isinstance(target, bool) or not isinstance(target, int) or target < 1:
            raise InvalidTargetError("target per quarter must be a whole number of at least 1")
        self.state.target_per_quarter = target
        self.save()

    def days_between(self, start: date, end: date) -> List[AttendanceDay]:
        """Records whose date falls in ``[start, end]``, ascending by date."""

        start_iso, end_iso = to_iso(start), to_iso(end)
        return sorted(
            (day for day in self.state.days.values() if start_iso <= day.date_iso <= end_iso),
            key=lambda day: day.date_iso,
        )

    def _put(self, day: AttendanceDay) -> Optional[AttendanceDay]:
        if day.is_empty:
            self.state.days.pop(day.date_iso, None)
            self.save()
            return None
        self.state.days[day.date_iso] = day
        self.save()
        return day


__all__ = [
    "AttendanceStore",
    "InvalidTargetError",
    "KeyValueStorage",
    "default_state",
    "parse_state",
]
