"""Dataclasses representing Office Tracker domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from .contract import DEFAULT_TARGET_PER_QUARTER


class AttendanceStatus(str, Enum):
    IN = "in"
    OUT = "out"
    UNSET = "unset"

    @classmethod
    def parse(cls, value: Any) -> "AttendanceStatus":
        """Map a persisted or user-supplied value onto a status.

        ``None``, empty strings and "clear" all mean UNSET.
        """

        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNSET
        text = str(value).strip().lower()
        if text in {"", "clear", "unset", "none"}:
            return cls.UNSET
        return cls(text)

    def to_json(self) -> Optional[str]:
        return None if self is AttendanceStatus.UNSET else self.value


@dataclass(slots=True)
class AttendanceDay:
    date_iso: str
    status: AttendanceStatus = AttendanceStatus.UNSET
    notes: str = ""

    @property
    def is_empty(self) -> bool:
        return self.status is AttendanceStatus.UNSET and not self.notes

    def to_dict(self) -> Dict[str, Any]:
        return {"dateISO": self.date_iso, "status": self.status.to_json(), "notes": self.notes}


@dataclass(slots=True)
class AttendanceState:
    days: Dict[str, AttendanceDay] = field(default_factory=dict)
    target_per_quarter: int = DEFAULT_TARGET_PER_QUARTER

    def to_dict(self) -> Dict[str, Any]:
        return {
            "days": {iso: day.to_dict() for iso, day in sorted(self.days.items())},
            "targetPerQuarter": self.target_per_quarter,
        }


@dataclass(frozen=True, slots=True)
class QuarterRange:
    year: int
    quarter: int
    start: date
    end: date


@dataclass(frozen=True, slots=True)
class PaceSnapshot:
    in_office_count: int
    total_business_days: int
    elapsed_business_days: int
    remaining_business_days: int
    expected_by_today: int
    ahead_behind: int
    needed_to_hit_target: int
    needed_per_business_day: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "in_office_count": self.in_office_count,
            "total_business_days": self.total_business_days,
            "elapsed_business_days": self.elapsed_business_days,
            "remaining_business_days": self.remaining_business_days,
            "expected_by_today": self.expected_by_today,
            "ahead_behind": self.ahead_behind,
            "needed_to_hit_target": self.needed_to_hit_target,
            "needed_per_business_day": round(self.needed_per_business_day, 2),
        }


@dataclass(slots=True)
class Subscription:
    """A browser push subscription; ``raw`` keeps every field the client sent."""

    endpoint: str
    keys: Dict[str, str] = field(default_factory=dict)
    expiration_time: Optional[float] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "Subscription":
        endpoint = payload.get("endpoint") if isinstance(payload, dict) else None
        if not endpoint or not isinstance(endpoint, str):
            raise ValueError("subscription endpoint is required")
        keys = payload.get("keys") or {}
        if not isinstance(keys, dict):
            raise ValueError("subscription keys must be an object")
        return cls(
            endpoint=endpoint,
            keys={str(k): str(v) for k, v in keys.items()},
            expiration_time=payload.get("expirationTime"),
            raw=dict(payload),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data["endpoint"] = self.endpoint
        data["keys"] = dict(self.keys)
        if self.expiration_time is not None or "expirationTime" in data:
            data["expirationTime"] = self.expiration_time
        return data


class DeliveryOutcome(str, Enum):
    DELIVERED = "delivered"
    EXPIRED = "expired"
    FAILED = "failed"


__all__ = [
    "AttendanceStatus",
    "AttendanceDay",
    "AttendanceState",
    "QuarterRange",
    "PaceSnapshot",
    "Subscription",
    "DeliveryOutcome",
]
