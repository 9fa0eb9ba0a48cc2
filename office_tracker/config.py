"""Configuration helpers for Office Tracker."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .contract import DEFAULT_TARGET_PER_QUARTER

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Settings:
    """Runtime configuration values loaded from environment variables."""

    database_path: Path
    api_key: Optional[str] = None
    vapid_private_key: Optional[str] = None
    vapid_public_key: Optional[str] = None
    vapid_subject: str = "mailto:admin@example.com"
    app_url: str = "/"
    reminder_hour_utc: int = 16
    reminder_minute_utc: int = 0
    reminder_schedule_enabled: bool = True
    target_per_quarter: int = DEFAULT_TARGET_PER_QUARTER

    @property
    def push_enabled(self) -> bool:
        return bool(self.vapid_private_key)


def _int_env(name: str, default: int, *, low: int, high: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.error("%s=%r is not an integer; using %s", name, raw, default)
        return default
    if not low <= value <= high:
        logger.error("%s=%s is outside %s..%s; using %s", name, value, low, high, default)
        return default
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def load_settings(env_file: str | None = None) -> Settings:
    """Load settings from the environment, optionally from a specific file.

    Missing secrets never abort startup: the feature that needs them is
    disabled and a warning is logged instead.
    """

    if env_file:
        load_dotenv(env_file)
    else:
        load_dotenv()

    db_path = Path(os.getenv("DATABASE_PATH", "office_tracker.db")).expanduser()

    api_key = os.getenv("API_KEY") or None
    private_key = os.getenv("VAPID_PRIVATE_KEY") or None
    if private_key:
        # Netlify-style env vars carry escaped newlines in PEM keys
        private_key = private_key.replace("\\n", "\n")

    if not api_key:
        logger.warning("API_KEY is not set. The reminder trigger will reject requests.")
    if not private_key:
        logger.warning("VAPID_PRIVATE_KEY is not set. Push delivery is disabled until provided.")

    return Settings(
        database_path=db_path,
        api_key=api_key,
        vapid_private_key=private_key,
        vapid_public_key=os.getenv("VAPID_PUBLIC_KEY") or None,
        vapid_subject=os.getenv("VAPID_SUBJECT", "mailto:admin@example.com"),
        app_url=os.getenv("APP_URL", "/"),
        reminder_hour_utc=_int_env("REMINDER_HOUR_UTC", 16, low=0, high=23),
        reminder_minute_utc=_int_env("REMINDER_MINUTE_UTC", 0, low=0, high=59),
        reminder_schedule_enabled=_bool_env("REMINDER_SCHEDULE_ENABLED", True),
        target_per_quarter=_int_env(
            "TARGET_PER_QUARTER", DEFAULT_TARGET_PER_QUARTER, low=1, high=366
        ),
    )


__all__ = ["Settings", "load_settings"]
