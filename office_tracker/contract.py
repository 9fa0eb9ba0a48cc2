"""Identifiers shared by the tracker client components and the backend."""

from __future__ import annotations

STORAGE_KEY = "officeTracker_v1"
DEFAULT_TARGET_PER_QUARTER = 24

SUBSCRIPTIONS_COLLECTION = "subscriptions"
FCM_TOKENS_COLLECTION = "fcmTokens"
FCM_TOKEN_DOCUMENT = "user-token"

CACHE_NAME_PREFIX = "office-tracker-cache-"
CACHE_VERSION = "v1"
OFFLINE_URLS = ("/", "/index.html", "/manifest.webmanifest")

DEFAULT_NOTIFICATION_TITLE = "Office Tracker Reminder"
DEFAULT_NOTIFICATION_BODY = "Time to check your office attendance!"
REMINDER_BODY = "Time to check your office attendance for today!"
NOTIFICATION_ICON = "/vite.svg"
NOTIFICATION_BADGE = "/vite.svg"
NOTIFICATION_VIBRATE = (200, 100, 200)
DEFAULT_CLICK_URL = "/"

STATUS_LABELS = {"in": "In Office", "out": "Not in Office"}


def cache_name(version: str = CACHE_VERSION) -> str:
    return f"{CACHE_NAME_PREFIX}{version}"


__all__ = [
    "STORAGE_KEY",
    "DEFAULT_TARGET_PER_QUARTER",
    "SUBSCRIPTIONS_COLLECTION",
    "FCM_TOKENS_COLLECTION",
    "FCM_TOKEN_DOCUMENT",
    "CACHE_NAME_PREFIX",
    "CACHE_VERSION",
    "OFFLINE_URLS",
    "DEFAULT_NOTIFICATION_TITLE",
    "DEFAULT_NOTIFICATION_BODY",
    "REMINDER_BODY",
    "NOTIFICATION_ICON",
    "NOTIFICATION_BADGE",
    "NOTIFICATION_VIBRATE",
    "DEFAULT_CLICK_URL",
    "STATUS_LABELS",
    "cache_name",
]
