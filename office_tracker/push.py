"""Push message parsing and the push / notification-click handlers."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from .contract import (
    DEFAULT_CLICK_URL,
    DEFAULT_NOTIFICATION_BODY,
    DEFAULT_NOTIFICATION_TITLE,
    NOTIFICATION_BADGE,
    NOTIFICATION_ICON,
    NOTIFICATION_VIBRATE,
)
from .events import Clients, NotificationClickEvent, NotificationSurface, PushEvent, PushMessageData

logger = logging.getLogger(__name__)


class PayloadShape(str, Enum):
    FLAT = "flat"  # {title, body, icon, data: {url}}
    WRAPPED = "wrapped"  # {notification: {title, body}, data: {url}}
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class PushMessage:
    title: str
    body: str
    icon: str
    url: str
    shape: PayloadShape

    def to_payload(self) -> Dict[str, Any]:
        """Serialize in the flat shape, the one new senders should emit."""

        return {"title": self.title, "body": self.body, "icon": self.icon, "data": {"url": self.url}}


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def parse_push_payload(data: Optional[PushMessageData]) -> PushMessage:
    """Read either payload shape; anything unreadable falls back to defaults.

    A plain-text payload becomes the notification body.
    """

    if data is None:
        return _default_message()
    try:
        payload = data.json()
    except ValueError:
        body = data.text().strip()
        return _default_message(body=body or DEFAULT_NOTIFICATION_BODY)
    if not isinstance(payload, dict):
        return _default_message()

    extra = payload.get("data") if isinstance(payload.get("data"), dict) else {}
    url = _text(extra.get("url")) or DEFAULT_CLICK_URL

    wrapped = payload.get("notification")
    if isinstance(wrapped, dict):
        return PushMessage(
            title=_text(wrapped.get("title")) or DEFAULT_NOTIFICATION_TITLE,
            body=_text(wrapped.get("body")) or DEFAULT_NOTIFICATION_BODY,
            icon=_text(wrapped.get("icon")) or NOTIFICATION_ICON,
            url=url,
            shape=PayloadShape.WRAPPED,
        )
    if "title" in payload or "body" in payload:
        return PushMessage(
            title=_text(payload.get("title")) or DEFAULT_NOTIFICATION_TITLE,
            body=_text(payload.get("body")) or DEFAULT_NOTIFICATION_BODY,
            icon=_text(payload.get("icon")) or NOTIFICATION_ICON,
            url=url,
            shape=PayloadShape.FLAT,
        )
    return _default_message(url=url)


def _default_message(
    *, body: str = DEFAULT_NOTIFICATION_BODY, url: str = DEFAULT_CLICK_URL
) -> PushMessage:
    return PushMessage(
        title=DEFAULT_NOTIFICATION_TITLE,
        body=body,
        icon=NOTIFICATION_ICON,
        url=url,
        shape=PayloadShape.DEFAULT,
    )


def notification_options(message: PushMessage) -> Dict[str, Any]:
    return {
        "body": message.body,
        "icon": message.icon,
        "badge": NOTIFICATION_BADGE,
        "vibrate": list(NOTIFICATION_VIBRATE),
        "data": {"url": message.url, "dateOfArrival": int(time.time() * 1000)},
    }


class PushDispatch:
    """Displays incoming pushes and routes clicks back into the app."""

    def __init__(self, notifications: NotificationSurface, clients: Clients) -> None:
        self.notifications = notifications
        self.clients = clients

    def on_push(self, event: PushEvent) -> None:
        message = parse_push_payload(event.data)
        logger.info("Push received (%s payload): %s", message.shape.value, message.title)
        event.wait_until(
            self.notifications.show_notification(message.title, notification_options(message))
        )

    def on_notification_click(self, event: NotificationClickEvent) -> None:
        event.notification.close()
        url = _text(event.notification.data.get("url")) or DEFAULT_CLICK_URL
        event.wait_until(self._open_or_focus(url))

    async def _open_or_focus(self, url: str) -> None:
        for window in await self.clients.match_all():
            if window.url == url:
                await window.focus()
                return
        await self.clients.open_window(url)


__all__ = [
    "PayloadShape",
    "PushMessage",
    "PushDispatch",
    "notification_options",
    "parse_push_payload",
]
