"""Service worker event objects and the platform surfaces handlers talk to.

Handlers never await their background work directly. They hand it to
``ExtendableEvent.wait_until`` so the worker stays alive until it settles,
which is how the browser runtime decides when it may suspend the worker.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Dict, List, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


class ExtendableEvent:
    def __init__(self, type_: str) -> None:
        self.type = type_
        self._pending: List[asyncio.Future[Any]] = []

    def wait_until(self, awaitable: Awaitable[Any]) -> asyncio.Future[Any]:
        future = asyncio.ensure_future(awaitable)
        self._pending.append(future)
        return future

    async def settle(self) -> None:
        """Wait for every extension, including ones added while waiting.

        Re-raises the first failure once all of them have finished.
        """

        errors: List[BaseException] = []
        while self._pending:
            batch, self._pending = self._pending, []
            results = await asyncio.gather(*batch, return_exceptions=True)
            errors.extend(r for r in results if isinstance(r, BaseException))
        if errors:
            raise errors[0]


class FetchEvent(ExtendableEvent):
    def __init__(self, request: httpx.Request) -> None:
        super().__init__("fetch")
        self.request = request
        self._response: Optional[asyncio.Future[httpx.Response]] = None

    def respond_with(self, awaitable: Awaitable[httpx.Response]) -> None:
        if self._response is not None:
            raise RuntimeError("respond_with() was already called for this request")
        self._response = asyncio.ensure_future(awaitable)

    @property
    def responded(self) -> bool:
        return self._response is not None

    async def response(self) -> httpx.Response:
        if self._response is None:
            raise RuntimeError("no response was provided for this request")
        return await self._response


class PushMessageData:
    def __init__(self, raw: bytes) -> None:
        self._raw = raw

    def text(self) -> str:
        return self._raw.decode("utf-8", errors="replace")

    def json(self) -> Any:
        return json.loads(self.text())


class PushEvent(ExtendableEvent):
    def __init__(self, data: bytes | str | None = None) -> None:
        super().__init__("push")
        if isinstance(data, str):
            data = data.encode("utf-8")
        self.data = PushMessageData(data) if data else None


_notification_ids = itertools.count(1)


@dataclass(slots=True)
class Notification:
    title: str
    body: str = ""
    icon: Optional[str] = None
    badge: Optional[str] = None
    vibrate: List[int] = field(default_factory=list)
    data: Dict[str, Any] = field(default_factory=dict)
    id: int = field(default_factory=lambda: next(_notification_ids))
    closed: bool = False

    def close(self) -> None:
        self.closed = True


class NotificationClickEvent(ExtendableEvent):
    def __init__(self, notification: Notification, action: str = "") -> None:
        super().__init__("notificationclick")
        self.notification = notification
        self.action = action


class NotificationSurface(Protocol):
    async def show_notification(self, title: str, options: Dict[str, Any]) -> Notification: ...


@dataclass(slots=True)
class WindowClient:
    id: int
    url: str
    focused: bool = False
    controlled: bool = False

    async def focus(self) -> "WindowClient":
        self.focused = True
        return self


class Clients(Protocol):
    async def claim(self) -> None: ...

    async def match_all(self) -> List[WindowClient]: ...

    async def open_window(self, url: str) -> WindowClient: ...


class InMemoryNotifications:
    """Notification surface that records what would have been displayed."""

    def __init__(self) -> None:
        self.shown: List[Notification] = []

    async def show_notification(self, title: str, options: Dict[str, Any]) -> Notification:
        notification = Notification(
            title=title,
            body=options.get("body", ""),
            icon=options.get("icon"),
            badge=options.get("badge"),
            vibrate=list(options.get("vibrate", [])),
            data=dict(options.get("data") or {}),
        )
        self.shown.append(notification)
        logger.info("Displayed notification %s: %s", notification.id, title)
        return notification

    def get_notifications(self) -> List[Notification]:
        return [n for n in self.shown if not n.closed]


class InMemoryClients:
    """Window clients of the worker's origin."""

    def __init__(self, urls: Optional[List[str]] = None) -> None:
        self._ids = itertools.count(1)
        self.windows: List[WindowClient] = [
            WindowClient(id=next(self._ids), url=url) for url in (urls or [])
        ]
        self.claimed = False

    async def claim(self) -> None:
        self.claimed = True
        for window in self.windows:
            window.controlled = True

    async def match_all(self) -> List[WindowClient]:
        return list(self.windows)

    async def open_window(self, url: str) -> WindowClient:
        window = WindowClient(id=next(self._ids), url=url, focused=True, controlled=self.claimed)
        self.windows.append(window)
        return window


__all__ = [
    "ExtendableEvent",
    "FetchEvent",
    "PushEvent",
    "PushMessageData",
    "Notification",
    "NotificationClickEvent",
    "NotificationSurface",
    "WindowClient",
    "Clients",
    "InMemoryNotifications",
    "InMemoryClients",
]
