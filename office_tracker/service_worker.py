"""Service worker lifecycle and event dispatch for the tracker's offline shell."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Iterable, Optional, Set

import httpx

from .contract import CACHE_VERSION, OFFLINE_URLS
from .events import (
    Clients,
    ExtendableEvent,
    FetchEvent,
    Notification,
    NotificationClickEvent,
    NotificationSurface,
    PushEvent,
)
from .offline_cache import CacheInstallError, CacheStorage, NotificationCache
from .push import PushDispatch

logger = logging.getLogger(__name__)


class WorkerState(str, Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class ServiceWorker:
    """One deployed version of the worker script."""

    def __init__(
        self,
        *,
        caches: CacheStorage,
        client: httpx.AsyncClient,
        clients: Clients,
        notifications: NotificationSurface,
        origin: str,
        version: str = CACHE_VERSION,
        offline_urls: Iterable[str] = OFFLINE_URLS,
    ) -> None:
        self.version = version
        self.state = WorkerState.PARSED
        self.client = client
        self.clients = clients
        self.cache = NotificationCache(
            caches, client, origin=origin, version=version, offline_urls=offline_urls
        )
        self.push = PushDispatch(notifications, clients)
        self._lifetimes: Set[asyncio.Task[None]] = set()

    async def install(self) -> None:
        self.state = WorkerState.INSTALLING
        event = ExtendableEvent("install")
        self.cache.on_install(event)
        try:
            await event.settle()
        except Exception as exc:
            self.state = WorkerState.REDUNDANT
            if isinstance(exc, CacheInstallError):
                raise
            raise CacheInstallError(str(exc)) from exc
        self.state = WorkerState.INSTALLED

    async def activate(self) -> None:
        self.state = WorkerState.ACTIVATING
        event = ExtendableEvent("activate")
        self.cache.on_activate(event, self.clients)
        await event.settle()
        self.state = WorkerState.ACTIVATED
        logger.info("Service worker %s activated", self.version)

    async def fetch(self, request: httpx.Request) -> httpx.Response:
        """Dispatch a page request; unhandled requests go straight to the network."""

        if self.state is not WorkerState.ACTIVATED:
            return await self.client.send(request)
        event = FetchEvent(request)
        self.cache.on_fetch(event)
        if not event.responded:
            return await self.client.send(request)
        try:
            return await event.response()
        finally:
            self._keep_alive(event)

    async def dispatch_push(self, data: bytes | str | None) -> None:
        event = PushEvent(data)
        self.push.on_push(event)
        await event.settle()

    async def dispatch_notification_click(self, notification: Notification, action: str = "") -> None:
        event = NotificationClickEvent(notification, action)
        self.push.on_notification_click(event)
        await event.settle()

    async def idle(self) -> None:
        """Wait until every extended event lifetime has settled."""

        while self._lifetimes:
            await asyncio.gather(*list(self._lifetimes))

    def _keep_alive(self, event: ExtendableEvent) -> None:
        task = asyncio.ensure_future(self._settle(event))
        self._lifetimes.add(task)
        task.add_done_callback(self._lifetimes.discard)

    @staticmethod
    async def _settle(event: ExtendableEvent) -> None:
        try:
            await event.settle()
        except Exception as exc:  # noqa: BLE001
            logger.warning("Background work for %s event failed: %s", event.type, exc)


class Registration:
    """Tracks which worker version controls the app.

    A worker whose install fails never replaces the active one.
    """

    def __init__(self, client: httpx.AsyncClient) -> None:
        self.client = client
        self.active: Optional[ServiceWorker] = None
        self.installing: Optional[ServiceWorker] = None

    async def update(self, worker: ServiceWorker) -> ServiceWorker:
        self.installing = worker
        try:
            await worker.install()
        except CacheInstallError:
            logger.warning(
                "Service worker %s failed to install; keeping %s",
                worker.version,
                self.active.version if self.active else "no worker",
            )
            raise
        finally:
            self.installing = None

        previous = self.active
        if previous is not None:
            # pending write-backs of the old version must land before its bucket is evicted
            await previous.idle()
        await worker.activate()
        self.active = worker
        if previous is not None:
            previous.state = WorkerState.REDUNDANT
        return worker

    async def fetch(self, request: httpx.Request) -> httpx.Response:
        if self.active is None:
            return await self.client.send(request)
        return await self.active.fetch(request)


__all__ = ["WorkerState", "ServiceWorker", "Registration"]
