"""Offline cache for the tracker shell: versioned buckets, stale-while-revalidate."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Iterable, List, Optional

import httpx

from .contract import CACHE_VERSION, OFFLINE_URLS, cache_name
from .events import Clients, ExtendableEvent, FetchEvent

logger = logging.getLogger(__name__)

CACHEABLE_SCHEMES = {"http", "https"}
_HOP_HEADERS = {"content-encoding", "content-length", "transfer-encoding"}


class CacheInstallError(RuntimeError):
    """Raised when the offline shell could not be stored in full."""


def clone_response(response: httpx.Response, request: httpx.Request) -> httpx.Response:
    """Copy a fully read response so the original body can still be consumed."""

    headers = [(k, v) for k, v in response.headers.multi_items() if k.lower() not in _HOP_HEADERS]
    return httpx.Response(
        response.status_code,
        headers=headers,
        content=response.content,
        request=request,
    )


def cacheable(request: httpx.Request) -> bool:
    return request.method == "GET" and request.url.scheme in CACHEABLE_SCHEMES


class Cache:
    """One named bucket of request URL -> response entries."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._entries: Dict[str, httpx.Response] = {}

    async def match(self, request: httpx.Request) -> Optional[httpx.Response]:
        entry = self._entries.get(str(request.url))
        return clone_response(entry, request) if entry is not None else None

    async def put(self, request: httpx.Request, response: httpx.Response) -> None:
        if request.method != "GET":
            raise TypeError(f"Only GET requests can be cached, got {request.method}")
        self._entries[str(request.url)] = clone_response(response, request)

    async def add_all(self, client: httpx.AsyncClient, requests: Iterable[httpx.Request]) -> None:
        """Fetch and store every request, or store nothing at all."""

        batch = list(requests)
        try:
            responses = await asyncio.gather(*(client.send(request) for request in batch))
        except httpx.HTTPError as exc:
            raise CacheInstallError(f"Failed to fetch offline resource: {exc}") from exc
        for request, response in zip(batch, responses):
            if not response.is_success:
                raise CacheInstallError(
                    f"Offline resource {request.url} answered {response.status_code}"
                )
        for request, response in zip(batch, responses):
            self._entries[str(request.url)] = clone_response(response, request)

    async def keys(self) -> List[str]:
        return list(self._entries)


class CacheStorage:
    """All cache buckets of one origin."""

    def __init__(self) -> None:
        self._buckets: Dict[str, Cache] = {}

    async def open(self, name: str) -> Cache:
        if name not in self._buckets:
            self._buckets[name] = Cache(name)
        return self._buckets[name]

    async def has(self, name: str) -> bool:
        return name in self._buckets

    async def keys(self) -> List[str]:
        return list(self._buckets)

    async def delete(self, name: str) -> bool:
        return self._buckets.pop(name, None) is not None

    async def match(self, request: httpx.Request) -> Optional[httpx.Response]:
        for bucket in list(self._buckets.values()):
            response = await bucket.match(request)
            if response is not None:
                return response
        return None


class NotificationCache:
    """Install, activate and fetch handlers for one deployed cache version."""

    def __init__(
        self,
        caches: CacheStorage,
        client: httpx.AsyncClient,
        *,
        origin: str,
        version: str = CACHE_VERSION,
        offline_urls: Iterable[str] = OFFLINE_URLS,
    ) -> None:
        self.caches = caches
        self.client = client
        self.origin = httpx.URL(origin)
        self.cache_name = cache_name(version)
        self.offline_urls = tuple(offline_urls)

    # region Lifecycle
    def on_install(self, event: ExtendableEvent) -> None:
        event.wait_until(self._precache())

    async def _precache(self) -> None:
        cache = await self.caches.open(self.cache_name)
        requests = [httpx.Request("GET", self.origin.join(url)) for url in self.offline_urls]
        await cache.add_all(self.client, requests)
        logger.info("Cached %s offline resources in %s", len(requests), self.cache_name)

    def on_activate(self, event: ExtendableEvent, clients: Clients) -> None:
        event.wait_until(self._activate(clients))

    async def _activate(self, clients: Clients) -> None:
        for name in await self.caches.keys():
            if name != self.cache_name:
                await self.caches.delete(name)
                logger.info("Deleted stale cache %s", name)
        await clients.claim()

    # endregion

    # region Fetch
    def on_fetch(self, event: FetchEvent) -> None:
        if not cacheable(event.request):
            return
        event.respond_with(self._stale_while_revalidate(event))

    async def _stale_while_revalidate(self, event: FetchEvent) -> httpx.Response:
        cached = await self.caches.match(event.request)
        network = asyncio.ensure_future(self._fetch_and_update(event))
        if cached is None:
            return await network
        event.wait_until(self._revalidate_in_background(network, event.request))
        return cached

    async def _fetch_and_update(self, event: FetchEvent) -> httpx.Response:
        response = await self.client.send(event.request)
        if response.is_success:
            event.wait_until(self._store(event.request, clone_response(response, event.request)))
        return response

    async def _store(self, request: httpx.Request, response: httpx.Response) -> None:
        if not await self.caches.has(self.cache_name):
            logger.debug("Cache %s was evicted; dropping write for %s", self.cache_name, request.url)
            return
        cache = await self.caches.open(self.cache_name)
        await cache.put(request, response)

    @staticmethod
    async def _revalidate_in_background(
        network: "asyncio.Future[httpx.Response]", request: httpx.Request
    ) -> None:
        try:
            await network
        except httpx.HTTPError as exc:
            logger.info("Network unavailable for %s, served from cache: %s", request.url, exc)

    # endregion


__all__ = [
    "Cache",
    "CacheStorage",
    "CacheInstallError",
    "NotificationCache",
    "cacheable",
    "clone_response",
]
