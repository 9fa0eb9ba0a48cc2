"""Tests for push payload parsing and notification handling."""

import asyncio
import json

import httpx

from office_tracker.events import (
    InMemoryClients,
    InMemoryNotifications,
    NotificationClickEvent,
    PushEvent,
)
from office_tracker.offline_cache import CacheStorage
from office_tracker.push import PayloadShape, PushDispatch, parse_push_payload
from office_tracker.service_worker import ServiceWorker


def parse(data):
    return parse_push_payload(PushEvent(data).data)


class TestParsePushPayload:
    def test_flat_shape(self):
        message = parse(json.dumps({"title": "T", "body": "B", "data": {"url": "/x"}}))
        assert (message.title, message.body, message.url) == ("T", "B", "/x")
        assert message.shape is PayloadShape.FLAT

    def test_wrapped_shape(self):
        message = parse(json.dumps({"notification": {"title": "W", "body": "WB"}, "data": {"url": "/y"}}))
        assert (message.title, message.body, message.url) == ("W", "WB", "/y")
        assert message.shape is PayloadShape.WRAPPED

    def test_missing_payload_uses_defaults(self):
        message = parse(None)
        assert message.title == "Office Tracker Reminder"
        assert message.body == "Time to check your office attendance!"
        assert message.url == "/"
        assert message.shape is PayloadShape.DEFAULT

    def test_missing_url_defaults_to_root(self):
        assert parse(json.dumps({"title": "T", "body": "B"})).url == "/"

    def test_plain_text_becomes_body(self):
        message = parse("Badge in today")
        assert message.body == "Badge in today"
        assert message.title == "Office Tracker Reminder"

    def test_unexpected_json_uses_defaults(self):
        assert parse(json.dumps([1, 2, 3])).shape is PayloadShape.DEFAULT
        assert parse(json.dumps({"data": {"url": "/z"}})).url == "/z"


class TestPushDispatch:
    def test_push_then_click_navigates_to_payload_url(self):
        async def scenario():
            notifications, clients = InMemoryNotifications(), InMemoryClients()
            dispatch = PushDispatch(notifications, clients)

            push = PushEvent(json.dumps({"title": "T", "body": "B", "data": {"url": "/x"}}))
            dispatch.on_push(push)
            await push.settle()
            shown = notifications.shown[0]

            click = NotificationClickEvent(shown)
            dispatch.on_notification_click(click)
            await click.settle()
            return shown, clients

        shown, clients = asyncio.run(scenario())
        assert shown.title == "T"
        assert shown.icon == "/vite.svg"
        assert shown.closed
        assert [w.url for w in clients.windows] == ["/x"]

    def test_click_focuses_an_existing_window(self):
        async def scenario():
            notifications, clients = InMemoryNotifications(), InMemoryClients(urls=["/"])
            dispatch = PushDispatch(notifications, clients)
            push = PushEvent(None)
            dispatch.on_push(push)
            await push.settle()
            click = NotificationClickEvent(notifications.shown[0])
            dispatch.on_notification_click(click)
            await click.settle()
            return notifications, clients

        notifications, clients = asyncio.run(scenario())
        assert len(clients.windows) == 1
        assert clients.windows[0].focused
        assert notifications.get_notifications() == []


class SlowNotifications(InMemoryNotifications):
    async def show_notification(self, title, options):
        await asyncio.sleep(0.01)
        return await super().show_notification(title, options)


class TestWorkerKeepsAliveUntilDisplayed:
    def test_dispatch_returns_after_notification_is_shown(self):
        async def scenario():
            notifications, clients = SlowNotifications(), InMemoryClients()
            async with httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))) as client:
                worker = ServiceWorker(
                    caches=CacheStorage(),
                    client=client,
                    clients=clients,
                    notifications=notifications,
                    origin="https://tracker.example",
                )
                await worker.dispatch_push(json.dumps({"notification": {"title": "Hi"}}))
                shown = list(notifications.shown)
                await worker.dispatch_notification_click(shown[0])
                return shown, clients

        shown, clients = asyncio.run(scenario())
        assert [n.title for n in shown] == ["Hi"]
        assert clients.windows[0].url == "/"
