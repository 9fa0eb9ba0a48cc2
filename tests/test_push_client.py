"""Tests for web push delivery classification."""

import asyncio
import json
from types import SimpleNamespace

import pytest
from pywebpush import WebPushException

from office_tracker import push_client
from office_tracker.models import DeliveryOutcome, Subscription
from office_tracker.push_client import WebPushSender, classify_status

SUBSCRIPTION = Subscription.from_dict(
    {"endpoint": "https://push.example/abc", "keys": {"p256dh": "key", "auth": "secret"}}
)


class TestClassifyStatus:
    @pytest.mark.parametrize("status", [403, 404, 410])
    def test_permanent(self, status):
        assert classify_status(status) is DeliveryOutcome.EXPIRED

    @pytest.mark.parametrize("status", [None, 400, 429, 500, 503])
    def test_transient(self, status):
        assert classify_status(status) is DeliveryOutcome.FAILED


class TestWebPushSender:
    def test_successful_delivery(self, monkeypatch):
        calls = []
        monkeypatch.setattr(push_client, "webpush", lambda **kwargs: calls.append(kwargs))
        sender = WebPushSender("private-key", "mailto:me@example.com")

        outcome = asyncio.run(sender.deliver(SUBSCRIPTION, {"title": "T"}))

        assert outcome is DeliveryOutcome.DELIVERED
        assert calls[0]["subscription_info"]["endpoint"] == "https://push.example/abc"
        assert json.loads(calls[0]["data"]) == {"title": "T"}
        assert calls[0]["vapid_claims"] == {"sub": "mailto:me@example.com"}

    @pytest.mark.parametrize(
        "status, expected",
        [(410, DeliveryOutcome.EXPIRED), (404, DeliveryOutcome.EXPIRED), (500, DeliveryOutcome.FAILED)],
    )
    def test_push_service_errors(self, monkeypatch, status, expected):
        def fail(**kwargs):
            raise WebPushException("push failed", response=SimpleNamespace(status_code=status, text="err"))

        monkeypatch.setattr(push_client, "webpush", fail)
        sender = WebPushSender("private-key", "mailto:me@example.com")
        assert asyncio.run(sender.deliver(SUBSCRIPTION, {})) is expected

    def test_error_without_response_is_transient(self, monkeypatch):
        def fail(**kwargs):
            raise WebPushException("no route")

        monkeypatch.setattr(push_client, "webpush", fail)
        sender = WebPushSender("private-key", "mailto:me@example.com")
        assert asyncio.run(sender.deliver(SUBSCRIPTION, {})) is DeliveryOutcome.FAILED
