"""Tests for the daily reminder job."""

import asyncio
import json
from datetime import datetime, time, timedelta, timezone

import pytest

from office_tracker.db import Database
from office_tracker.events import PushEvent
from office_tracker.models import DeliveryOutcome, Subscription
from office_tracker.push import PayloadShape, parse_push_payload
from office_tracker.registry import FcmTokenStore, SubscriptionRegistry
from office_tracker.reminder import ReminderJob, next_run_after, reminder_payload


class FakeSender:
    def __init__(self, outcomes, delays=None):
        self.outcomes = outcomes
        self.delays = delays or {}
        self.calls = []

    async def deliver(self, subscription, payload):
        self.calls.append((subscription.endpoint, payload))
        await asyncio.sleep(self.delays.get(subscription.endpoint, 0))
        outcome = self.outcomes[subscription.endpoint]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def subscription(endpoint):
    return Subscription.from_dict({"endpoint": endpoint, "keys": {"p256dh": "p", "auth": "a"}})


@pytest.fixture
def registry(tmp_path):
    registry = SubscriptionRegistry(Database(tmp_path / "reminders.db"))
    for endpoint in ["https://push/a", "https://push/b", "https://push/c"]:
        registry.save(subscription(endpoint))
    return registry


def endpoints(registry):
    return sorted(s.endpoint for s in registry.list_all())


class TestReminderJob:
    @pytest.mark.parametrize(
        "delays",
        [
            {"https://push/a": 0.02, "https://push/b": 0.0, "https://push/c": 0.01},
            {"https://push/a": 0.0, "https://push/b": 0.02, "https://push/c": 0.01},
        ],
    )
    def test_only_expired_subscription_is_deleted(self, registry, delays):
        sender = FakeSender(
            {
                "https://push/a": DeliveryOutcome.DELIVERED,
                "https://push/b": DeliveryOutcome.EXPIRED,
                "https://push/c": DeliveryOutcome.DELIVERED,
            },
            delays,
        )
        report = asyncio.run(ReminderJob(registry, sender).run())

        assert endpoints(registry) == ["https://push/a", "https://push/c"]
        assert (report.delivered, report.pruned, report.failed) == (2, 1, 0)
        assert report.pruned_endpoints == ["https://push/b"]

    def test_transient_failures_are_kept_and_not_retried(self, registry):
        sender = FakeSender(
            {
                "https://push/a": DeliveryOutcome.FAILED,
                "https://push/b": ConnectionError("network down"),
                "https://push/c": DeliveryOutcome.DELIVERED,
            }
        )
        report = asyncio.run(ReminderJob(registry, sender).run())

        assert endpoints(registry) == ["https://push/a", "https://push/b", "https://push/c"]
        assert report.failed == 2
        assert report.delivered == 1
        assert len(sender.calls) == 3

    def test_payload_uses_flat_shape(self, registry):
        sender = FakeSender({e: DeliveryOutcome.DELIVERED for e in endpoints(registry)})
        asyncio.run(ReminderJob(registry, sender, app_url="https://tracker.example").run())

        payload = sender.calls[0][1]
        assert payload == reminder_payload("https://tracker.example")
        message = parse_push_payload(PushEvent(json.dumps(payload)).data)
        assert message.shape is PayloadShape.FLAT
        assert message.url == "https://tracker.example"

    def test_disabled_sender_skips(self, registry):
        report = asyncio.run(ReminderJob(registry, None).run())
        assert report.status == "skipped"
        assert len(endpoints(registry)) == 3

    def test_no_subscriptions(self, tmp_path):
        empty = SubscriptionRegistry(Database(tmp_path / "empty.db"))
        report = asyncio.run(ReminderJob(empty, FakeSender({})).run())
        assert report.to_dict() == {
            "status": "ok",
            "delivered": 0,
            "pruned": 0,
            "failed": 0,
            "fcm_token": False,
        }

    def test_reports_whether_an_fcm_token_is_stored(self, tmp_path):
        database = Database(tmp_path / "token.db")
        tokens = FcmTokenStore(database)
        job = ReminderJob(SubscriptionRegistry(database), None, fcm_tokens=tokens)
        assert asyncio.run(job.run()).fcm_token is False

        tokens.set("device-token")
        report = asyncio.run(job.run())
        assert report.status == "skipped"
        assert report.fcm_token is True


class TestNextRunAfter:
    def test_later_today(self):
        now = datetime(2024, 3, 4, 10, 0, tzinfo=timezone.utc)
        assert next_run_after(now, time(16, 0)) == datetime(2024, 3, 4, 16, 0, tzinfo=timezone.utc)

    def test_exactly_at_time_moves_to_tomorrow(self):
        now = datetime(2024, 3, 4, 16, 0, tzinfo=timezone.utc)
        assert next_run_after(now, time(16, 0)) == datetime(2024, 3, 5, 16, 0, tzinfo=timezone.utc)

    def test_other_timezones_are_converted(self):
        chicago_morning = datetime(2024, 3, 4, 11, 0, tzinfo=timezone(timedelta(hours=-6)))
        assert next_run_after(chicago_morning, time(16, 0)) == datetime(
            2024, 3, 5, 16, 0, tzinfo=timezone.utc
        )
