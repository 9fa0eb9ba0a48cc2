"""Daily reminder: push a nudge to every subscription and prune dead ones."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional

from .contract import DEFAULT_NOTIFICATION_TITLE, NOTIFICATION_ICON, REMINDER_BODY
from .models import DeliveryOutcome, Subscription
from .push_client import PushSender
from .registry import FcmTokenStore, SubscriptionRegistry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ReminderReport:
    status: str
    delivered: int = 0
    pruned: int = 0
    failed: int = 0
    fcm_token: bool = False
    pruned_endpoints: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "delivered": self.delivered,
            "pruned": self.pruned,
            "failed": self.failed,
            "fcm_token": self.fcm_token,
        }


def reminder_payload(app_url: str) -> Dict[str, Any]:
    return {
        "title": DEFAULT_NOTIFICATION_TITLE,
        "body": REMINDER_BODY,
        "icon": NOTIFICATION_ICON,
        "data": {"url": app_url},
    }


class ReminderJob:
    """Sends the reminder to all subscriptions concurrently.

    Deliveries are independent: a failure for one subscriber never affects
    the others. Only permanent failures lead to deletion; nothing is retried.
    """

    def __init__(
        self,
        registry: SubscriptionRegistry,
        sender: Optional[PushSender],
        *,
        app_url: str = "/",
        fcm_tokens: Optional[FcmTokenStore] = None,
    ) -> None:
        self.registry = registry
        self.sender = sender
        self.app_url = app_url
        self.fcm_tokens = fcm_tokens

    async def run(self) -> ReminderReport:
        logger.info("Daily reminder triggered at %s", datetime.now(timezone.utc).isoformat())
        has_token = self.fcm_tokens is not None and self.fcm_tokens.get() is not None
        logger.info("FCM token: %s", "Present" if has_token else "Missing")

        sender = self.sender
        if sender is None:
            logger.warning("Push delivery is not configured; skipping reminder")
            return ReminderReport(status="skipped", fcm_token=has_token)

        subscriptions = self.registry.list_all()
        if not subscriptions:
            logger.info("No subscriptions found, skipping notification")
            return ReminderReport(status="ok", fcm_token=has_token)

        payload = reminder_payload(self.app_url)
        results = await asyncio.gather(
            *(self._deliver(sender, subscription, payload) for subscription in subscriptions),
            return_exceptions=True,
        )

        report = ReminderReport(status="ok", fcm_token=has_token)
        for subscription, result in zip(subscriptions, results):
            if isinstance(result, BaseException):
                logger.error("Push to %s raised: %s", subscription.endpoint, result)
                report.failed += 1
            elif result is DeliveryOutcome.EXPIRED:
                report.pruned += 1
                report.pruned_endpoints.append(subscription.endpoint)
            elif result is DeliveryOutcome.DELIVERED:
                report.delivered += 1
            else:
                report.failed += 1
        logger.info(
            "Reminder sent: %s delivered, %s pruned, %s failed",
            report.delivered,
            report.pruned,
            report.failed,
        )
        return report

    async def _deliver(
        self, sender: PushSender, subscription: Subscription, payload: Dict[str, Any]
    ) -> DeliveryOutcome:
        outcome = await sender.deliver(subscription, payload)
        if outcome is DeliveryOutcome.EXPIRED:
            self.registry.delete(subscription.endpoint)
            logger.info("Deleted expired subscription %s", subscription.endpoint)
        return outcome


def next_run_after(now: datetime, at: time) -> datetime:
    """The first UTC moment strictly after ``now`` whose clock reads ``at``."""

    now = now.astimezone(timezone.utc)
    candidate = datetime.combine(now.date(), at, tzinfo=timezone.utc)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


async def run_daily(
    job: ReminderJob,
    at: time,
    *,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> None:
    while True:
        now = clock()
        delay = (next_run_after(now, at) - now).total_seconds()
        logger.debug("Next reminder in %.0f seconds", delay)
        await asyncio.sleep(delay)
        try:
            await job.run()
        except Exception as exc:  # noqa: BLE001
            logger.error("Daily reminder failed: %s", exc)


__all__ = ["ReminderJob", "ReminderReport", "next_run_after", "reminder_payload", "run_daily"]
