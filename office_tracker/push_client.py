"""Web push delivery backed by pywebpush."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Protocol

from pywebpush import WebPushException, webpush

from .models import DeliveryOutcome, Subscription

logger = logging.getLogger(__name__)

# Gone / not found: the browser dropped the subscription.
# Forbidden: the subscription was created for a different VAPID key.
PERMANENT_STATUSES = {403, 404, 410}


class PushSender(Protocol):
    async def deliver(self, subscription: Subscription, payload: Dict[str, Any]) -> DeliveryOutcome: ...


def classify_status(status_code: Optional[int]) -> DeliveryOutcome:
    if status_code is not None and status_code in PERMANENT_STATUSES:
        return DeliveryOutcome.EXPIRED
    return DeliveryOutcome.FAILED


class WebPushSender:
    """Signs and sends one push message per subscription."""

    def __init__(self, private_key: str, subject: str, *, ttl: int = 86400, timeout: float = 10.0) -> None:
        self._private_key = private_key
        self._claims = {"sub": subject}
        self._ttl = ttl
        self._timeout = timeout

    async def deliver(self, subscription: Subscription, payload: Dict[str, Any]) -> DeliveryOutcome:
        try:
            # pywebpush is synchronous; keep the event loop free for other deliveries
            await asyncio.to_thread(
                webpush,
                subscription_info=subscription.to_dict(),
                data=json.dumps(payload),
                vapid_private_key=self._private_key,
                vapid_claims=dict(self._claims),
                ttl=self._ttl,
                timeout=self._timeout,
            )
        except WebPushException as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            outcome = classify_status(status_code)
            if outcome is DeliveryOutcome.FAILED:
                logger.warning(
                    "Push to %s failed (status %s): %s", subscription.endpoint, status_code, exc
                )
            return outcome
        return DeliveryOutcome.DELIVERED


__all__ = ["PERMANENT_STATUSES", "PushSender", "WebPushSender", "classify_status"]
