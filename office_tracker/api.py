"""FastAPI application exposing the Office Tracker push backend."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, time, timezone
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware

from .config import Settings, load_settings
from .db import Database
from .models import Subscription
from .push_client import PushSender, WebPushSender
from .registry import FcmTokenStore, SubscriptionRegistry
from .reminder import ReminderJob, run_daily

logger = logging.getLogger(__name__)


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request: body must be JSON") from exc


def create_app(
    settings: Optional[Settings] = None,
    *,
    database: Optional[Database] = None,
    sender: Optional[PushSender] = None,
) -> FastAPI:
    settings = settings or load_settings()
    database = database or Database(settings.database_path)
    registry = SubscriptionRegistry(database)
    fcm_tokens = FcmTokenStore(database)
    if sender is None and settings.push_enabled:
        sender = WebPushSender(settings.vapid_private_key, settings.vapid_subject)
    job = ReminderJob(registry, sender, app_url=settings.app_url, fcm_tokens=fcm_tokens)

    def require_api_key(x_api_key: Optional[str] = Header(None)) -> None:
        if not settings.api_key:
            raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="API key is not configured")
        if not x_api_key or x_api_key != settings.api_key:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid API key")

    app = FastAPI(title="Office Tracker API", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.registry = registry
    app.state.reminder_job = job
    app.state.scheduler = None

    @app.on_event("startup")
    async def startup_event() -> None:  # pragma: no cover - io bound
        if settings.reminder_schedule_enabled:
            at = time(settings.reminder_hour_utc, settings.reminder_minute_utc)
            app.state.scheduler = asyncio.create_task(run_daily(job, at))
            logger.info("Daily reminder scheduled at %s UTC", at.strftime("%H:%M"))

    @app.on_event("shutdown")
    async def shutdown_event() -> None:  # pragma: no cover - io bound
        task = app.state.scheduler
        if task is not None:
            task.cancel()

    @app.get("/healthz")
    async def healthcheck() -> Dict[str, str]:
        """Lightweight readiness check for platform monitors."""

        return {"status": "ok"}

    @app.get("/api/test")
    async def test_function() -> Dict[str, str]:
        return {
            "message": "Office Tracker API is working!",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.post("/api/subscriptions")
    async def save_subscription(request: Request) -> Dict[str, str]:
        payload = await _json_body(request)
        try:
            subscription = Subscription.from_dict(payload)
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Bad Request: subscription endpoint is required",
            ) from exc
        registry.save(subscription)
        logger.info("Saved subscription %s", subscription.endpoint)
        return {"message": "Subscription saved successfully."}

    @app.delete("/api/subscriptions")
    async def delete_subscription(request: Request) -> Dict[str, str]:
        payload = await _json_body(request)
        endpoint = payload.get("endpoint") if isinstance(payload, dict) else None
        if not endpoint or not isinstance(endpoint, str):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Bad Request: subscription endpoint is required",
            )
        if not registry.delete(endpoint):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Subscription not found")
        return {"message": "Subscription deleted."}

    @app.get("/api/vapid-public-key")
    async def vapid_public_key() -> Dict[str, str]:
        if not settings.vapid_public_key:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Push is not configured")
        return {"publicKey": settings.vapid_public_key}

    @app.post("/api/fcm-token")
    async def save_fcm_token(request: Request) -> Dict[str, str]:
        payload = await _json_body(request)
        token = payload.get("token") if isinstance(payload, dict) else None
        if not token or not isinstance(token, str):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Bad Request: token is required")
        fcm_tokens.set(token)
        return {"message": "Token saved successfully."}

    @app.post("/api/notifications")
    async def receive_notification(request: Request) -> Dict[str, str]:
        payload = await _json_body(request)
        logger.info("Received notification: %s", payload)
        return {"message": "Notification received."}

    @app.post("/api/reminders/send", dependencies=[Depends(require_api_key)])
    async def send_reminder() -> Dict[str, Any]:
        report = await job.run()
        return report.to_dict()

    return app


__all__ = ["create_app"]
