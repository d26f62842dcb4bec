"""Expo push notification delivery.

Delivery is best-effort: a user without a stored device token is skipped
silently, and transport failures are logged rather than raised.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..db.session import SessionLocal
from ..repositories import devices as devices_repo

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PushNotification:
    title: str
    body: str
    data: dict[str, Any] | None = field(default=None)


def build_payload(push_token: str, notification: PushNotification) -> dict[str, Any]:
    return {
        "to": push_token,
        "title": notification.title,
        "body": notification.body,
        "data": notification.data,
        "sound": "default",
        "badge": 1,
    }


async def deliver(
    push_token: str,
    notification: PushNotification,
    *,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """POST one notification to the Expo push endpoint."""

    payload = build_payload(push_token, notification)
    try:
        if client is None:
            async with httpx.AsyncClient(timeout=settings.push_timeout_seconds) as owned:
                response = await owned.post(settings.expo_push_url, json=payload)
        else:
            response = await client.post(settings.expo_push_url, json=payload)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        logger.warning("Push delivery failed: %s", exc)
        return False
    return True


async def send_push_notification(
    session: AsyncSession,
    user_id: str,
    notification: PushNotification,
    *,
    client: httpx.AsyncClient | None = None,
) -> bool:
    """Deliver a notification to the device last registered by ``user_id``."""

    push_token = await devices_repo.get_push_token(session, user_id)
    if not push_token:
        logger.debug("No push token stored for user %s; skipping", user_id)
        return False
    return await deliver(push_token, notification, client=client)


async def send_in_background(user_id: str, notification: PushNotification) -> None:
    """Background-task entry point that owns its own database session."""

    async with SessionLocal() as session:
        await send_push_notification(session, user_id, notification)
