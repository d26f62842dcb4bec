"""Device repository helpers for push token storage."""
from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from ..models.device import Device


async def get_push_token(session: AsyncSession, user_id: str) -> str | None:
    """Return the stored Expo push token for a user, if any."""

    device = await session.get(Device, user_id)
    if device is None:
        return None
    return device.expo_push_token or None


async def upsert_push_token(session: AsyncSession, user_id: str, token: str) -> Device:
    device = await session.get(Device, user_id)
    if device is None:
        device = Device(user_id=user_id, expo_push_token=token)
        session.add(device)
    else:
        device.expo_push_token = token
    await session.flush()
    return device


async def clear_push_token(session: AsyncSession, user_id: str) -> bool:
    """Forget a user's push token. Returns False when nothing was stored."""

    device = await session.get(Device, user_id)
    if device is None or not device.expo_push_token:
        return False
    device.expo_push_token = None
    await session.flush()
    return True
