"""Schemas for push notification endpoints."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class DeviceRegistration(BaseModel):
    expo_push_token: str = Field(..., min_length=1, description="ExponentPushToken[...] from the mobile client")


class DeviceResponse(BaseModel):
    user_id: str
    registered: bool


class PushRequest(BaseModel):
    title: str
    body: str
    data: dict[str, Any] | None = None


class PushAccepted(BaseModel):
    status: str = "queued"
