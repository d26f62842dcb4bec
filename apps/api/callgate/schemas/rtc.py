"""Data contracts for RTC endpoints."""
from __future__ import annotations

from pydantic import BaseModel, Field


class RtcTokenRequest(BaseModel):
    channel_name: str = Field(..., description="Channel the client will join")
    user_id: int | str = Field(..., description="Numeric Agora uid (0-4294967295)")
    ttl_seconds: int | None = Field(default=None, description="Seconds until the join privilege expires")


class RtcTokenResponse(BaseModel):
    token: str = Field(..., description="Base64 Agora 006 access token")
    app_id: str
    channel_name: str
    user_id: int
    issued_at: int
    expires_at: int
    expires_in: int = Field(..., ge=0, description="Seconds until expiration")


class TokenInspectRequest(BaseModel):
    token: str
    app_id_length: int = Field(default=32, ge=1)


class PrivilegeOut(BaseModel):
    kind: int
    expires_at: int


class TokenInspectResponse(BaseModel):
    version: str
    app_id: str
    signature: str
    salt: int
    issued_at: int
    expires_at: int
    service_type: int
    channel_name: str
    user_id: int
    privileges: list[PrivilegeOut]

