"""RTC token issuance endpoints."""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import JSONResponse

from ..core.config import settings
from ..core.security import AuthenticatedUser, ensure_admin, require_user
from ..schemas import rtc as schemas
from ..schemas.errors import ErrorDetail, ErrorResponse
from ..services import access_token
from ..services import rtc as rtc_service

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_user)])


def _to_response(token: rtc_service.RtcToken) -> schemas.RtcTokenResponse:
    return schemas.RtcTokenResponse(
        token=token.token,
        app_id=token.app_id,
        channel_name=token.channel_name,
        user_id=token.user_id,
        issued_at=token.issued_at,
        expires_at=token.expires_at,
        expires_in=token.expires_in,
    )


async def token_error_handler(request: Request, exc: access_token.TokenError) -> JSONResponse:
    """Render token failures in the shared error envelope."""

    if isinstance(exc, access_token.MissingCredentials):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        message = "Agora App ID or App Certificate is not configured."
    else:
        status_code = status.HTTP_400_BAD_REQUEST
        message = str(exc)
    logger.warning("RTC token request to %s rejected: %s", request.url.path, exc.code)
    body = ErrorResponse(error=ErrorDetail(code=exc.code, message=message))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@router.post("/token", response_model=schemas.RtcTokenResponse)
async def create_rtc_token(payload: schemas.RtcTokenRequest) -> schemas.RtcTokenResponse:
    """Return a channel join token for the Agora RTC backend."""

    token = rtc_service.issue_token(payload.channel_name, payload.user_id, payload.ttl_seconds)
    return _to_response(token)


@router.get("/token", response_model=schemas.RtcTokenResponse)
async def get_rtc_token(
    channel_name: str = Query(default="", alias="channelName"),
    uid: str = Query(default=""),
) -> schemas.RtcTokenResponse:
    """Query-string variant used by the mobile client."""

    token = rtc_service.issue_token(channel_name.strip(), uid)
    return _to_response(token)


@router.post("/token/inspect", response_model=schemas.TokenInspectResponse)
async def inspect_rtc_token(
    payload: schemas.TokenInspectRequest,
    user: AuthenticatedUser = Depends(require_user),
) -> schemas.TokenInspectResponse:
    """Decode the plaintext framing of a token for debugging (admins only)."""

    if not settings.rtc_inspect_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Not Found")
    ensure_admin(user)

    decoded = access_token.decode_token(payload.token, app_id_length=payload.app_id_length)
    return schemas.TokenInspectResponse(
        version=decoded.version,
        app_id=decoded.app_id,
        signature=decoded.signature_hex,
        salt=decoded.salt,
        issued_at=decoded.issued_at,
        expires_at=decoded.expires_at,
        service_type=decoded.service.service_type,
        channel_name=decoded.service.channel_name.decode("utf-8", errors="replace"),
        user_id=decoded.user_id,
        privileges=[
            schemas.PrivilegeOut(kind=p.kind, expires_at=p.expires_at) for p in decoded.service.privileges
        ],
    )
