"""Bearer JWT authentication for client-facing endpoints.

Tokens are issued by the main account service and carry ``userId`` (or the
standard ``sub``) plus an optional ``isAdmin`` flag.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

import jwt
from fastapi import Header

from .config import settings

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Authentication or authorization failure rendered as an error envelope."""

    def __init__(self, code: str, message: str, status_code: int = 401) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    user_id: str
    is_admin: bool = False


def decode_user(token: str) -> AuthenticatedUser:
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret.get_secret_value(),
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("INVALID_TOKEN", "Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected bearer token: %s", exc)
        raise AuthError("INVALID_TOKEN", "Invalid token") from exc

    user_id = payload.get("userId") or payload.get("sub")
    if not user_id:
        raise AuthError("INVALID_TOKEN", "Token has no user id")
    return AuthenticatedUser(user_id=str(user_id), is_admin=bool(payload.get("isAdmin", False)))


async def require_user(authorization: str | None = Header(default=None)) -> AuthenticatedUser:
    """FastAPI dependency resolving the caller from ``Authorization: Bearer``."""

    if not authorization or not authorization.startswith("Bearer "):
        raise AuthError("UNAUTHORIZED", "Unauthorized")
    return decode_user(authorization[len("Bearer "):].strip())


def ensure_self_or_admin(user: AuthenticatedUser, user_id: str) -> None:
    if user.user_id != user_id and not user.is_admin:
        raise AuthError("FORBIDDEN", "Not allowed to act for another user", status_code=403)


def ensure_admin(user: AuthenticatedUser) -> None:
    if not user.is_admin:
        raise AuthError("FORBIDDEN", "Admin privileges required", status_code=403)
