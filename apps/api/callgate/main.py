"""FastAPI application issuing Agora RTC tokens and relaying push notifications."""
from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response

from .core.config import settings
from .core.security import AuthError
from .db.session import create_schema
from .routers import push as push_router
from .routers import rtc as rtc_router
from .schemas.errors import ErrorDetail, ErrorResponse
from .services import rtc as rtc_service
from .services.access_token import TokenError

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    rtc_service.check_configuration()
    await create_schema()
    logger.info("callgate started (env=%s)", settings.app_env)
    yield


app = FastAPI(title="Callgate API", version="0.1.0", lifespan=lifespan)

if settings.cors_allow_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.exception_handler(AuthError)
async def auth_error_handler(_request: Request, exc: AuthError) -> JSONResponse:
    body = ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message))
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())


app.add_exception_handler(TokenError, rtc_router.token_error_handler)
app.include_router(rtc_router.router, prefix="/api/rtc", tags=["rtc"])
app.include_router(push_router.router, prefix="/api/push", tags=["push"])


@app.get("/api/health", tags=["meta"])
async def health() -> dict[str, object]:
    """Liveness probe that also reports whether token issuance is configured."""

    return {"status": "ok", "rtc_configured": settings.rtc_configured}


@app.head("/api/health", tags=["meta"])
async def health_head() -> Response:
    """Allow HEAD for uptime monitors that only need the status code."""

    return Response(status_code=200)
