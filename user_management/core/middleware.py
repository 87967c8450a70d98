"""HTTP middleware: request logging and CORS."""
from __future__ import annotations

import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from user_management.core.config import Settings, settings

logger = logging.getLogger("user_management.requests")

CORS_METHODS = ["POST", "OPTIONS", "GET", "PUT", "DELETE"]
CORS_HEADERS = [
    "Content-Type",
    "Content-Length",
    "Accept-Encoding",
    "Authorization",
    "Accept",
    "Origin",
    "Cache-Control",
    "X-Requested-With",
]


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def register_middleware(app: FastAPI, config: Settings = settings) -> None:
    # Browsers reject credentials together with a wildcard origin.
    allow_credentials = "*" not in config.CORS_ORIGINS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=allow_credentials,
        allow_methods=CORS_METHODS,
        allow_headers=CORS_HEADERS,
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.error(
                "%s %s -> unhandled error (%.1f ms) client=%s agent=%s",
                request.method,
                request.url.path,
                (time.perf_counter() - start) * 1000,
                _client_ip(request),
                request.headers.get("user-agent", "unknown"),
            )
            raise
        duration_ms = (time.perf_counter() - start) * 1000

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "%s %s -> %s (%.1f ms) client=%s agent=%s",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
            _client_ip(request),
            request.headers.get("user-agent", "unknown"),
        )
        return response


__all__ = ["CORS_METHODS", "register_middleware"]
