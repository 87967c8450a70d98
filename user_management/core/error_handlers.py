"""Centralized exception handlers for the user management service."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from user_management.core.exceptions import UserManagementError
from user_management.services.validation import collect_violations

logger = logging.getLogger(__name__)

_MALFORMED_BODY_ERRORS = {"json_invalid", "model_attributes_type", "dict_type", "model_type"}


def error_payload(message: str, details: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    payload: Dict[str, Any] = {"error": message}
    if details:
        payload["details"] = details
    return payload


def _describe_request_error(exc: RequestValidationError) -> Dict[str, Any]:
    errors = exc.errors()
    if any(
        error.get("type") in _MALFORMED_BODY_ERRORS or tuple(error.get("loc", ())) == ("body",)
        for error in errors
    ):
        return error_payload("Invalid request format")
    if errors and all(error.get("loc", ("",))[0] == "query" for error in errors):
        return error_payload("Invalid query parameters", collect_violations(errors))
    return error_payload("Validation failed", collect_violations(errors))


def register_exception_handlers(app: FastAPI) -> None:
    """Register FastAPI exception handlers that return a normalized JSON payload."""

    @app.exception_handler(UserManagementError)
    async def user_management_error_handler(
        request: Request, exc: UserManagementError
    ) -> JSONResponse:  # type: ignore[override]
        details = getattr(exc, "details", None)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_payload(exc.message, details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):  # type: ignore[override]
        message = exc.detail if isinstance(exc.detail, str) else "Request failed"
        response = JSONResponse(status_code=exc.status_code, content=error_payload(message))

        if exc.headers:
            for key, value in exc.headers.items():
                response.headers[key] = value

        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:  # type: ignore[override]
        payload = _describe_request_error(exc)
        logger.info(
            "Rejected %s %s: %s", request.method, request.url.path, payload["error"]
        )
        return JSONResponse(status_code=400, content=payload)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:  # type: ignore[override]
        logger.exception(
            "Unhandled exception while processing %s %s", request.method, request.url
        )
        return JSONResponse(status_code=500, content=error_payload("Internal server error"))


__all__ = ["error_payload", "register_exception_handlers"]
