"""
Global exception handlers. Every error leaves the API in one envelope::

    {"error": {"code": "...", "message": "...", "details": ...}}

Stack traces never reach the client; ``SYSTEM_INTERNAL_ERROR`` carries the
exception type and message only when ``DEBUG`` is on.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

from library_staff.core.config import settings
from library_staff.domain.errors import AccountLocked, StaffDomainError

logger = logging.getLogger(__name__)

_STATUS_CODES = {
    400: "BUSINESS_RULE_VIOLATION",
    401: "AUTH_UNAUTHENTICATED",
    403: "AUTHZ_PERMISSION_DENIED",
    404: "RESOURCE_NOT_FOUND",
    405: "SYSTEM_METHOD_NOT_ALLOWED",
    409: "RESOURCE_CONFLICT",
    422: "VALIDATION_ERROR",
    429: "SYSTEM_RATE_LIMIT_EXCEEDED",
    502: "SYSTEM_EXTERNAL_SERVICE_ERROR",
    503: "SYSTEM_SERVICE_UNAVAILABLE",
    504: "SYSTEM_TIMEOUT",
}


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body: dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content={"error": body}, headers=headers)


async def _domain_error_handler(_request: Request, exc: StaffDomainError) -> JSONResponse:
    headers = None
    if isinstance(exc, AccountLocked):
        headers = {"Retry-After": str(exc.retry_after_seconds)}
    return error_response(exc.status_code, exc.code, exc.message, exc.details, headers)


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    code = _STATUS_CODES.get(exc.status_code, "SYSTEM_INTERNAL_ERROR")
    return error_response(
        exc.status_code, code, str(exc.detail), headers=getattr(exc, "headers", None)
    )


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"),
            "reason": err.get("type"),
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return error_response(422, "VALIDATION_ERROR", "The given data was invalid", details)


async def _rate_limit_handler(_request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded: %s", exc.detail)
    return error_response(
        429,
        "SYSTEM_RATE_LIMIT_EXCEEDED",
        "Too many requests. Please wait and try again",
        headers={"Retry-After": "60"},
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return error_response(409, "RESOURCE_CONFLICT", "Database constraint violation")


def _internal_error(exc: Exception) -> JSONResponse:
    details = None
    if settings.DEBUG:
        details = {"exception": type(exc).__name__, "message": str(exc)}
    return error_response(500, "SYSTEM_INTERNAL_ERROR", "Internal server error", details)


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return _internal_error(exc)


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return _internal_error(exc)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(StaffDomainError, _domain_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RateLimitExceeded, _rate_limit_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
