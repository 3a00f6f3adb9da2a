"""Application error taxonomy and the FastAPI handler that renders it."""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import Request
from fastapi.responses import JSONResponse

logger = structlog.get_logger()


class AppError(Exception):
    """Base error carrying an HTTP status and a client-safe message."""

    status_code: int = 500
    message: str = "Internal server error. Please try again later."

    def __init__(self, message: Optional[str] = None, details: Optional[list[dict]] = None):
        self.message = message or self.message
        self.details = details
        super().__init__(self.message)


class InvalidInputError(AppError):
    """Client-correctable input, itemized per field."""

    status_code = 400
    message = "Invalid input data"


class RateLimitError(AppError):
    status_code = 429
    message = "Too many requests. Please try again later."


class UpstreamError(AppError):
    """External service answered non-2xx, with garbage, or not at all."""

    status_code = 502
    message = "Upstream service error"

    def __init__(
        self,
        message: Optional[str] = None,
        upstream_status: Optional[int] = None,
        details: Optional[list[dict]] = None,
    ):
        super().__init__(message, details)
        self.upstream_status = upstream_status


class UpstreamTimeoutError(UpstreamError):
    status_code = 504
    message = "Request timed out. Please try again."


class InternalError(AppError):
    status_code = 500


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render AppError as {success: false, error, details?}."""
    if exc.status_code >= 500:
        logger.error(
            "request_failed",
            path=request.url.path,
            status=exc.status_code,
            error=str(exc),
        )
    body: dict = {"success": False, "error": exc.message}
    if exc.details:
        body["details"] = exc.details
    return JSONResponse(body, status_code=exc.status_code)
