"""Contact form route: validate, rate-limit, queue an email."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.api.cors import preflight
from src.dependencies import get_email_queue, get_rate_limiter
from src.errors import AppError, InternalError, InvalidInputError, RateLimitError
from src.notifications.queue import EmailQueue
from src.rate_limit import RateLimiter
from src.schemas.contact import ContactFormIn, ContactSubmitted, EmailJob

logger = structlog.get_logger()

router = APIRouter(prefix="/api/contact", tags=["contact"])


def caller_ip(request: Request) -> str:
    """Best-effort client address: proxy headers first, then the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client:
        return request.client.host
    return "unknown"


def field_errors(exc: ValidationError) -> list[dict]:
    return [
        {
            "field": ".".join(str(part) for part in err["loc"]) or "body",
            "message": err["msg"],
        }
        for err in exc.errors()
    ]


@router.post("")
async def submit_contact(
    request: Request,
    limiter: RateLimiter = Depends(get_rate_limiter),
    queue: EmailQueue = Depends(get_email_queue),
) -> ContactSubmitted:
    """Accept a contact form submission.

    Returns as soon as the email job is queued; delivery happens in the
    background and its outcome is only logged.
    """
    try:
        ip = caller_ip(request)
        if not await limiter.check(ip):
            raise RateLimitError()

        try:
            body = json.loads(await request.body())
        except ValueError:
            raise InvalidInputError(
                details=[{"field": "body", "message": "Request body must be valid JSON"}]
            )

        try:
            form = ContactFormIn.model_validate(body)
        except ValidationError as e:
            raise InvalidInputError(details=field_errors(e))

        clean = form.sanitized()
        queue.enqueue(EmailJob(data=clean, caller_ip=ip))

        logger.info(
            "contact_form_submitted",
            name=clean.name,
            email=clean.email,
            company=clean.company,
        )
        return ContactSubmitted(timestamp=datetime.now(timezone.utc).isoformat())

    except AppError:
        raise
    except Exception as e:
        logger.error("contact_submit_failed", error=str(e))
        raise InternalError()


@router.api_route("", methods=["GET", "PUT", "DELETE"])
async def contact_method_not_allowed():
    return JSONResponse(
        {
            "success": False,
            "error": "Method not allowed. Use POST to submit the contact form.",
        },
        status_code=405,
        headers={"Allow": "POST, OPTIONS"},
    )


@router.options("")
async def contact_preflight():
    return preflight()
