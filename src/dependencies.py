"""FastAPI dependencies for the shared per-process services."""

from __future__ import annotations

from typing import Optional

import structlog

from src.config import settings
from src.n8n.client import N8nClient, get_n8n_client
from src.notifications.email import ResendEmailSender
from src.notifications.queue import EmailQueue
from src.rate_limit import InMemoryRateLimiter, RateLimiter, RedisRateLimiter
from src.redis_client import get_redis_client

logger = structlog.get_logger()

_rate_limiter: Optional[RateLimiter] = None
_email_queue: Optional[EmailQueue] = None


def get_rate_limiter() -> RateLimiter:
    """Contact form rate limiter, backend chosen by RATE_LIMIT_BACKEND."""
    global _rate_limiter
    if _rate_limiter is None:
        if settings.rate_limit_backend == "redis":
            _rate_limiter = RedisRateLimiter(
                get_redis_client(),
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )
        else:
            _rate_limiter = InMemoryRateLimiter(
                max_requests=settings.rate_limit_max_requests,
                window_seconds=settings.rate_limit_window_seconds,
            )
        logger.info("rate_limiter_initialized", backend=settings.rate_limit_backend)
    return _rate_limiter


def get_email_queue() -> EmailQueue:
    """Process-wide contact email queue."""
    global _email_queue
    if _email_queue is None:
        sender = ResendEmailSender(
            api_key=settings.resend_api_key,
            to_email=settings.contact_email_to,
            from_email=settings.contact_email_from,
            subject=settings.contact_email_subject,
            api_url=settings.resend_api_url,
            timeout=settings.http_timeout_seconds,
            mask_ip=settings.environment == "production",
        )
        _email_queue = EmailQueue(sender)
    return _email_queue


def get_webhook_client() -> N8nClient:
    return get_n8n_client()
