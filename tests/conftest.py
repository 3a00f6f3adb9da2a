"""Test fixtures and configuration."""

import os

# Required settings must exist before anything imports src.config
os.environ.setdefault("RESEND_API_KEY", "re_test_key")
os.environ.setdefault("CONTACT_EMAIL_TO", "owner@tesseract.test")
os.environ.setdefault("GOOGLE_CLIENT_ID", "test-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "test-client-secret")
os.environ.setdefault("N8N_WEBHOOK_URL", "https://n8n.test/webhook/chat")

from datetime import date
from unittest.mock import AsyncMock

import httpx
import pytest

from src.dependencies import get_email_queue, get_rate_limiter, get_webhook_client
from src.main import app
from src.n8n.client import N8nClient
from src.notifications.queue import EmailQueue
from src.rate_limit import InMemoryRateLimiter
from src.schemas.contact import EmailJob
from src.wizard.engine import BookingWizard

# A Wednesday; the following days are bookable weekdays
TODAY = date(2026, 10, 21)


class RecordingSender:
    """EmailSender that records jobs and fails on demand."""

    def __init__(self, fail_on: tuple[str, ...] = ()):
        self.sent: list[EmailJob] = []
        self.fail_on = fail_on

    async def send(self, job: EmailJob) -> None:
        self.sent.append(job)
        if job.data.name in self.fail_on:
            raise RuntimeError(f"send failed for {job.data.name}")


class WebhookStub:
    """httpx.MockTransport handler returning queued responses per URL."""

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def on(self, url: str, response) -> None:
        """Register an httpx.Response, or an exception to raise, for ``url``."""
        self.routes[url] = response

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        outcome = self.routes.get(str(request.url))
        if outcome is None:
            return httpx.Response(404, json={"error": "no route"})
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def booking_client():
    """Mock BookingApiClient with a healthy default behaviour."""
    client = AsyncMock()
    client.check_availability = AsyncMock(return_value={"success": True, "slots": {}})
    client.create_booking = AsyncMock(return_value={"success": True})
    client.send_followup = AsyncMock(return_value={"success": True})
    return client


@pytest.fixture
def wizard(booking_client):
    return BookingWizard(booking_client, today=lambda: TODAY)


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def email_queue(sender):
    return EmailQueue(sender)


@pytest.fixture
def rate_limiter():
    return InMemoryRateLimiter(max_requests=5, window_seconds=900)


@pytest.fixture
def webhook_stub():
    return WebhookStub()


@pytest.fixture
def api(email_queue, rate_limiter, webhook_stub):
    """ASGI httpx client with per-test queue, limiter and stubbed n8n."""
    n8n = N8nClient(timeout=5.0, transport=httpx.MockTransport(webhook_stub))
    app.dependency_overrides[get_email_queue] = lambda: email_queue
    app.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    app.dependency_overrides[get_webhook_client] = lambda: n8n

    client = httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    )
    yield client
    app.dependency_overrides.clear()
