"""Tests for the booking proxy routes."""

import json

import httpx
import pytest

from src.config import settings
from src.schemas.booking import DEFAULT_SLOTS

AVAILABILITY = {"date": "2026-10-26T15:00:00.000Z", "meetingType": "discovery", "timezone": "America/Chicago"}

BOOKING = {
    "currentStep": 3,
    "meetingType": "technical",
    "contactInfo": {
        "name": "Jo Lee",
        "email": "jo@x.com",
        "company": "Acme Co",
        "role": "CTO",
        "budget": "",
        "challenge": "We need to automate our invoice intake pipeline.",
    },
    "selectedDate": "2026-10-26",
    "selectedTime": "10:00 AM",
    "timezone": "America/Chicago",
}


def default_times(body: dict, key: str = "2026-10-26") -> list[str]:
    return [slot["time"] for slot in body["slots"][key]]


class TestAvailability:
    @pytest.mark.asyncio
    async def test_passes_through_webhook_slots(self, api, webhook_stub):
        webhook_stub.on(
            settings.n8n_webhook_availability,
            httpx.Response(200, json={"success": True, "slots": {"2026-10-26": [{"time": "1:00 PM", "available": True}]}}),
        )

        response = await api.post("/api/booking/availability", json=AVAILABILITY)

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "slots": {"2026-10-26": [{"time": "1:00 PM", "available": True}]},
        }
        assert json.loads(webhook_stub.requests[0].content) == AVAILABILITY

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "outcome",
        [
            httpx.Response(500, text="boom"),
            httpx.Response(200, text="not json at all"),
            httpx.Response(200, text=""),
            httpx.Response(200, json={"success": True}),
            httpx.Response(200, json={"success": True, "slots": "tomorrow"}),
            httpx.ReadTimeout("n8n too slow"),
            httpx.ConnectError("n8n down"),
        ],
    )
    async def test_falls_back_to_default_slots(self, api, webhook_stub, outcome):
        webhook_stub.on(settings.n8n_webhook_availability, outcome)

        response = await api.post("/api/booking/availability", json=AVAILABILITY)

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert default_times(body) == list(DEFAULT_SLOTS)
        assert all(slot["available"] for slot in body["slots"]["2026-10-26"])

    @pytest.mark.asyncio
    async def test_unreadable_request_still_answers(self, api):
        response = await api.post(
            "/api/booking/availability",
            content=b"{",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 200
        slots = response.json()["slots"]
        assert len(slots) == 1
        assert list(slots.values())[0]


class TestCreate:
    @pytest.mark.asyncio
    async def test_success_merges_upstream_payload(self, api, webhook_stub):
        webhook_stub.on(settings.n8n_webhook_booking, httpx.Response(200, json={"bookingId": "bk_1", "success": "yes"}))

        response = await api.post("/api/booking/create", json=BOOKING)

        assert response.status_code == 200
        assert response.json() == {"bookingId": "bk_1", "success": True}
        assert json.loads(webhook_stub.requests[0].content) == BOOKING

    @pytest.mark.asyncio
    async def test_non_json_success_is_still_success(self, api, webhook_stub):
        webhook_stub.on(settings.n8n_webhook_booking, httpx.Response(200, text="Workflow was started"))

        response = await api.post("/api/booking/create", json=BOOKING)

        assert response.json() == {"success": True, "message": "Booking created successfully"}

    @pytest.mark.asyncio
    async def test_upstream_error_keeps_status(self, api, webhook_stub):
        webhook_stub.on(settings.n8n_webhook_booking, httpx.Response(503, text="unavailable"))

        response = await api.post("/api/booking/create", json=BOOKING)

        assert response.status_code == 503
        assert response.json() == {"success": False, "message": "Failed to create booking"}

    @pytest.mark.asyncio
    async def test_transport_error_is_502(self, api, webhook_stub):
        webhook_stub.on(settings.n8n_webhook_booking, httpx.ReadTimeout("slow"))

        response = await api.post("/api/booking/create", json=BOOKING)

        assert response.status_code == 502
        assert response.json()["success"] is False

    @pytest.mark.asyncio
    async def test_unreadable_request_is_500(self, api, webhook_stub):
        response = await api.post(
            "/api/booking/create",
            content=b"[1, 2",
            headers={"content-type": "application/json"},
        )
        assert response.status_code == 500
        assert response.json() == {"success": False, "message": "Internal server error"}
        assert webhook_stub.requests == []


class TestFollowup:
    FOLLOWUP = {"email": "jo@x.com", "name": "Jo Lee", "meetingType": "demo", "meetingDate": "2026-10-26"}

    @pytest.mark.asyncio
    async def test_passes_through_json(self, api, webhook_stub):
        webhook_stub.on(settings.n8n_webhook_followup, httpx.Response(200, json={"success": True, "message": "started"}))

        response = await api.post("/api/booking/followup", json=self.FOLLOWUP)

        assert response.json() == {"success": True, "message": "started"}

    @pytest.mark.asyncio
    async def test_non_json_success(self, api, webhook_stub):
        webhook_stub.on(settings.n8n_webhook_followup, httpx.Response(200, text="ok"))

        response = await api.post("/api/booking/followup", json=self.FOLLOWUP)

        assert response.json() == {"success": True, "message": "Followup sequence initiated"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "outcome",
        [httpx.Response(500, text="boom"), httpx.ConnectError("down")],
    )
    async def test_failures_are_swallowed(self, api, webhook_stub, outcome):
        webhook_stub.on(settings.n8n_webhook_followup, outcome)

        response = await api.post("/api/booking/followup", json=self.FOLLOWUP)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Followup queued"}


class TestPreflight:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["availability", "create", "followup"])
    async def test_cors_headers(self, api, path):
        response = await api.options(f"/api/booking/{path}")

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "POST, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"
