"""Booking routes: availability, creation and follow-up, proxied to n8n."""

from __future__ import annotations

import json
from datetime import date, datetime, timezone
from typing import Any

import httpx
import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from src.api.cors import preflight
from src.config import settings
from src.dependencies import get_webhook_client
from src.n8n.client import N8nClient
from src.schemas.booking import AvailabilityResponse, default_availability

logger = structlog.get_logger()

router = APIRouter(prefix="/api/booking", tags=["booking"])


def _date_key(raw: Any) -> str:
    """YYYY-MM-DD key for the requested date, today (UTC) if unreadable."""
    if isinstance(raw, str) and raw:
        prefix = raw.split("T")[0]
        try:
            return date.fromisoformat(prefix).isoformat()
        except ValueError:
            pass
    return datetime.now(timezone.utc).date().isoformat()


async def _read_json(request: Request) -> Any:
    raw = await request.body()
    return json.loads(raw) if raw else {}


def _parse_body(response: httpx.Response) -> Any:
    """Decoded JSON body, None when empty. Raises ValueError when malformed."""
    if not response.content.strip():
        return None
    return response.json()


@router.post("/availability")
async def check_availability(
    request: Request,
    n8n: N8nClient = Depends(get_webhook_client),
) -> dict:
    """Forward an availability check; fall back to default slots on any failure."""
    try:
        body = await _read_json(request)
    except ValueError:
        logger.warning("availability_request_unreadable")
        return default_availability(_date_key(None)).model_dump()

    if not isinstance(body, dict):
        body = {}
    fallback = default_availability(_date_key(body.get("date")))

    logger.info(
        "availability_check_requested",
        date=body.get("date"),
        meeting_type=body.get("meetingType"),
        timezone=body.get("timezone"),
    )

    try:
        response = await n8n.post(settings.n8n_webhook_availability, body)
    except httpx.HTTPError as e:
        logger.error("availability_webhook_unreachable", error=str(e))
        return fallback.model_dump()

    if response.is_error:
        logger.error("availability_webhook_error", status=response.status_code)
        return fallback.model_dump()

    try:
        data = _parse_body(response)
    except ValueError:
        logger.warning("availability_response_unparseable")
        return fallback.model_dump()

    if not isinstance(data, dict) or not data.get("slots"):
        logger.info("availability_response_missing_slots")
        return fallback.model_dump()

    try:
        parsed = AvailabilityResponse.model_validate(data)
    except ValidationError as e:
        logger.warning("availability_response_malformed", error=str(e))
        return fallback.model_dump()

    return parsed.model_dump()


@router.post("/create")
async def create_booking(
    request: Request,
    n8n: N8nClient = Depends(get_webhook_client),
):
    """Forward the full wizard state to the booking workflow."""
    try:
        body = await _read_json(request)
        if not isinstance(body, dict):
            raise ValueError("booking request must be a JSON object")

        contact = body.get("contactInfo") or {}
        logger.info(
            "booking_create_requested",
            meeting_type=body.get("meetingType"),
            email=contact.get("email") if isinstance(contact, dict) else None,
            date=body.get("selectedDate"),
            time=body.get("selectedTime"),
        )

        response = await n8n.post(settings.n8n_webhook_booking, body)
    except httpx.HTTPError as e:
        logger.error("booking_webhook_unreachable", error=str(e))
        return JSONResponse(
            {"success": False, "message": "Booking service unavailable"},
            status_code=502,
        )
    except Exception as e:
        logger.error("booking_create_failed", error=str(e))
        return JSONResponse(
            {"success": False, "message": "Internal server error"},
            status_code=500,
        )

    if response.is_error:
        logger.error("booking_webhook_error", status=response.status_code)
        return JSONResponse(
            {"success": False, "message": "Failed to create booking"},
            status_code=response.status_code,
        )

    try:
        data = _parse_body(response)
    except ValueError:
        logger.info("booking_response_not_json")
        data = {"message": "Booking created successfully"}

    if data is None:
        data = {}
    elif not isinstance(data, dict):
        data = {"data": data}

    logger.info("booking_created", meeting_type=body.get("meetingType"))
    return {**data, "success": True}


@router.post("/followup")
async def trigger_followup(
    request: Request,
    n8n: N8nClient = Depends(get_webhook_client),
) -> dict:
    """Start the follow-up sequence. Never fails the caller."""
    queued = {"success": True, "message": "Followup queued"}

    try:
        body = await _read_json(request)
        response = await n8n.post(settings.n8n_webhook_followup, body)
    except Exception as e:
        logger.error("followup_failed", error=str(e))
        return queued

    if response.is_error:
        logger.error("followup_webhook_error", status=response.status_code)
        return queued

    try:
        data = response.json()
    except ValueError:
        data = None
    if not isinstance(data, dict):
        data = {"success": True, "message": "Followup sequence initiated"}
    return data


@router.options("/availability")
@router.options("/create")
@router.options("/followup")
async def booking_preflight():
    return preflight()
