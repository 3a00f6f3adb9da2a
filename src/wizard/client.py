"""HTTP client the booking wizard uses to reach the booking routes."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from src.config import settings
from src.errors import UpstreamError
from src.schemas.booking import AvailabilityRequest, BookingState, FollowupRequest

logger = structlog.get_logger()

_client: Optional["BookingApiClient"] = None


class BookingApiClient:
    """Calls /api/booking/* on the site backend."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def _post(self, path: str, payload: dict) -> tuple[int, Any]:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(path, json=payload)

        try:
            data = response.json()
        except ValueError:
            raise UpstreamError(
                f"{path} returned a non-JSON body",
                upstream_status=response.status_code,
            )
        return response.status_code, data

    async def check_availability(self, request: AvailabilityRequest) -> Any:
        """Raw availability payload.

        Raises:
            UpstreamError: non-2xx or non-JSON answer
            httpx.HTTPError: transport failure or timeout
        """
        status, data = await self._post(
            "/api/booking/availability",
            request.model_dump(mode="json", by_alias=True),
        )
        if status >= 400:
            raise UpstreamError("availability check failed", upstream_status=status)
        return data

    async def create_booking(self, state: BookingState) -> dict:
        """Submit the wizard state.

        Raises:
            UpstreamError: non-2xx, non-JSON, or ``success: false``
            httpx.HTTPError: transport failure or timeout
        """
        status, data = await self._post(
            "/api/booking/create",
            state.model_dump(mode="json", by_alias=True),
        )
        if not isinstance(data, dict):
            data = {}
        if status >= 400 or data.get("success") is False:
            raise UpstreamError(
                data.get("message") or "Booking failed",
                upstream_status=status,
            )
        return data

    async def send_followup(self, request: FollowupRequest) -> Any:
        status, data = await self._post(
            "/api/booking/followup",
            request.model_dump(mode="json", by_alias=True),
        )
        if status >= 400:
            raise UpstreamError("followup failed", upstream_status=status)
        logger.debug("followup_sent", status=status)
        return data


def get_booking_api_client() -> BookingApiClient:
    """Get or create the booking API client singleton."""
    global _client
    if _client is None:
        _client = BookingApiClient(
            base_url=settings.booking_api_base_url,
            timeout=settings.http_timeout_seconds,
        )
    return _client
