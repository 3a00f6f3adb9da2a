"""n8n webhook client: forwards site events to automation workflows."""

from __future__ import annotations

from typing import Any, Optional

import httpx
import structlog

from src.config import settings

logger = structlog.get_logger()

# Lazy singleton
_client: Optional["N8nClient"] = None


class N8nClient:
    """Posts JSON to n8n webhooks with a uniform timeout."""

    def __init__(
        self,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport

    async def post(
        self,
        url: str,
        payload: Any,
        timeout: Optional[float] = None,
    ) -> httpx.Response:
        """POST ``payload`` to a webhook and return the raw response.

        Non-2xx responses are returned, not raised; callers decide how
        much an upstream failure matters.

        Raises:
            httpx.HTTPError: connection failure or timeout
        """
        async with httpx.AsyncClient(
            timeout=timeout or self.timeout,
            transport=self._transport,
        ) as client:
            response = await client.post(
                url,
                json=payload,
                headers={"Accept": "application/json"},
            )

        logger.info(
            "n8n_webhook_called",
            url=url,
            status=response.status_code,
            body_len=len(response.content),
        )
        return response


def get_n8n_client() -> N8nClient:
    """Get or create the singleton n8n client."""
    global _client
    if _client is None:
        _client = N8nClient(timeout=settings.http_timeout_seconds)
    return _client
