"""Chat relay: forwards website chatbot messages to the n8n chat workflow."""

from __future__ import annotations

import json
import secrets
import string
import time
from datetime import datetime, timezone

import httpx
import structlog
from fastapi import APIRouter, Depends, Request
from pydantic import ValidationError

from src.api.cors import preflight
from src.config import settings
from src.dependencies import get_webhook_client
from src.errors import InternalError, InvalidInputError, UpstreamError, UpstreamTimeoutError
from src.n8n.client import N8nClient
from src.schemas.chat import ChatRequest, ChatResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/api/chat", tags=["chat"])

FALLBACK_REPLY = "I received your message but could not generate a response."
_BASE36 = string.digits + string.ascii_lowercase


def generate_conversation_id() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"conv_{int(time.time() * 1000)}_{suffix}"


@router.post("")
async def relay_chat(
    request: Request,
    n8n: N8nClient = Depends(get_webhook_client),
) -> ChatResponse:
    """Relay one chat message and return the workflow's reply."""
    if not settings.n8n_webhook_url:
        logger.error("chat_webhook_not_configured")
        raise InternalError("Chat service not configured")

    try:
        chat = ChatRequest.model_validate(json.loads(await request.body()))
    except (ValueError, ValidationError):
        raise InvalidInputError("Message is required")

    if not chat.message or not chat.message.strip():
        raise InvalidInputError("Message is required")

    payload = {
        "message": chat.message.strip(),
        "conversationId": chat.conversation_id or generate_conversation_id(),
        "userId": chat.user_id or "anonymous",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "source": "website-chatbot",
    }

    try:
        response = await n8n.post(
            settings.n8n_webhook_url,
            payload,
            timeout=settings.chat_timeout_seconds,
        )
    except httpx.TimeoutException:
        logger.warning("chat_webhook_timeout", conversation_id=payload["conversationId"])
        raise UpstreamTimeoutError()
    except httpx.HTTPError as e:
        logger.error("chat_webhook_unreachable", error=str(e))
        raise InternalError("An error occurred processing your message")

    if response.is_error:
        logger.error("chat_webhook_error", status=response.status_code)
        raise UpstreamError("Failed to process message", upstream_status=response.status_code)

    try:
        data = response.json()
    except ValueError:
        raise InternalError("An error occurred processing your message")
    if not isinstance(data, dict):
        data = {}

    return ChatResponse(
        reply=data.get("reply") or data.get("message") or FALLBACK_REPLY,
        conversation_id=payload["conversationId"],
        metadata=data.get("metadata") if isinstance(data.get("metadata"), dict) else None,
    )


@router.options("")
async def chat_preflight():
    return preflight(allow_any_origin=False)
