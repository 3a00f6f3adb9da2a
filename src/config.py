"""Application configuration via environment variables."""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # n8n webhooks
    n8n_webhook_availability: str = (
        "https://jakejames.app.n8n.cloud/webhook/tesseract-check-availability"
    )
    n8n_webhook_booking: str = "https://jakejames.app.n8n.cloud/webhook/tesseract-booking-new"
    n8n_webhook_followup: str = (
        "https://jakejames.app.n8n.cloud/webhook/tesseract-followup-sequence"
    )
    n8n_webhook_url: Optional[str] = None  # chat relay, disabled when unset

    # Resend (email)
    resend_api_key: str
    resend_api_url: str = "https://api.resend.com/emails"
    contact_email_to: str
    contact_email_from: str = "Tesseract Integrations <onboarding@resend.dev>"
    contact_email_subject: str = "New Contact Form Submission - Tesseract Integrations"

    # Google OAuth (sign-in is handled by the frontend, credentials checked here)
    google_client_id: str
    google_client_secret: str

    # Outbound HTTP
    http_timeout_seconds: float = 10.0
    chat_timeout_seconds: float = 30.0

    # Contact form rate limiting
    rate_limit_max_requests: int = 5
    rate_limit_window_seconds: int = 900  # 15 minutes
    rate_limit_backend: str = "memory"  # memory | redis
    redis_url: Optional[str] = None

    # Booking wizard client
    booking_api_base_url: str = "http://localhost:8000"
    default_timezone: str = "America/Chicago"

    # App
    log_level: str = "INFO"
    environment: str = "development"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @field_validator(
        "resend_api_key",
        "contact_email_to",
        "google_client_id",
        "google_client_secret",
    )
    @classmethod
    def _required(cls, value: str, info) -> str:
        if not value.strip():
            raise ValueError(f"{info.field_name.upper()} is required")
        return value

    @field_validator("rate_limit_backend")
    @classmethod
    def _known_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("memory", "redis"):
            raise ValueError("RATE_LIMIT_BACKEND must be 'memory' or 'redis'")
        return value


settings = Settings()  # type: ignore[call-arg]
