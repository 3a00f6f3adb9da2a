"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from src.api.booking import router as booking_router
from src.api.chat import router as chat_router
from src.api.contact import router as contact_router
from src.config import settings
from src.dependencies import get_email_queue
from src.errors import AppError, app_error_handler
from src.redis_client import close_redis_client

structlog.configure(
    processors=[
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.add_log_level,
        structlog.dev.ConsoleRenderer() if settings.environment == "development"
        else structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.make_filtering_bound_logger(
        getattr(logging, settings.log_level.upper(), logging.INFO)
    ),
)

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown."""
    logger.info(
        "app_starting",
        environment=settings.environment,
        rate_limit_backend=settings.rate_limit_backend,
        chat_enabled=bool(settings.n8n_webhook_url),
    )
    yield
    # Let queued contact emails go out before the process exits
    await get_email_queue().wait_idle()
    await close_redis_client()
    logger.info("app_shutting_down")


app = FastAPI(
    title="Tesseract Integrations Site API",
    description="Booking, contact and chat endpoints for the Tesseract Integrations website",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_exception_handler(AppError, app_error_handler)

app.include_router(booking_router)
app.include_router(contact_router)
app.include_router(chat_router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Tesseract Integrations Site API",
        "version": "0.1.0",
        "status": "running",
    }
