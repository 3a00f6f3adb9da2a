"""Resend email delivery for contact form submissions."""

from __future__ import annotations

import pathlib
from typing import Optional

import httpx
import structlog
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup, escape

from src.errors import UpstreamError
from src.schemas.contact import EmailJob

logger = structlog.get_logger()

TEMPLATES_DIR = pathlib.Path(__file__).parent / "templates"


def nl2br(value: str) -> Markup:
    return Markup("<br>\n").join(escape(line) for line in value.splitlines())


_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html"]),
)
_env.filters["nl2br"] = nl2br


def render_contact_email(job: EmailJob, mask_ip: bool = False) -> str:
    """Render the HTML body sent to the site owner."""
    template = _env.get_template("contact_email.html")
    return template.render(
        name=job.data.name,
        email=job.data.email,
        company=job.data.company,
        message=job.data.message,
        submitted_at=job.submitted_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip(),
        ip="[Protected]" if mask_ip else job.caller_ip,
    )


class ResendEmailSender:
    """Sends contact emails through the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        to_email: str,
        from_email: str,
        subject: str,
        api_url: str = "https://api.resend.com/emails",
        timeout: float = 10.0,
        mask_ip: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.to_email = to_email
        self.from_email = from_email
        self.subject = subject
        self.api_url = api_url
        self.timeout = timeout
        self.mask_ip = mask_ip
        self._transport = transport

    async def send(self, job: EmailJob) -> None:
        """Send one job.

        Raises:
            UpstreamError: Resend answered non-2xx
            httpx.HTTPError: transport failure or timeout
        """
        payload = {
            "from": self.from_email,
            "to": [self.to_email],
            "reply_to": job.data.email,
            "subject": self.subject,
            "html": render_contact_email(job, mask_ip=self.mask_ip),
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json=payload,
            )

        if response.is_error:
            raise UpstreamError(
                f"Resend returned {response.status_code}: {response.text[:200]}",
                upstream_status=response.status_code,
            )

        logger.info(
            "contact_email_delivered",
            to=self.to_email,
            status=response.status_code,
        )
