"""Contact form schemas and the email job built from them."""

from datetime import datetime, timezone

from pydantic import BaseModel, EmailStr, Field

_ANGLE_BRACKETS = str.maketrans("", "", "<>")


class ContactFormIn(BaseModel):
    """Contact form submission as posted by the site."""

    name: str = Field(min_length=2, max_length=100)
    email: EmailStr = Field(max_length=255)
    company: str = Field(min_length=2, max_length=100)
    message: str = Field(min_length=10, max_length=2000)

    def sanitized(self) -> "ContactFormIn":
        """Copy with angle brackets stripped and the email normalized."""
        return self.model_copy(
            update={
                "name": self.name.translate(_ANGLE_BRACKETS),
                "email": self.email.lower().strip(),
                "company": self.company.translate(_ANGLE_BRACKETS),
                "message": self.message.translate(_ANGLE_BRACKETS),
            }
        )


class ContactSubmitted(BaseModel):
    success: bool = True
    message: str = "Thank you for your message! We'll get back to you within 24 hours."
    timestamp: str


class EmailJob(BaseModel):
    """One queued contact email."""

    data: ContactFormIn
    caller_ip: str
    submitted_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
