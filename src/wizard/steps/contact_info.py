"""Contact info step: who is booking and what they need."""

import re

from src.schemas.booking import BookingState
from src.wizard.steps.base import BaseStep

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_CHALLENGE_LENGTH = 20


class ContactInfoStep(BaseStep):
    """Name, email, company, role and challenge are required; budget is not.

    Every field is checked so the form can show all problems at once.
    """

    def validate(self, state: BookingState) -> dict[str, str]:
        info = state.contact_info
        errors: dict[str, str] = {}

        if not info.name.strip():
            errors["name"] = "Name is required"

        if not info.email.strip():
            errors["email"] = "Email is required"
        elif not EMAIL_PATTERN.match(info.email):
            errors["email"] = "Invalid email format"

        if not info.company.strip():
            errors["company"] = "Company is required"

        if not info.role.strip():
            errors["role"] = "Role is required"

        if not info.challenge.strip():
            errors["challenge"] = "Please describe your challenge"
        elif len(info.challenge) < MIN_CHALLENGE_LENGTH:
            errors["challenge"] = (
                f"Please provide more detail (min {MIN_CHALLENGE_LENGTH} characters)"
            )

        return errors
