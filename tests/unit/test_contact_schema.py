"""Tests for contact form validation and sanitization."""

import pytest
from pydantic import ValidationError

from src.schemas.contact import ContactFormIn

VALID = {
    "name": "Jo Lee",
    "email": "jo@x.com",
    "company": "Acme Co",
    "message": "Interested in your automation services, please reach out.",
}


def error_fields(exc: ValidationError) -> set[str]:
    return {str(err["loc"][0]) for err in exc.errors()}


class TestContactFormIn:
    def test_valid_submission(self):
        form = ContactFormIn.model_validate(VALID)
        assert form.name == "Jo Lee"

    @pytest.mark.parametrize(
        "field_name, value",
        [
            ("name", "J"),
            ("name", "x" * 101),
            ("company", "A"),
            ("email", "not-an-email"),
            ("message", "x" * 9),
            ("message", "x" * 2001),
        ],
    )
    def test_length_and_format_bounds(self, field_name, value):
        with pytest.raises(ValidationError) as exc_info:
            ContactFormIn.model_validate({**VALID, field_name: value})
        assert error_fields(exc_info.value) == {field_name}

    def test_message_bounds_inclusive(self):
        ContactFormIn.model_validate({**VALID, "message": "x" * 10})
        ContactFormIn.model_validate({**VALID, "message": "x" * 2000})

    def test_missing_fields_reported_together(self):
        with pytest.raises(ValidationError) as exc_info:
            ContactFormIn.model_validate({})
        assert error_fields(exc_info.value) == {"name", "email", "company", "message"}


class TestSanitize:
    def test_strips_angle_brackets(self):
        form = ContactFormIn.model_validate(
            {
                **VALID,
                "name": "<b>Jo</b>",
                "company": "Acme <Co>",
                "message": "<script>alert('hi')</script> call me",
            }
        )
        clean = form.sanitized()
        assert clean.name == "bJo/b"
        assert clean.company == "Acme Co"
        assert "<" not in clean.message and ">" not in clean.message

    def test_clean_input_is_unchanged(self):
        form = ContactFormIn.model_validate(VALID)
        assert form.sanitized().model_dump() == VALID

    def test_original_is_not_mutated(self):
        form = ContactFormIn.model_validate({**VALID, "name": "<Jo>"})
        form.sanitized()
        assert form.name == "<Jo>"
