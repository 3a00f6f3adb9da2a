"""Time selection step: a weekday date and one of its slots."""

from src.schemas.booking import BookingState
from src.wizard.steps.base import BaseStep


class TimeSelectionStep(BaseStep):
    def validate(self, state: BookingState) -> dict[str, str]:
        errors: dict[str, str] = {}
        if state.selected_date is None:
            errors["date"] = "Please select a date"
        if not state.selected_time:
            errors["time"] = "Please select a time"
        return errors
