"""Meeting type step: pick discovery, technical or demo."""

from src.schemas.booking import BookingState
from src.wizard.steps.base import BaseStep


class MeetingTypeStep(BaseStep):
    def validate(self, state: BookingState) -> dict[str, str]:
        if state.meeting_type is None:
            return {"meetingType": "Please select a meeting type"}
        return {}
