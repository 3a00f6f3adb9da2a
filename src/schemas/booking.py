"""Booking wizard state and booking endpoint payloads."""

from datetime import date
from enum import Enum, IntEnum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class WizardStep(IntEnum):
    """Booking wizard steps, in display order."""

    MEETING_TYPE = 1
    CONTACT_INFO = 2
    TIME_SELECTION = 3
    CONFIRMED = 4


class MeetingType(str, Enum):
    DISCOVERY = "discovery"
    TECHNICAL = "technical"
    DEMO = "demo"


MEETING_TYPES: dict[str, dict[str, str]] = {
    MeetingType.DISCOVERY.value: {
        "title": "Discovery Call",
        "duration": "30 min",
        "description": "Free consultation",
    },
    MeetingType.TECHNICAL.value: {
        "title": "Technical Deep-Dive",
        "duration": "60 min",
        "description": "Detailed discussion",
    },
    MeetingType.DEMO.value: {
        "title": "AI Demo Session",
        "duration": "45 min",
        "description": "Live demonstration",
    },
}

BUDGET_RANGES: dict[str, str] = {
    "under-50k": "Under $50k",
    "50k-250k": "$50k - $250k",
    "250k-1m": "$250k - $1M",
    "over-1m": "Over $1M",
}

DEFAULT_SLOTS: tuple[str, ...] = (
    "9:00 AM",
    "10:00 AM",
    "11:00 AM",
    "2:00 PM",
    "3:00 PM",
    "4:00 PM",
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ContactInfo(_CamelModel):
    """Step 2 fields."""

    name: str = ""
    email: str = ""
    company: str = ""
    role: str = ""
    budget: str = ""  # optional, one of BUDGET_RANGES
    challenge: str = ""


class BookingState(_CamelModel):
    """Full wizard state; also the booking-create request body."""

    current_step: WizardStep = WizardStep.MEETING_TYPE
    meeting_type: Optional[MeetingType] = None
    contact_info: ContactInfo = Field(default_factory=ContactInfo)
    selected_date: Optional[date] = None
    selected_time: Optional[str] = None
    timezone: str = "America/Chicago"


class AvailabilityRequest(_CamelModel):
    date: str
    meeting_type: Optional[MeetingType] = None
    timezone: str


class TimeSlot(BaseModel):
    time: str
    available: bool = True


class AvailabilityResponse(BaseModel):
    success: bool = True
    slots: dict[str, list[Union[TimeSlot, str]]]


class FollowupRequest(_CamelModel):
    email: str
    name: str
    meeting_type: Optional[MeetingType] = None
    meeting_date: Optional[str] = None


def default_availability(date_key: str) -> AvailabilityResponse:
    """Availability answer used whenever the webhook cannot be trusted."""
    return AvailabilityResponse(
        slots={date_key: [TimeSlot(time=slot) for slot in DEFAULT_SLOTS]},
    )
