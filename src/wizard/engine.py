"""Booking wizard: the four-step booking flow as an explicit state machine.

Each (step, action) pair maps to a Transition naming the next step and the
side effect to run on the way. Steps validate their own fields; the engine
only moves forward when validation passes and, for the last step, when the
server has acknowledged the booking.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Callable, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import structlog

from src.background import fire_and_forget, wait_for_tasks
from src.config import settings
from src.schemas.booking import (
    BUDGET_RANGES,
    DEFAULT_SLOTS,
    MEETING_TYPES,
    AvailabilityRequest,
    BookingState,
    ContactInfo,
    FollowupRequest,
    MeetingType,
    WizardStep,
)
from src.wizard.client import BookingApiClient, get_booking_api_client
from src.wizard.steps.base import BaseStep
from src.wizard.steps.contact_info import ContactInfoStep
from src.wizard.steps.meeting_type import MeetingTypeStep
from src.wizard.steps.time_selection import TimeSelectionStep

logger = structlog.get_logger()

SUBMIT_ERROR = "Failed to confirm booking. Please try again."
DATE_UNAVAILABLE_ERROR = "Please select an upcoming weekday"


class WizardAction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"


class SideEffect(str, Enum):
    NONE = "none"
    SUBMIT_BOOKING = "submit_booking"


@dataclass(frozen=True)
class Transition:
    next_step: WizardStep
    side_effect: SideEffect = SideEffect.NONE


# CONFIRMED has no entries: it is terminal
TRANSITIONS: dict[tuple[WizardStep, WizardAction], Transition] = {
    (WizardStep.MEETING_TYPE, WizardAction.NEXT): Transition(WizardStep.CONTACT_INFO),
    (WizardStep.MEETING_TYPE, WizardAction.PREVIOUS): Transition(WizardStep.MEETING_TYPE),
    (WizardStep.CONTACT_INFO, WizardAction.NEXT): Transition(WizardStep.TIME_SELECTION),
    (WizardStep.CONTACT_INFO, WizardAction.PREVIOUS): Transition(WizardStep.MEETING_TYPE),
    (WizardStep.TIME_SELECTION, WizardAction.NEXT): Transition(
        WizardStep.CONFIRMED, SideEffect.SUBMIT_BOOKING
    ),
    (WizardStep.TIME_SELECTION, WizardAction.PREVIOUS): Transition(WizardStep.CONTACT_INFO),
}

STEP_HANDLERS: dict[WizardStep, BaseStep] = {
    WizardStep.MEETING_TYPE: MeetingTypeStep(),
    WizardStep.CONTACT_INFO: ContactInfoStep(),
    WizardStep.TIME_SELECTION: TimeSelectionStep(),
}


@dataclass
class StepResult:
    """Outcome of a NEXT or PREVIOUS action."""

    step: WizardStep
    moved: bool
    errors: dict[str, str] = field(default_factory=dict)


def is_selectable_date(day: date, today: date) -> bool:
    """Bookable days are weekdays after today."""
    return day > today and day.weekday() < 5


def extract_slots(data: Any, date_key: str) -> list[str]:
    """Available slot labels for ``date_key`` from an availability payload.

    Slots may be ``{"time", "available"}`` objects or bare strings. Anything
    unexpected yields an empty list.
    """
    if not isinstance(data, dict) or not data.get("success"):
        return []
    slots = data.get("slots")
    if not isinstance(slots, dict):
        return []
    entries = slots.get(date_key)
    if not isinstance(entries, list):
        return []

    labels: list[str] = []
    for entry in entries:
        if isinstance(entry, str):
            labels.append(entry)
        elif isinstance(entry, dict) and isinstance(entry.get("time"), str):
            if entry.get("available", True):
                labels.append(entry["time"])
    return labels


class BookingWizard:
    """Drives one booking from meeting type to confirmation."""

    def __init__(
        self,
        client: Optional[BookingApiClient] = None,
        timezone: Optional[str] = None,
        today: Callable[[], date] = date.today,
    ):
        self.client = client or get_booking_api_client()
        self.state = BookingState()
        self.errors: dict[str, str] = {}
        self.is_loading = False
        self.available_slots: list[str] = []
        self._today = today
        self._tasks: set[asyncio.Task] = set()
        self._lookup_id = 0
        self.set_timezone(timezone or settings.default_timezone)

    @property
    def step(self) -> WizardStep:
        return self.state.current_step

    @property
    def confirmed(self) -> bool:
        return self.state.current_step is WizardStep.CONFIRMED

    def _ignore_when_confirmed(self, action: str) -> bool:
        if self.confirmed:
            logger.info("wizard_edit_ignored", action=action)
            return True
        return False

    # ─── Field updates ───────────────────────────────────────────────

    def select_meeting_type(self, meeting_type: Union[str, MeetingType]) -> None:
        if self._ignore_when_confirmed("select_meeting_type"):
            return
        self.state.meeting_type = MeetingType(meeting_type)
        self.errors = {}

    def update_contact_info(self, field_name: str, value: str) -> None:
        if self._ignore_when_confirmed("update_contact_info"):
            return
        if field_name not in ContactInfo.model_fields:
            raise ValueError(f"Unknown contact field: {field_name}")
        if field_name == "budget" and value and value not in BUDGET_RANGES:
            raise ValueError(f"Unknown budget range: {value}")
        setattr(self.state.contact_info, field_name, value)
        self.errors.pop(field_name, None)

    def set_timezone(self, name: str) -> None:
        try:
            ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {name}")
        self.state.timezone = name

    async def select_date(self, day: date) -> None:
        """Pick a date and load its slots.

        Availability problems never block the booking: any failure leaves
        the default slots selectable.
        """
        if self._ignore_when_confirmed("select_date"):
            return
        if not is_selectable_date(day, self._today()):
            self.errors = {"date": DATE_UNAVAILABLE_ERROR}
            return

        self.state.selected_date = day
        self.state.selected_time = None
        self.errors = {}
        self.is_loading = True
        self._lookup_id += 1
        lookup_id = self._lookup_id

        date_key = day.isoformat()
        slots: list[str] = []
        try:
            data = await self.client.check_availability(
                AvailabilityRequest(
                    date=date_key,
                    meeting_type=self.state.meeting_type,
                    timezone=self.state.timezone,
                )
            )
            slots = extract_slots(data, date_key)
        except Exception as e:
            logger.warning("availability_lookup_failed", date=date_key, error=str(e))
        finally:
            if lookup_id == self._lookup_id:
                self.is_loading = False

        if lookup_id != self._lookup_id:
            # A later selection superseded this lookup
            return

        if not slots:
            logger.info("availability_defaults_used", date=date_key)
            slots = list(DEFAULT_SLOTS)
        self.available_slots = slots

    def select_time(self, label: str) -> None:
        if self._ignore_when_confirmed("select_time"):
            return
        if self.available_slots and label not in self.available_slots:
            raise ValueError(f"Time slot not available: {label}")
        self.state.selected_time = label
        self.errors = {}

    # ─── Navigation ──────────────────────────────────────────────────

    async def next_step(self) -> StepResult:
        current = self.state.current_step
        transition = TRANSITIONS.get((current, WizardAction.NEXT))
        if transition is None or self.is_loading:
            return StepResult(step=current, moved=False)

        errors = STEP_HANDLERS[current].validate(self.state)
        self.errors = errors
        if errors:
            logger.info("wizard_step_invalid", step=current.name, fields=sorted(errors))
            return StepResult(step=current, moved=False, errors=dict(errors))

        if transition.side_effect is SideEffect.SUBMIT_BOOKING:
            if not await self._submit_booking():
                return StepResult(step=current, moved=False, errors=dict(self.errors))

        self.state.current_step = transition.next_step
        logger.info("wizard_step_advanced", step=transition.next_step.name)

        if transition.side_effect is SideEffect.SUBMIT_BOOKING:
            self._start_followup()

        return StepResult(step=self.state.current_step, moved=True)

    def previous_step(self) -> StepResult:
        """Go back one step. Collected data is kept; errors are cleared."""
        current = self.state.current_step
        transition = TRANSITIONS.get((current, WizardAction.PREVIOUS))
        if transition is None:
            return StepResult(step=current, moved=False)

        self.state.current_step = transition.next_step
        self.errors = {}
        return StepResult(step=transition.next_step, moved=transition.next_step != current)

    # ─── Side effects ────────────────────────────────────────────────

    async def _submit_booking(self) -> bool:
        self.is_loading = True
        try:
            logger.info(
                "booking_submitting",
                meeting_type=self.state.meeting_type,
                email=self.state.contact_info.email,
                date=str(self.state.selected_date),
                time=self.state.selected_time,
            )
            await self.client.create_booking(self.state.model_copy(deep=True))
            return True
        except Exception as e:
            logger.error("booking_submit_failed", error=str(e))
            self.errors = {"submit": SUBMIT_ERROR}
            return False
        finally:
            self.is_loading = False

    def _start_followup(self) -> None:
        request = FollowupRequest(
            email=self.state.contact_info.email,
            name=self.state.contact_info.name,
            meeting_type=self.state.meeting_type,
            meeting_date=(
                self.state.selected_date.isoformat() if self.state.selected_date else None
            ),
        )
        fire_and_forget(self.client.send_followup(request), self._tasks, "followup_failed")

    async def wait_background(self) -> None:
        """Wait for detached follow-up calls (shutdown, tests)."""
        await wait_for_tasks(self._tasks)

    # ─── Presentation ────────────────────────────────────────────────

    def confirmation_summary(self) -> dict[str, Optional[str]]:
        meeting = MEETING_TYPES.get(self.state.meeting_type.value) if self.state.meeting_type else None
        return {
            "meeting": meeting["title"] if meeting else None,
            "duration": meeting["duration"] if meeting else None,
            "date": self.state.selected_date.isoformat() if self.state.selected_date else None,
            "time": self.state.selected_time,
            "timezone": self.state.timezone,
            "email": self.state.contact_info.email,
        }
