from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from app.domain.entities.booking_draft import BookingDraft
from app.domain.entities.busy_interval import BusySlots


class FormStep(str, Enum):
    select_date = "select_date"
    select_time = "select_time"
    contact_details = "contact_details"
    qualification = "qualification"
    budget = "budget"
    submitting = "submitting"
    confirmed = "confirmed"

    @property
    def position(self) -> int:
        return FORM_STEPS.index(self)


FORM_STEPS: tuple[FormStep, ...] = tuple(FormStep)


class Direction(str, Enum):
    forward = "forward"
    back = "back"


@dataclass(frozen=True)
class FormSession:
    session_id: str
    step: FormStep = FormStep.select_date
    direction: Direction = Direction.forward
    draft: BookingDraft = BookingDraft()
    errors: dict[str, str] = field(default_factory=dict)
    busy: BusySlots | None = None  # None until a fetch succeeds
    sync_error: str | None = None
    created_at: float | None = None
    updated_at: float | None = None

    def __post_init__(self) -> None:
        position = self.step.position
        if position >= FormStep.select_time.position and self.draft.day is None:
            raise ValueError(f"Step {self.step.value} requires a selected day")
        if position >= FormStep.contact_details.position and self.draft.slot is None:
            raise ValueError(f"Step {self.step.value} requires a selected time slot")
        if self.step in (FormStep.submitting, FormStep.confirmed) and (
            self.draft.impact_level is None or self.draft.budget_tier is None
        ):
            raise ValueError(f"Step {self.step.value} requires qualification and budget answers")

    @property
    def sync_status(self) -> str:
        if self.busy is not None:
            return "loaded"
        if self.sync_error:
            return "failed"
        return "pending"
