from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, time
from typing import Any, Callable, Mapping

from app.application.exceptions import BookingValidationError, InvalidTransitionError
from app.application.use_cases.availability import AvailabilityCalculator
from app.application.utils.draft_validation import (
    FIELD_MESSAGES,
    contact_payload,
    parse_budget_tier,
    parse_contact_details,
    parse_impact_level,
)
from app.domain.entities.busy_interval import BusySlots
from app.domain.entities.day_availability import DayStatus
from app.domain.entities.form_session import FORM_STEPS, Direction, FormSession, FormStep


DAY_REJECTIONS: dict[DayStatus, str] = {
    DayStatus.unknown: "Availability could not be loaded yet. Please retry.",
    DayStatus.closed: "No meetings are held on weekends.",
    DayStatus.past: "This day is in the past.",
    DayStatus.beyond_horizon: "This day is too far in the future.",
    DayStatus.fully_booked: "This day is fully booked.",
}

SLOT_TAKEN = "This time is no longer available. Please pick another one."

_BACKTRACKABLE = (
    FormStep.select_time,
    FormStep.contact_details,
    FormStep.qualification,
    FormStep.budget,
)


class BookingFormMachine:
    """
    Linear booking flow: select_date -> select_time -> contact_details ->
    qualification -> budget -> submitting -> confirmed.

    Every method takes a FormSession and returns a new one. A rejected step
    comes back unchanged in position with per-field `errors`; an action that
    does not belong to the current step raises InvalidTransitionError.
    """

    def __init__(
        self,
        availability: AvailabilityCalculator,
        clock: Callable[[], datetime],
    ) -> None:
        self._availability = availability
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def start(self, session_id: str, busy: BusySlots | None, sync_error: str | None = None) -> FormSession:
        now_ts = self._clock().timestamp()
        return FormSession(
            session_id=session_id,
            busy=busy,
            sync_error=sync_error,
            created_at=now_ts,
            updated_at=now_ts,
        )

    def apply_sync(self, session: FormSession, busy: BusySlots | None, sync_error: str | None) -> FormSession:
        if busy is None:
            # Keep a previous good fetch rather than degrading it.
            return self._touch(session, sync_error=sync_error)
        return self._touch(session, busy=busy, sync_error=None)

    def select_date(self, session: FormSession, day: date) -> FormSession:
        self._require(session, FormStep.select_date)
        availability = self._availability.availability(day, session.busy, self._today())
        if not availability.selectable:
            return self._reject(session, {"day": DAY_REJECTIONS[availability.status]})

        draft = session.draft
        if draft.day != day:
            draft = replace(draft, day=day, start_time=None)
        return self._advance(session, FormStep.select_time, draft=draft)

    def select_time(self, session: FormSession, start_time: time) -> FormSession:
        self._require(session, FormStep.select_time)
        day = session.draft.day
        assert day is not None

        free = self._availability.availability(day, session.busy, self._today()).slots
        chosen = next((slot for slot in free if slot.start_time == start_time), None)
        if chosen is None:
            return self._reject(session, {"start_time": SLOT_TAKEN})

        draft = replace(session.draft, start_time=chosen.start_time, duration_minutes=chosen.duration_minutes)
        return self._advance(session, FormStep.contact_details, draft=draft)

    def submit_contact(self, session: FormSession, values: Mapping[str, Any]) -> FormSession:
        self._require(session, FormStep.contact_details)
        raw = {key: str(values.get(key) or "") for key in contact_payload(session.draft)}
        draft = replace(session.draft, **raw)
        try:
            contact = parse_contact_details(raw)
        except BookingValidationError as e:
            return self._reject(session, e.errors, draft=draft)

        draft = replace(draft, **contact.model_dump())
        return self._advance(session, FormStep.qualification, draft=draft)

    def submit_qualification(self, session: FormSession, impact_level: Any) -> FormSession:
        self._require(session, FormStep.qualification)
        try:
            level = parse_impact_level(impact_level)
        except BookingValidationError as e:
            return self._reject(session, e.errors)
        return self._advance(session, FormStep.budget, draft=replace(session.draft, impact_level=level))

    def submit_budget(self, session: FormSession, budget_tier: Any) -> FormSession:
        """Last data-entry step. On success the session enters `submitting`."""
        self._require(session, FormStep.budget)
        try:
            tier = parse_budget_tier(budget_tier)
        except BookingValidationError as e:
            return self._reject(session, e.errors)
        return self._advance(session, FormStep.submitting, draft=replace(session.draft, budget_tier=tier))

    def forward(self, session: FormSession) -> FormSession:
        """Re-submit the current step with what the draft already holds."""
        draft = session.draft
        if session.step == FormStep.select_date:
            if draft.day is None:
                return self._reject(session, {"day": FIELD_MESSAGES["day"]})
            return self.select_date(session, draft.day)
        if session.step == FormStep.select_time:
            if draft.start_time is None:
                return self._reject(session, {"start_time": FIELD_MESSAGES["start_time"]})
            return self.select_time(session, draft.start_time)
        if session.step == FormStep.contact_details:
            return self.submit_contact(session, contact_payload(draft))
        if session.step == FormStep.qualification:
            return self.submit_qualification(session, draft.impact_level)
        raise InvalidTransitionError(f"Cannot move forward from {session.step.value}")

    def back(self, session: FormSession) -> FormSession:
        if session.step not in _BACKTRACKABLE:
            raise InvalidTransitionError(f"Cannot go back from {session.step.value}")
        previous = FORM_STEPS[session.step.position - 1]
        self._logger.info("Form step back", extra={"session_id": session.session_id, "step": previous.value})
        return self._touch(session, step=previous, direction=Direction.back, errors={})

    def fail_submission(self, session: FormSession, message: str, errors: dict[str, str] | None = None) -> FormSession:
        self._require(session, FormStep.submitting)
        return self._touch(
            session,
            step=FormStep.budget,
            direction=Direction.back,
            errors={"form": message, **(errors or {})},
        )

    def slot_taken(self, session: FormSession, busy: BusySlots) -> FormSession:
        """The chosen slot turned out busy at submission time: offer time selection again."""
        self._require(session, FormStep.submitting)
        return self._touch(
            session,
            step=FormStep.select_time,
            direction=Direction.back,
            busy=busy,
            sync_error=None,
            errors={"start_time": SLOT_TAKEN},
        )

    def complete(self, session: FormSession) -> FormSession:
        self._require(session, FormStep.submitting)
        return self._advance(session, FormStep.confirmed)

    def _require(self, session: FormSession, step: FormStep) -> None:
        if session.step != step:
            raise InvalidTransitionError(
                f"Action for step {step.value} is not allowed while on {session.step.value}"
            )

    def _advance(self, session: FormSession, step: FormStep, **changes: Any) -> FormSession:
        self._logger.info("Form step forward", extra={"session_id": session.session_id, "step": step.value})
        return self._touch(session, step=step, direction=Direction.forward, errors={}, **changes)

    def _reject(self, session: FormSession, errors: dict[str, str], **changes: Any) -> FormSession:
        self._logger.info(
            "Form step rejected",
            extra={"session_id": session.session_id, "step": session.step.value, "error": ",".join(errors)},
        )
        return self._touch(session, errors=dict(errors), **changes)

    def _touch(self, session: FormSession, **changes: Any) -> FormSession:
        return replace(session, updated_at=self._clock().timestamp(), **changes)

    def _today(self) -> date:
        return self._clock().date()
