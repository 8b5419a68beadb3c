from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Callable, NoReturn

from app.application.exceptions import (
    AttributionError,
    BookingValidationError,
    DuplicateBookingError,
    SessionNotFoundError,
    SlotNoLongerAvailableError,
    SubmissionInProgressError,
    SubmitError,
    SyncError,
)
from app.application.ports.calendar import CalendarPort
from app.application.ports.referrals import ReferralPort
from app.application.ports.session_store import FormSessionStorePort
from app.application.use_cases.booking_form import BookingFormMachine
from app.application.use_cases.sync_busy_intervals import BusyIntervalSynchronizer
from app.application.utils.draft_validation import validate_draft
from app.domain.entities.booking import Booking, BookingConfirmation, booking_key
from app.domain.entities.booking_draft import BookingDraft
from app.domain.entities.form_session import FormSession, FormStep
from app.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class SubmissionResult:
    session: FormSession
    booking: Booking | None = None
    confirmation: BookingConfirmation | None = None

    @property
    def accepted(self) -> bool:
        return self.booking is not None


class SubmitBookingUseCase:
    """
    Submits a finished booking form exactly once.

    Only one submission per session may be in flight; a concurrent second
    attempt raises SubmissionInProgressError instead of waiting. The chosen
    slot is re-checked against a fresh busy-interval fetch before the
    booking is sent, and a failed attempt leaves the draft intact so the
    user can retry.
    """

    def __init__(
        self,
        calendar: CalendarPort,
        referrals: ReferralPort,
        store: FormSessionStorePort,
        machine: BookingFormMachine,
        synchronizer: BusyIntervalSynchronizer,
        clock: Callable[[], datetime],
        confirmation_path: str = "/confirmare-contact",
    ) -> None:
        self._calendar = calendar
        self._referrals = referrals
        self._store = store
        self._machine = machine
        self._synchronizer = synchronizer
        self._clock = clock
        self._confirmation_path = confirmation_path
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, session_id: str) -> threading.Lock:
        """Get or create the submission lock for a session."""
        with self._lock_lock:
            if session_id not in self._locks:
                self._locks[session_id] = threading.Lock()
            return self._locks[session_id]

    def execute(self, session_id: str, budget_tier: Any, referral_code: str | None = None) -> SubmissionResult:
        lock = self._get_lock(session_id)
        if not lock.acquire(blocking=False):
            raise SubmissionInProgressError("A booking for this session is already being submitted.")
        try:
            return self._execute_locked(session_id, budget_tier, referral_code)
        finally:
            lock.release()
            self._prune_lock(session_id)

    def _prune_lock(self, session_id: str) -> None:
        """Forget the lock of a session that is no longer stored (confirmed, abandoned or unknown)."""
        try:
            self._store.get(session_id)
        except SessionNotFoundError:
            with self._lock_lock:
                lock = self._locks.get(session_id)
                if lock is not None and not lock.locked():
                    del self._locks[session_id]

    def _execute_locked(self, session_id: str, budget_tier: Any, referral_code: str | None) -> SubmissionResult:
        session = self._store.get(session_id)
        if session.step == FormStep.submitting:
            # Left behind by an attempt that never finished.
            raise SubmissionInProgressError("A booking for this session is already being submitted.")

        session = self._machine.submit_budget(session, budget_tier)
        self._store.save(session)
        if session.step != FormStep.submitting:
            return SubmissionResult(session=session)

        try:
            return self._submit_session(session, referral_code)
        except SubmitError:
            raise
        except Exception as e:
            self._logger.exception("Unexpected submission failure", extra={"session_id": session_id})
            self._fail(session, "The booking could not be saved.", cause=e)

    def _submit_session(self, session: FormSession, referral_code: str | None) -> SubmissionResult:
        draft = session.draft
        slot = draft.slot
        assert slot is not None

        key = booking_key(draft.company_email, slot)
        if not self._store.reserve_booking(key):
            self._fail(session, "A booking for this email and time already exists.", DuplicateBookingError)
        try:
            booking = self._book(session, slot, referral_code)
        except Exception:
            self._store.release_booking(key)
            raise

        self._store.delete(session.session_id)
        confirmed = self._machine.complete(session)
        self._logger.info(
            "Booking confirmed",
            extra={
                "session_id": session.session_id,
                "slot": f"{slot.day} {slot.label}",
                "reference": booking.calendar_reference,
            },
        )
        return SubmissionResult(
            session=confirmed,
            booking=booking,
            confirmation=booking.confirmation(self._confirmation_path),
        )

    def _book(self, session: FormSession, slot: TimeSlot, referral_code: str | None) -> Booking:
        try:
            busy = self._synchronizer.fetch_busy_intervals()
        except SyncError as e:
            self._fail(session, "We could not confirm that this time is still free. Please try again.", cause=e)

        if busy.is_busy(slot):
            self._store.save(self._machine.slot_taken(session, busy))
            self._logger.warning(
                "Slot taken before submission",
                extra={"session_id": session.session_id, "slot": f"{slot.day} {slot.label}"},
            )
            raise SlotNoLongerAvailableError("This time is no longer available. Please pick another one.")

        try:
            return self.submit(session.draft, referral_code)
        except SlotNoLongerAvailableError:
            self._store.save(self._machine.slot_taken(session, busy.with_busy(slot)))
            raise
        except SubmitError as e:
            self._fail(session, str(e) or "The booking could not be saved.", type(e), cause=e)

    def submit(self, draft: BookingDraft, referral_code: str | None = None) -> Booking:
        """
        Validate, create and send one booking.

        Raises SubmitError when the draft is incomplete or the calendar
        endpoint fails. Referral attribution is best-effort and never raises.
        """
        try:
            validate_draft(draft)
        except BookingValidationError as e:
            self._logger.warning("Refusing incomplete booking draft", extra={"error": str(e)})
            raise SubmitError("The booking details are incomplete or invalid.") from e

        slot = draft.slot
        assert slot is not None
        booking = Booking(
            draft=draft,
            chosen_slot=slot,
            created_at=self._clock(),
            referral_code=referral_code or None,
        )

        reference = self._calendar.create_booking(booking)
        booking = replace(booking, calendar_reference=reference)

        if booking.referral_code:
            try:
                self._referrals.record_referral(booking)
            except AttributionError as e:
                self._logger.warning("Referral attribution failed", extra={"error": str(e)})

        return booking

    def _fail(
        self,
        session: FormSession,
        message: str,
        error_type: type[SubmitError] = SubmitError,
        cause: BaseException | None = None,
    ) -> NoReturn:
        self._store.save(self._machine.fail_submission(session, message))
        self._logger.error("Booking submission failed", extra={"session_id": session.session_id, "error": message})
        raise error_type(message) from cause
