from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, time
from typing import Any, Callable, Mapping

from app.application.exceptions import SyncError
from app.application.ports.session_store import FormSessionStorePort
from app.application.use_cases.availability import AvailabilityCalculator
from app.application.use_cases.booking_form import BookingFormMachine
from app.application.use_cases.sync_busy_intervals import BusyIntervalSynchronizer
from app.domain.entities.busy_interval import BusySlots
from app.domain.entities.day_availability import MonthAvailability
from app.domain.entities.form_session import FormSession


SYNC_FAILED = "Existing appointments could not be loaded."


class BookingSessionUseCase:
    """Loads a FormSession, applies one user action through the form machine, stores the result."""

    def __init__(
        self,
        store: FormSessionStorePort,
        synchronizer: BusyIntervalSynchronizer,
        availability: AvailabilityCalculator,
        machine: BookingFormMachine,
        clock: Callable[[], datetime],
    ) -> None:
        self._store = store
        self._synchronizer = synchronizer
        self._availability = availability
        self._machine = machine
        self._clock = clock
        self._logger = logging.getLogger(__name__)

    def start(self) -> FormSession:
        busy, sync_error = self._fetch()
        session = self._machine.start(uuid.uuid4().hex, busy, sync_error)
        self._store.save(session)
        self._logger.info(
            "Booking session started",
            extra={"session_id": session.session_id, "status": session.sync_status},
        )
        return session

    def get(self, session_id: str) -> FormSession:
        return self._store.get(session_id)

    def sync(self, session_id: str) -> FormSession:
        session = self._store.get(session_id)
        busy, sync_error = self._fetch()
        return self._save(self._machine.apply_sync(session, busy, sync_error))

    def month_availability(self, session_id: str, year: int | None = None, month: int | None = None) -> MonthAvailability:
        session = self._store.get(session_id)
        today = self._clock().date()
        return self._availability.month(year or today.year, month or today.month, session.busy, today)

    def select_date(self, session_id: str, day: date) -> FormSession:
        return self._save(self._machine.select_date(self._store.get(session_id), day))

    def select_time(self, session_id: str, start_time: time) -> FormSession:
        return self._save(self._machine.select_time(self._store.get(session_id), start_time))

    def submit_contact(self, session_id: str, values: Mapping[str, Any]) -> FormSession:
        return self._save(self._machine.submit_contact(self._store.get(session_id), values))

    def submit_qualification(self, session_id: str, impact_level: Any) -> FormSession:
        return self._save(self._machine.submit_qualification(self._store.get(session_id), impact_level))

    def forward(self, session_id: str) -> FormSession:
        return self._save(self._machine.forward(self._store.get(session_id)))

    def back(self, session_id: str) -> FormSession:
        return self._save(self._machine.back(self._store.get(session_id)))

    def abandon(self, session_id: str) -> None:
        self._store.get(session_id)
        self._store.delete(session_id)
        self._logger.info("Booking session abandoned", extra={"session_id": session_id})

    def _fetch(self) -> tuple[BusySlots | None, str | None]:
        try:
            return self._synchronizer.fetch_busy_intervals(), None
        except SyncError:
            return None, SYNC_FAILED

    def _save(self, session: FormSession) -> FormSession:
        self._store.save(session)
        return session
