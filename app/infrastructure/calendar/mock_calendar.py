from __future__ import annotations

import logging

from app.application.ports.calendar import CalendarPort
from app.domain.entities.booking import Booking
from app.domain.entities.busy_interval import BusyInterval


class MockCalendar(CalendarPort):
    def __init__(self, busy: list[BusyInterval] | None = None) -> None:
        self._busy: list[BusyInterval] = list(busy or [])
        self._bookings: dict[str, Booking] = {}
        self._logger = logging.getLogger(__name__)

    @property
    def bookings(self) -> list[Booking]:
        return list(self._bookings.values())

    def add_busy(self, interval: BusyInterval) -> None:
        self._busy.append(interval)

    def fetch_busy_intervals(self) -> list[BusyInterval]:
        return list(self._busy)

    def create_booking(self, booking: Booking) -> str | None:
        event_id = f"mock_event_{len(self._bookings) + 1}"
        self._bookings[event_id] = booking
        slot = booking.chosen_slot
        self._busy.append(BusyInterval(start=slot.start_at(), end=slot.end_at()))
        self._logger.info(
            "Mock calendar booking created",
            extra={"reference": event_id, "slot": f"{slot.day} {slot.label}"},
        )
        return event_id
