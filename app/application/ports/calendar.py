from __future__ import annotations

from abc import ABC, abstractmethod

from app.domain.entities.booking import Booking
from app.domain.entities.busy_interval import BusyInterval


class CalendarPort(ABC):
    @abstractmethod
    def fetch_busy_intervals(self) -> list[BusyInterval]:
        """Return every known commitment. Raises SyncError when the source cannot be read."""
        raise NotImplementedError

    @abstractmethod
    def create_booking(self, booking: Booking) -> str | None:
        """Create the calendar event. Returns the calendar reference, if any. Raises SubmitError."""
        raise NotImplementedError
