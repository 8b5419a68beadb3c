from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable
from zoneinfo import ZoneInfo

from app.application.exceptions import SyncError
from app.application.ports.calendar import CalendarPort
from app.application.utils.booking_window import BookingWindow, floor_to_slot, horizon_end
from app.domain.entities.busy_interval import BusyInterval, BusySlots


class BusyIntervalSynchronizer:
    """Turns raw calendar commitments into slot-aligned busy start times."""

    def __init__(
        self,
        calendar: CalendarPort,
        timezone: ZoneInfo,
        window: BookingWindow = BookingWindow(),
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._calendar = calendar
        self._timezone = timezone
        self._window = window
        self._clock = clock or (lambda: datetime.now(timezone))
        self._logger = logging.getLogger(__name__)

    def fetch_busy_intervals(self) -> BusySlots:
        try:
            intervals = self._calendar.fetch_busy_intervals()
        except SyncError as e:
            self._logger.warning("Busy interval fetch failed", extra={"error": str(e)})
            raise

        busy = self.to_busy_slots(intervals)
        self._logger.info(
            "Busy intervals fetched",
            extra={"status": f"{len(intervals)} events over {len(busy.by_day)} days"},
        )
        return busy

    def to_busy_slots(self, intervals: Iterable[BusyInterval]) -> BusySlots:
        now = self._clock()
        today = now.astimezone(self._timezone).date() if now.tzinfo else now.date()
        # Only days from today to the horizon can ever be offered.
        lower = datetime.combine(today, time.min, tzinfo=self._timezone)
        upper = datetime.combine(horizon_end(today, self._window) + timedelta(days=1), time.min, tzinfo=self._timezone)
        step = timedelta(minutes=self._window.slot_minutes)
        by_day: dict[date, set[time]] = {}

        for interval in intervals:
            start = max(self._localize(interval.start), lower)
            end = min(self._localize(interval.end), upper)
            current = floor_to_slot(start, self._window.slot_minutes)
            # A slot is blocked if any part of it overlaps [start, end).
            while current < end:
                by_day.setdefault(current.date(), set()).add(current.time())
                current += step

        return BusySlots(
            by_day={day: frozenset(times) for day, times in by_day.items()},
            fetched_at=now,
        )

    def _localize(self, moment: datetime) -> datetime:
        if moment.tzinfo is None:
            return moment.replace(tzinfo=self._timezone)
        return moment.astimezone(self._timezone)
