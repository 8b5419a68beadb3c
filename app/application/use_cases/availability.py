from __future__ import annotations

from datetime import date

from app.application.utils.booking_window import (
    BookingWindow,
    add_months,
    days_in_month,
    horizon_end,
    is_day_selectable,
    slots_for_day,
)
from app.domain.entities.busy_interval import BusySlots
from app.domain.entities.day_availability import DayAvailability, DayStatus, MonthAvailability


class AvailabilityCalculator:
    """Combines the booking window with the last busy-interval fetch. Holds no state."""

    def __init__(self, window: BookingWindow) -> None:
        self._window = window

    @property
    def window(self) -> BookingWindow:
        return self._window

    def availability(self, day: date, busy: BusySlots | None, today: date) -> DayAvailability:
        # Without a successful fetch nothing can be offered.
        if busy is None:
            return DayAvailability(day=day, slots=(), fully_booked=True, status=DayStatus.unknown)

        candidate = slots_for_day(day, self._window)
        if not candidate:
            return DayAvailability(day=day, slots=(), fully_booked=True, status=DayStatus.closed)

        busy_times = busy.for_day(day)
        free = tuple(slot for slot in candidate if slot.start_time not in busy_times)
        fully_booked = not free

        if not is_day_selectable(day, today, self._window):
            status = DayStatus.past if day < today else DayStatus.beyond_horizon
            return DayAvailability(day=day, slots=(), fully_booked=fully_booked, status=status)
        if fully_booked:
            return DayAvailability(day=day, slots=(), fully_booked=True, status=DayStatus.fully_booked)
        return DayAvailability(day=day, slots=free, fully_booked=False, status=DayStatus.available)

    def month(self, year: int, month: int, busy: BusySlots | None, today: date) -> MonthAvailability:
        first = date(year, month, 1)
        last_month = horizon_end(today, self._window).replace(day=1)
        return MonthAvailability(
            year=year,
            month=month,
            days=tuple(self.availability(day, busy, today) for day in days_in_month(year, month)),
            can_go_back=first > today.replace(day=1),
            can_go_forward=add_months(first, 1) <= last_month,
        )
