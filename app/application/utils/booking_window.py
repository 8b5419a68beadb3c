from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from app.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class BookingWindow:
    """
    Which days and times may be offered.

    Slots start every `slot_minutes` from `start_hour` up to, not including,
    `end_hour`; weekends get no slots; days later than today plus
    `lookahead_months` are never selectable.
    """

    start_hour: int = 15
    end_hour: int = 20
    slot_minutes: int = 30
    lookahead_months: int = 2

    def __post_init__(self) -> None:
        if not 0 <= self.start_hour < self.end_hour <= 24:
            raise ValueError(f"Invalid daily window {self.start_hour}:00-{self.end_hour}:00")
        if self.slot_minutes <= 0 or (24 * 60) % self.slot_minutes:
            raise ValueError(f"slot_minutes must divide a day evenly, got {self.slot_minutes}")


def slots_for_day(day: date, window: BookingWindow = BookingWindow()) -> tuple[TimeSlot, ...]:
    if day.weekday() >= 5:
        return ()
    slots: list[TimeSlot] = []
    minutes = window.start_hour * 60
    while minutes < window.end_hour * 60:
        slots.append(
            TimeSlot(
                day=day,
                start_time=time(minutes // 60, minutes % 60),
                duration_minutes=window.slot_minutes,
            )
        )
        minutes += window.slot_minutes
    return tuple(slots)


def horizon_end(today: date, window: BookingWindow = BookingWindow()) -> date:
    return add_months(today, window.lookahead_months)


def is_day_selectable(day: date, today: date, window: BookingWindow = BookingWindow()) -> bool:
    return today <= day <= horizon_end(today, window)


def floor_to_slot(moment: datetime, slot_minutes: int) -> datetime:
    minutes = moment.hour * 60 + moment.minute
    floored = minutes - minutes % slot_minutes
    return moment.replace(hour=floored // 60, minute=floored % 60, second=0, microsecond=0)


def add_months(day: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the end of a shorter month."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return day.replace(year=year, month=month, day=min(day.day, last_day))


def days_in_month(year: int, month: int) -> list[date]:
    last_day = calendar.monthrange(year, month)[1]
    first = date(year, month, 1)
    return [first + timedelta(days=offset) for offset in range(last_day)]
