from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time

from app.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class BusyInterval:
    """Half-open [start, end) commitment taken from the external calendar."""

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Busy interval ends before it starts: {self.start} > {self.end}")

    def overlaps(self, start: datetime, end: datetime) -> bool:
        return self.start < end and start < self.end


@dataclass(frozen=True)
class BusySlots:
    """Slot-aligned busy start times per day, as produced by one fetch."""

    by_day: dict[date, frozenset[time]] = field(default_factory=dict)
    fetched_at: datetime | None = None

    def for_day(self, day: date) -> frozenset[time]:
        return self.by_day.get(day, frozenset())

    def is_busy(self, slot: TimeSlot) -> bool:
        return slot.start_time in self.for_day(slot.day)

    def with_busy(self, slot: TimeSlot) -> "BusySlots":
        by_day = dict(self.by_day)
        by_day[slot.day] = self.for_day(slot.day) | {slot.start_time}
        return BusySlots(by_day=by_day, fetched_at=self.fetched_at)
