from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

from app.domain.entities.time_slot import TimeSlot


class DayStatus(str, Enum):
    available = "available"
    fully_booked = "fully_booked"
    closed = "closed"  # weekend, no slots generated
    past = "past"
    beyond_horizon = "beyond_horizon"
    unknown = "unknown"  # busy intervals not fetched


@dataclass(frozen=True)
class DayAvailability:
    day: date
    slots: tuple[TimeSlot, ...]
    fully_booked: bool
    status: DayStatus

    @property
    def selectable(self) -> bool:
        return self.status == DayStatus.available


@dataclass(frozen=True)
class MonthAvailability:
    year: int
    month: int
    days: tuple[DayAvailability, ...]
    can_go_back: bool
    can_go_forward: bool
