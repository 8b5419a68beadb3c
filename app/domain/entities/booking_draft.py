from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from enum import Enum

from app.domain.entities.time_slot import TimeSlot


class ImpactLevel(str, Enum):
    high = "high"
    medium = "medium"
    uncertain = "uncertain"


class BudgetTier(str, Enum):
    under_1000 = "under_1000"
    from_1000_to_2000 = "1000_2000"
    over_2000 = "over_2000"


@dataclass(frozen=True)
class BookingDraft:
    # Raw input is kept even when invalid so back/forward navigation restores it.
    day: date | None = None
    start_time: time | None = None
    duration_minutes: int = 30
    full_name: str = ""
    phone: str = ""
    company_email: str = ""
    company_name: str = ""
    company_website: str = ""
    impact_level: ImpactLevel | None = None
    budget_tier: BudgetTier | None = None

    @property
    def slot(self) -> TimeSlot | None:
        if self.day is None or self.start_time is None:
            return None
        return TimeSlot(day=self.day, start_time=self.start_time, duration_minutes=self.duration_minutes)
