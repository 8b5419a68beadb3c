from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo


@dataclass(frozen=True, order=True)
class TimeSlot:
    day: date
    start_time: time
    duration_minutes: int = 30

    @property
    def label(self) -> str:
        return self.start_time.strftime("%H:%M")

    def start_at(self, tz: tzinfo | None = None) -> datetime:
        return datetime.combine(self.day, self.start_time, tzinfo=tz)

    def end_at(self, tz: tzinfo | None = None) -> datetime:
        return self.start_at(tz) + timedelta(minutes=self.duration_minutes)
