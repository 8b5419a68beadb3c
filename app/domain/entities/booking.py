from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from urllib.parse import urlencode

from app.domain.entities.booking_draft import BookingDraft
from app.domain.entities.time_slot import TimeSlot


@dataclass(frozen=True)
class BookingConfirmation:
    date: date
    time: str  # HH:MM
    calendar_reference: str | None
    redirect_url: str


@dataclass(frozen=True)
class Booking:
    draft: BookingDraft
    chosen_slot: TimeSlot
    created_at: datetime
    referral_code: str | None = None
    calendar_reference: str | None = None

    def confirmation(self, confirmation_path: str) -> BookingConfirmation:
        params = {
            "date": self.chosen_slot.day.isoformat(),
            "time": self.chosen_slot.label,
        }
        if self.calendar_reference:
            params["gcal_link"] = self.calendar_reference
        return BookingConfirmation(
            date=self.chosen_slot.day,
            time=self.chosen_slot.label,
            calendar_reference=self.calendar_reference,
            redirect_url=f"{confirmation_path}?{urlencode(params)}",
        )


def booking_key(email: str, slot: TimeSlot) -> str:
    return f"{email.strip().lower()}|{slot.day.isoformat()}|{slot.label}"
