from __future__ import annotations

import logging
from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

import httpx

from app.application.exceptions import SlotNoLongerAvailableError, SubmitError, SyncError
from app.application.ports.calendar import CalendarPort
from app.core.config import settings
from app.domain.entities.booking import Booking
from app.domain.entities.busy_interval import BusyInterval


class WebhookCalendar(CalendarPort):
    """Calendar automation reached through two webhooks: one lists events, one books."""

    def __init__(
        self,
        events_url: str | None = None,
        booking_url: str | None = None,
        timezone: ZoneInfo | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._events_url = events_url or settings.BUSY_EVENTS_WEBHOOK_URL
        self._booking_url = booking_url or settings.BOOKING_WEBHOOK_URL
        self._timezone = timezone or ZoneInfo(settings.BUSINESS_TIMEZONE)
        self._client = client or httpx.Client(timeout=timeout or settings.HTTP_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

        if not self._events_url or not self._booking_url:
            raise ValueError("BUSY_EVENTS_WEBHOOK_URL and BOOKING_WEBHOOK_URL are required for the webhook calendar")

    def fetch_busy_intervals(self) -> list[BusyInterval]:
        try:
            response = self._client.post(self._events_url, json={"action": "get_events"})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SyncError(f"Busy interval request failed: {e}") from e

        # An empty body after a successful call means no commitments.
        if not response.text.strip():
            return []

        try:
            data = response.json()
        except ValueError as e:
            raise SyncError("Busy interval response is not valid JSON") from e

        if isinstance(data, dict):
            data = data.get("events", data.get("items"))
        if not isinstance(data, list):
            raise SyncError("Busy interval response is not a list of events")

        intervals: list[BusyInterval] = []
        for event in data:
            interval = self._parse_event(event)
            if interval is not None:
                intervals.append(interval)
        return intervals

    def create_booking(self, booking: Booking) -> str | None:
        draft = booking.draft
        slot = booking.chosen_slot
        payload = {
            "date": slot.day.isoformat(),
            "startTime": slot.label,
            "durationMinutes": slot.duration_minutes,
            "fullName": draft.full_name,
            "phone": draft.phone,
            "companyEmail": draft.company_email,
            "companyName": draft.company_name,
            "companyWebsite": draft.company_website,
            "impactLevel": draft.impact_level.value if draft.impact_level else None,
            "budget": draft.budget_tier.value if draft.budget_tier else None,
        }

        try:
            response = self._client.post(self._booking_url, json=payload)
        except httpx.HTTPError as e:
            self._logger.error("Booking request failed", extra={"error": str(e)})
            raise SubmitError("The booking service could not be reached. Please try again.") from e

        data = self._json_or_none(response)

        if response.status_code == 409:
            raise SlotNoLongerAvailableError("This time is no longer available. Please pick another one.")
        if response.status_code >= 400:
            message = data.get("error") if isinstance(data, dict) else None
            self._logger.error(
                "Booking rejected",
                extra={"status": response.status_code, "error": message or response.text[:200]},
            )
            raise SubmitError(message or "An error occurred while saving the appointment.")

        reference = self._extract_reference(data)
        self._logger.info("Calendar booking created", extra={"reference": reference})
        return reference

    def _parse_event(self, event: Any) -> BusyInterval | None:
        if not isinstance(event, dict):
            return None
        start = event.get("start")
        end = event.get("end")
        if not start or not end:
            return None
        try:
            return BusyInterval(start=self._parse_moment(start), end=self._parse_moment(end))
        except (ValueError, TypeError) as e:
            raise SyncError(f"Malformed busy event: {event!r}") from e

    def _parse_moment(self, value: Any) -> datetime:
        # Google-style {"dateTime": ...} / all-day {"date": ...}, or a bare ISO string.
        if isinstance(value, dict):
            value = value.get("dateTime") or value.get("date")
        if not isinstance(value, str):
            raise ValueError(f"Unsupported timestamp: {value!r}")
        if len(value) == 10:
            return datetime.combine(date.fromisoformat(value), time.min, tzinfo=self._timezone)
        return datetime.fromisoformat(value.replace("Z", "+00:00"))

    @staticmethod
    def _json_or_none(response: httpx.Response) -> Any:
        if not response.text.strip():
            return None
        try:
            return response.json()
        except ValueError:
            return None

    @staticmethod
    def _extract_reference(data: Any) -> str | None:
        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            return None
        reference = data.get("htmlLink") or data.get("calendarReference")
        return str(reference) if reference else None
