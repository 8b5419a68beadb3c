"""Shared fixtures for booking tests. Time is frozen at Monday 2026-10-19 10:00 in Bucharest."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from zoneinfo import ZoneInfo

import pytest

from app.application.exceptions import SubmitError, SyncError
from app.application.ports.calendar import CalendarPort
from app.application.use_cases.availability import AvailabilityCalculator
from app.application.use_cases.booking_form import BookingFormMachine
from app.application.use_cases.booking_session import BookingSessionUseCase
from app.application.use_cases.submit_booking import SubmitBookingUseCase
from app.application.use_cases.sync_busy_intervals import BusyIntervalSynchronizer
from app.application.utils.booking_window import BookingWindow
from app.domain.entities.booking import Booking
from app.domain.entities.busy_interval import BusyInterval
from app.infrastructure.calendar.mock_calendar import MockCalendar
from app.infrastructure.referrals.mock_referrals import MockReferrals
from app.infrastructure.store.memory_store import MemoryFormSessionStore


TZ = ZoneInfo("Europe/Bucharest")
NOW = datetime(2026, 10, 19, 10, 0, tzinfo=TZ)
TODAY = NOW.date()
NEXT_TUESDAY = date(2026, 10, 20)
SATURDAY = date(2026, 10, 24)

VALID_CONTACT = {
    "full_name": "Ana Popescu",
    "phone": "0722123456",
    "company_email": "ana@acme-automation.ro",
    "company_name": "Acme Automation",
    "company_website": "https://acme-automation.ro",
}


def fixed_clock() -> datetime:
    return NOW


def busy(day: date, start: time, end: time) -> BusyInterval:
    return BusyInterval(
        start=datetime.combine(day, start, tzinfo=TZ),
        end=datetime.combine(day, end, tzinfo=TZ),
    )


class FailingCalendar(CalendarPort):
    """Calendar whose source is unreachable."""

    def __init__(self) -> None:
        self.fetch_calls = 0

    def fetch_busy_intervals(self) -> list[BusyInterval]:
        self.fetch_calls += 1
        raise SyncError("network down")

    def create_booking(self, booking: Booking) -> str | None:
        raise SubmitError("The booking service could not be reached. Please try again.")


class SwitchableCalendar(MockCalendar):
    """MockCalendar that can be told to fail fetches or bookings."""

    def __init__(self, busy: list[BusyInterval] | None = None) -> None:
        super().__init__(busy)
        self.fail_fetch = False
        self.fail_booking: SubmitError | None = None
        self.reference: str | None = None

    def fetch_busy_intervals(self) -> list[BusyInterval]:
        if self.fail_fetch:
            raise SyncError("network down")
        return super().fetch_busy_intervals()

    def create_booking(self, booking: Booking) -> str | None:
        if self.fail_booking is not None:
            raise self.fail_booking
        event_id = super().create_booking(booking)
        return self.reference or event_id


@dataclass
class Services:
    calendar: CalendarPort
    referrals: MockReferrals
    store: MemoryFormSessionStore
    window: BookingWindow
    availability: AvailabilityCalculator
    synchronizer: BusyIntervalSynchronizer
    machine: BookingFormMachine
    sessions: BookingSessionUseCase
    submit: SubmitBookingUseCase


def build_services(calendar: CalendarPort | None = None) -> Services:
    calendar = calendar or SwitchableCalendar()
    referrals = MockReferrals()
    store = MemoryFormSessionStore()
    window = BookingWindow()
    availability = AvailabilityCalculator(window)
    synchronizer = BusyIntervalSynchronizer(calendar, TZ, window, clock=fixed_clock)
    machine = BookingFormMachine(availability, clock=fixed_clock)
    return Services(
        calendar=calendar,
        referrals=referrals,
        store=store,
        window=window,
        availability=availability,
        synchronizer=synchronizer,
        machine=machine,
        sessions=BookingSessionUseCase(store, synchronizer, availability, machine, clock=fixed_clock),
        submit=SubmitBookingUseCase(
            calendar=calendar,
            referrals=referrals,
            store=store,
            machine=machine,
            synchronizer=synchronizer,
            clock=fixed_clock,
            confirmation_path="/confirmare-contact",
        ),
    )


def walk_to_budget(services: Services, day: date = NEXT_TUESDAY, start: time = time(16, 0)) -> str:
    """Start a session and fill every step up to the budget question."""
    session = services.sessions.start()
    sid = session.session_id
    services.sessions.select_date(sid, day)
    services.sessions.select_time(sid, start)
    services.sessions.submit_contact(sid, VALID_CONTACT)
    services.sessions.submit_qualification(sid, "high")
    return sid


@pytest.fixture
def calendar() -> SwitchableCalendar:
    return SwitchableCalendar()


@pytest.fixture
def services(calendar: SwitchableCalendar) -> Services:
    return build_services(calendar)
