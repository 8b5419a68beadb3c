from functools import lru_cache
import logging
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo

from app.core.config import settings
from app.application.ports.calendar import CalendarPort
from app.application.ports.referrals import ReferralPort
from app.application.ports.session_store import FormSessionStorePort
from app.application.use_cases.availability import AvailabilityCalculator
from app.application.use_cases.booking_form import BookingFormMachine
from app.application.use_cases.booking_session import BookingSessionUseCase
from app.application.use_cases.submit_booking import SubmitBookingUseCase
from app.application.use_cases.sync_busy_intervals import BusyIntervalSynchronizer
from app.application.utils.booking_window import BookingWindow
from app.infrastructure.calendar.mock_calendar import MockCalendar
from app.infrastructure.calendar.webhook_calendar import WebhookCalendar
from app.infrastructure.referrals.mock_referrals import MockReferrals
from app.infrastructure.referrals.webhook_referrals import WebhookReferrals
from app.infrastructure.store.json_store import JsonFormSessionStore
from app.infrastructure.store.memory_store import MemoryFormSessionStore


logger = logging.getLogger(__name__)


def _is_dev() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


@lru_cache
def get_timezone() -> ZoneInfo:
    return ZoneInfo(settings.BUSINESS_TIMEZONE)


def get_clock() -> Callable[[], datetime]:
    tz = get_timezone()
    return lambda: datetime.now(tz)


@lru_cache
def get_booking_window() -> BookingWindow:
    return BookingWindow(
        start_hour=settings.BOOKING_DAY_START_HOUR,
        end_hour=settings.BOOKING_DAY_END_HOUR,
        slot_minutes=settings.BOOKING_SLOT_MINUTES,
        lookahead_months=settings.BOOKING_LOOKAHEAD_MONTHS,
    )


@lru_cache
def get_session_store() -> FormSessionStorePort:
    if settings.SESSION_STORE.lower() == "json":
        return JsonFormSessionStore(data_dir=settings.SESSION_DATA_DIR)
    return MemoryFormSessionStore()


@lru_cache
def get_calendar() -> CalendarPort:
    if not (settings.BUSY_EVENTS_WEBHOOK_URL and settings.BOOKING_WEBHOOK_URL) or _is_dev():
        logger.info("Using MockCalendar (webhooks missing or ENV=dev/local)")
        return MockCalendar()
    return WebhookCalendar(timezone=get_timezone())


@lru_cache
def get_referrals() -> ReferralPort:
    if not (settings.REFERRAL_WEBHOOK_URL or settings.AFFILIATE_VISIT_WEBHOOK_URL) or _is_dev():
        logger.info("Using MockReferrals (webhooks missing or ENV=dev/local)")
        return MockReferrals()
    return WebhookReferrals(timezone=get_timezone())


def get_synchronizer() -> BusyIntervalSynchronizer:
    return BusyIntervalSynchronizer(
        calendar=get_calendar(),
        timezone=get_timezone(),
        window=get_booking_window(),
        clock=get_clock(),
    )


def get_availability_calculator() -> AvailabilityCalculator:
    return AvailabilityCalculator(window=get_booking_window())


def get_form_machine() -> BookingFormMachine:
    return BookingFormMachine(availability=get_availability_calculator(), clock=get_clock())


def get_booking_session_use_case() -> BookingSessionUseCase:
    return BookingSessionUseCase(
        store=get_session_store(),
        synchronizer=get_synchronizer(),
        availability=get_availability_calculator(),
        machine=get_form_machine(),
        clock=get_clock(),
    )


@lru_cache
def get_submit_booking_use_case() -> SubmitBookingUseCase:
    # Cached: it owns the per-session submission locks.
    return SubmitBookingUseCase(
        calendar=get_calendar(),
        referrals=get_referrals(),
        store=get_session_store(),
        machine=get_form_machine(),
        synchronizer=get_synchronizer(),
        clock=get_clock(),
        confirmation_path=settings.CONFIRMATION_PATH,
    )
