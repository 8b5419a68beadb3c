from __future__ import annotations

from dataclasses import replace
from datetime import date, time

import pytest

from app.application.exceptions import InvalidTransitionError, SessionNotFoundError
from app.application.use_cases.booking_session import SYNC_FAILED
from app.domain.entities.booking_draft import BookingDraft, BudgetTier, ImpactLevel
from app.domain.entities.form_session import Direction, FormSession, FormStep

from conftest import NEXT_TUESDAY, SATURDAY, VALID_CONTACT, FailingCalendar, build_services, busy, walk_to_budget


def _at_contact(services):
    session = services.sessions.start()
    services.sessions.select_date(session.session_id, NEXT_TUESDAY)
    services.sessions.select_time(session.session_id, time(16, 0))
    return session.session_id


def test_start_loads_busy_intervals(services):
    session = services.sessions.start()

    assert session.step == FormStep.select_date
    assert session.sync_status == "loaded"
    assert services.store.get(session.session_id) == session


def test_start_with_unreachable_calendar_is_fail_closed():
    services = build_services(FailingCalendar())
    session = services.sessions.start()

    assert session.busy is None
    assert session.sync_error == SYNC_FAILED
    assert session.sync_status == "failed"

    rejected = services.sessions.select_date(session.session_id, NEXT_TUESDAY)
    assert rejected.step == FormStep.select_date
    assert "day" in rejected.errors


def test_sync_retry_recovers(services, calendar):
    calendar.fail_fetch = True
    session = services.sessions.start()
    assert session.sync_status == "failed"

    calendar.fail_fetch = False
    session = services.sessions.sync(session.session_id)
    assert session.sync_status == "loaded"
    assert services.sessions.select_date(session.session_id, NEXT_TUESDAY).step == FormStep.select_time


def test_failed_resync_keeps_previous_busy_set(services, calendar):
    calendar.add_busy(busy(NEXT_TUESDAY, time(16, 0), time(17, 0)))
    session = services.sessions.start()

    calendar.fail_fetch = True
    resynced = services.sessions.sync(session.session_id)

    assert resynced.busy == session.busy
    assert resynced.sync_error == SYNC_FAILED


def test_weekend_and_fully_booked_days_rejected(services, calendar):
    calendar.add_busy(busy(NEXT_TUESDAY, time(15, 0), time(20, 0)))
    sid = services.sessions.start().session_id

    weekend = services.sessions.select_date(sid, SATURDAY)
    assert weekend.step == FormStep.select_date
    assert weekend.errors["day"] == "No meetings are held on weekends."

    booked = services.sessions.select_date(sid, NEXT_TUESDAY)
    assert booked.step == FormStep.select_date
    assert booked.errors["day"] == "This day is fully booked."


def test_past_day_rejected(services):
    sid = services.sessions.start().session_id
    session = services.sessions.select_date(sid, date(2026, 10, 16))
    assert session.errors == {"day": "This day is in the past."}


def test_select_time_rejects_busy_slot(services, calendar):
    calendar.add_busy(busy(NEXT_TUESDAY, time(16, 0), time(16, 30)))
    sid = services.sessions.start().session_id
    services.sessions.select_date(sid, NEXT_TUESDAY)

    session = services.sessions.select_time(sid, time(16, 0))
    assert session.step == FormStep.select_time
    assert "start_time" in session.errors

    session = services.sessions.select_time(sid, time(16, 30))
    assert session.step == FormStep.contact_details
    assert session.draft.start_time == time(16, 30)


def test_select_time_outside_window_rejected(services):
    sid = services.sessions.start().session_id
    services.sessions.select_date(sid, NEXT_TUESDAY)
    assert services.sessions.select_time(sid, time(20, 0)).step == FormStep.select_time


def test_short_phone_rejected_and_stays_on_contact(services):
    sid = _at_contact(services)

    session = services.sessions.submit_contact(sid, {**VALID_CONTACT, "phone": "123"})

    assert session.step == FormStep.contact_details
    assert set(session.errors) == {"phone"}
    # Invalid raw input is still kept for redisplay.
    assert session.draft.phone == "123"


def test_contact_errors_are_reported_together(services):
    sid = _at_contact(services)
    session = services.sessions.submit_contact(
        sid, {"full_name": "A", "phone": "07", "company_email": "nope", "company_name": "", "company_website": "x"}
    )
    assert set(session.errors) == {"full_name", "phone", "company_email", "company_name", "company_website"}


def test_website_optional_but_validated_when_present(services):
    sid = _at_contact(services)
    invalid = services.sessions.submit_contact(sid, {**VALID_CONTACT, "company_website": "not a url"})
    assert invalid.errors == {"company_website": "Enter a valid URL (e.g. https://example.ro)."}

    session = services.sessions.submit_contact(sid, {**VALID_CONTACT, "company_website": ""})
    assert session.step == FormStep.qualification
    assert session.draft.company_website == ""


def test_contact_values_are_trimmed(services):
    sid = _at_contact(services)
    session = services.sessions.submit_contact(sid, {**VALID_CONTACT, "full_name": "  Ana Popescu  "})
    assert session.draft.full_name == "Ana Popescu"


def test_unknown_impact_level_rejected(services):
    sid = _at_contact(services)
    services.sessions.submit_contact(sid, VALID_CONTACT)

    session = services.sessions.submit_qualification(sid, "enormous")
    assert session.step == FormStep.qualification
    assert session.errors == {"impact_level": "Please select an option."}


def test_back_from_budget_and_forward_restores_answers(services):
    """Budget -> Qualification -> Budget keeps what was already entered."""
    sid = walk_to_budget(services)
    machine = services.machine

    at_budget = services.store.get(sid)
    answered = FormSession(
        session_id=sid,
        step=FormStep.budget,
        draft=replace(at_budget.draft, budget_tier=BudgetTier.over_2000),
        busy=at_budget.busy,
    )

    back = machine.back(answered)
    assert back.step == FormStep.qualification
    assert back.direction == Direction.back
    assert back.draft.impact_level == ImpactLevel.high

    again = machine.forward(back)
    assert again.step == FormStep.budget
    assert again.direction == Direction.forward
    assert again.draft.budget_tier == BudgetTier.over_2000
    assert again.draft.company_email == VALID_CONTACT["company_email"]


def test_back_clears_errors_but_keeps_draft(services):
    sid = _at_contact(services)
    services.sessions.submit_contact(sid, {**VALID_CONTACT, "phone": "123"})

    session = services.sessions.back(sid)
    assert session.step == FormStep.select_time
    assert session.errors == {}
    assert session.draft.phone == "123"
    assert session.draft.start_time == time(16, 0)


def test_back_not_allowed_from_first_step(services):
    sid = services.sessions.start().session_id
    with pytest.raises(InvalidTransitionError):
        services.sessions.back(sid)


def test_changing_day_clears_selected_time(services):
    sid = _at_contact(services)
    services.sessions.back(sid)
    services.sessions.back(sid)

    same_day = services.sessions.select_date(sid, NEXT_TUESDAY)
    assert same_day.draft.start_time == time(16, 0)

    services.sessions.back(sid)
    other_day = services.sessions.select_date(sid, date(2026, 10, 21))
    assert other_day.draft.day == date(2026, 10, 21)
    assert other_day.draft.start_time is None


def test_action_for_another_step_raises(services):
    sid = services.sessions.start().session_id
    with pytest.raises(InvalidTransitionError):
        services.sessions.select_time(sid, time(16, 0))
    with pytest.raises(InvalidTransitionError):
        services.sessions.submit_contact(sid, VALID_CONTACT)


def test_forward_without_selection_is_rejected(services):
    sid = services.sessions.start().session_id
    session = services.sessions.forward(sid)
    assert session.step == FormStep.select_date
    assert session.errors == {"day": "Please pick a day."}


def test_illegal_states_cannot_be_built():
    with pytest.raises(ValueError):
        FormSession(session_id="abc", step=FormStep.contact_details, draft=BookingDraft(day=NEXT_TUESDAY))
    with pytest.raises(ValueError):
        FormSession(session_id="abc", step=FormStep.select_time)


def test_abandon_discards_session(services):
    sid = services.sessions.start().session_id
    services.sessions.abandon(sid)
    with pytest.raises(SessionNotFoundError):
        services.sessions.get(sid)


def test_month_availability_reflects_session_busy(services, calendar):
    calendar.add_busy(busy(NEXT_TUESDAY, time(15, 0), time(20, 0)))
    sid = services.sessions.start().session_id

    month = services.sessions.month_availability(sid)
    by_day = {d.day: d for d in month.days}

    assert (month.year, month.month) == (2026, 10)
    assert by_day[NEXT_TUESDAY].fully_booked
    assert not by_day[date(2026, 10, 21)].fully_booked
