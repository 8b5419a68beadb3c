from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from app.application.utils.booking_window import (
    BookingWindow,
    add_months,
    floor_to_slot,
    horizon_end,
    is_day_selectable,
    slots_for_day,
)

from conftest import NEXT_TUESDAY, SATURDAY, TODAY


def test_slots_empty_only_on_weekends():
    """Every day of a fortnight: no slots exactly on Saturday and Sunday."""
    start = date(2026, 10, 19)
    for offset in range(14):
        day = start + timedelta(days=offset)
        slots = slots_for_day(day)
        assert (len(slots) == 0) == (day.weekday() >= 5)


def test_weekday_slots_cover_window_in_order():
    slots = slots_for_day(NEXT_TUESDAY)

    assert len(slots) == 10
    assert slots[0].start_time == time(15, 0)
    assert slots[-1].start_time == time(19, 30)
    assert [s.start_time for s in slots] == sorted(s.start_time for s in slots)
    assert all(s.day == NEXT_TUESDAY and s.duration_minutes == 30 for s in slots)


def test_custom_window_granularity():
    window = BookingWindow(start_hour=9, end_hour=11, slot_minutes=15)
    slots = slots_for_day(NEXT_TUESDAY, window)
    assert [s.label for s in slots] == ["09:00", "09:15", "09:30", "09:45", "10:00", "10:15", "10:30", "10:45"]


def test_saturday_has_no_slots():
    assert slots_for_day(SATURDAY) == ()


def test_is_day_selectable_bounds():
    """Today and the horizon day are selectable; the day before and after are not."""
    end = horizon_end(TODAY)
    assert end == date(2026, 12, 19)
    assert is_day_selectable(TODAY, TODAY)
    assert is_day_selectable(end, TODAY)
    assert not is_day_selectable(TODAY - timedelta(days=1), TODAY)
    assert not is_day_selectable(end + timedelta(days=1), TODAY)


def test_add_months_clamps_to_month_end():
    assert add_months(date(2026, 12, 31), 2) == date(2027, 2, 28)
    assert add_months(date(2027, 11, 30), 3) == date(2028, 2, 29)
    assert add_months(date(2026, 1, 15), 12) == date(2027, 1, 15)


def test_floor_to_slot():
    moment = datetime(2026, 10, 20, 15, 44, 59)
    assert floor_to_slot(moment, 30) == datetime(2026, 10, 20, 15, 30)
    assert floor_to_slot(datetime(2026, 10, 20, 16, 0), 30) == datetime(2026, 10, 20, 16, 0)


def test_invalid_window_rejected():
    with pytest.raises(ValueError):
        BookingWindow(start_hour=20, end_hour=15)
    with pytest.raises(ValueError):
        BookingWindow(slot_minutes=7)
