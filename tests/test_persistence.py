"""
Tests for durable form session persistence.
"""

from __future__ import annotations

import tempfile
from datetime import time
from pathlib import Path

import pytest

from app.application.exceptions import SessionNotFoundError
from app.domain.entities.booking_draft import BookingDraft, BudgetTier, ImpactLevel
from app.domain.entities.busy_interval import BusySlots
from app.domain.entities.form_session import Direction, FormSession, FormStep
from app.infrastructure.store.json_store import JsonFormSessionStore
from app.infrastructure.store.memory_store import MemoryFormSessionStore

from conftest import NEXT_TUESDAY, NOW, VALID_CONTACT


def _session(session_id: str = "abc123") -> FormSession:
    draft = BookingDraft(
        day=NEXT_TUESDAY,
        start_time=time(16, 0),
        impact_level=ImpactLevel.uncertain,
        budget_tier=BudgetTier.under_1000,
        **VALID_CONTACT,
    )
    busy = BusySlots(by_day={NEXT_TUESDAY: frozenset({time(15, 0), time(17, 30)})}, fetched_at=NOW)
    return FormSession(
        session_id=session_id,
        step=FormStep.budget,
        direction=Direction.back,
        draft=draft,
        errors={"form": "Calendar is down"},
        busy=busy,
        created_at=NOW.timestamp(),
        updated_at=NOW.timestamp(),
    )


def test_json_store_round_trip():
    """A session read back from disk equals the one saved."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFormSessionStore(data_dir=tmpdir)
        session = _session()

        store.save(session)

        assert store.get("abc123") == session
        # A fresh store over the same directory still sees it (restart).
        assert JsonFormSessionStore(data_dir=tmpdir).get("abc123") == session


def test_json_store_keeps_unloaded_busy_state():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFormSessionStore(data_dir=tmpdir)
        session = FormSession(session_id="fresh1", sync_error="Existing appointments could not be loaded.")

        store.save(session)
        restored = store.get("fresh1")

        assert restored.busy is None
        assert restored.sync_status == "failed"


def test_json_store_missing_and_deleted_sessions():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFormSessionStore(data_dir=tmpdir)
        with pytest.raises(SessionNotFoundError):
            store.get("nothing")

        store.save(_session())
        store.delete("abc123")
        with pytest.raises(SessionNotFoundError):
            store.get("abc123")


def test_json_store_rejects_path_like_ids():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFormSessionStore(data_dir=tmpdir)
        with pytest.raises(SessionNotFoundError):
            store.get("../etc/passwd")


def test_json_store_corrupted_file_is_not_found():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFormSessionStore(data_dir=tmpdir)
        Path(tmpdir, "broken1.json").write_text("{not json", encoding="utf-8")

        with pytest.raises(SessionNotFoundError):
            store.get("broken1")


def test_booking_reservation_survives_restart():
    """A reserved key stays taken across restarts until released."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonFormSessionStore(data_dir=tmpdir)
        key = "ana@acme-automation.ro|2026-10-20|16:00"

        assert store.reserve_booking(key)
        assert not store.reserve_booking(key)

        restarted = JsonFormSessionStore(data_dir=tmpdir)
        assert not restarted.reserve_booking(key)
        assert restarted.reserve_booking("other@acme-automation.ro|2026-10-20|16:00")

        restarted.release_booking(key)
        assert JsonFormSessionStore(data_dir=tmpdir).reserve_booking(key)


def test_memory_store_behaves_like_json_store():
    store = MemoryFormSessionStore()
    session = _session()

    store.save(session)
    assert store.get("abc123") is session

    assert store.reserve_booking("k")
    assert not store.reserve_booking("k")
    store.release_booking("k")
    assert store.reserve_booking("k")

    store.delete("abc123")
    with pytest.raises(SessionNotFoundError):
        store.get("abc123")
