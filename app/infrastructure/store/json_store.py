from __future__ import annotations

import json
import logging
import threading
from datetime import date, datetime, time
from pathlib import Path
from typing import Any

from app.application.exceptions import SessionNotFoundError
from app.application.ports.session_store import FormSessionStorePort
from app.domain.entities.booking_draft import BookingDraft, BudgetTier, ImpactLevel
from app.domain.entities.busy_interval import BusySlots
from app.domain.entities.form_session import Direction, FormSession, FormStep


class JsonFormSessionStore(FormSessionStorePort):
    """One JSON file per form session, so a flow survives a reload or a restart."""

    def __init__(self, data_dir: str = "./data/sessions") -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)
        self._ledger_path = self._data_dir / "_bookings.json"
        self._locks: dict[str, threading.Lock] = {}
        self._lock_lock = threading.Lock()  # Lock for managing locks dict
        self._logger = logging.getLogger(__name__)

    def _get_lock(self, key: str) -> threading.Lock:
        """Get or create a lock for a session id."""
        with self._lock_lock:
            if key not in self._locks:
                self._locks[key] = threading.Lock()
            return self._locks[key]

    def _get_file_path(self, session_id: str) -> Path:
        # Session ids are generated hex strings; anything else never maps to a file.
        if not session_id.isalnum():
            raise SessionNotFoundError(session_id)
        return self._data_dir / f"{session_id}.json"

    def _write_atomic(self, file_path: Path, data: Any) -> None:
        """Save data to a JSON file atomically."""
        temp_path = file_path.with_suffix(".json.tmp")
        try:
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            temp_path.replace(file_path)
        except Exception:
            if temp_path.exists():
                temp_path.unlink(missing_ok=True)
            raise

    def get(self, session_id: str) -> FormSession:
        file_path = self._get_file_path(session_id)
        with self._get_lock(session_id):
            if not file_path.exists():
                raise SessionNotFoundError(session_id)
            try:
                with open(file_path, "r", encoding="utf-8") as f:
                    return self._deserialize_session(json.load(f))
            except (json.JSONDecodeError, OSError, KeyError, ValueError) as e:
                # A corrupted session restarts the flow like a reload would.
                self._logger.warning("Discarding unreadable session", extra={"session_id": session_id, "error": str(e)})
                raise SessionNotFoundError(session_id) from e

    def save(self, session: FormSession) -> None:
        file_path = self._get_file_path(session.session_id)
        with self._get_lock(session.session_id):
            self._write_atomic(file_path, self._serialize_session(session))

    def delete(self, session_id: str) -> None:
        file_path = self._get_file_path(session_id)
        with self._get_lock(session_id):
            file_path.unlink(missing_ok=True)

    def reserve_booking(self, booking_key: str) -> bool:
        with self._get_lock("_bookings"):
            ledger = self._load_ledger()
            if booking_key in ledger:
                return False
            ledger.append(booking_key)
            self._write_atomic(self._ledger_path, ledger)
            return True

    def release_booking(self, booking_key: str) -> None:
        with self._get_lock("_bookings"):
            ledger = self._load_ledger()
            if booking_key in ledger:
                ledger.remove(booking_key)
                self._write_atomic(self._ledger_path, ledger)

    def _load_ledger(self) -> list[str]:
        if not self._ledger_path.exists():
            return []
        with open(self._ledger_path, "r", encoding="utf-8") as f:
            return list(json.load(f))

    def _serialize_session(self, session: FormSession) -> dict[str, Any]:
        """Serialize FormSession to dict."""
        return {
            "session_id": session.session_id,
            "step": session.step.value,
            "direction": session.direction.value,
            "draft": self._serialize_draft(session.draft),
            "errors": dict(session.errors),
            "busy": self._serialize_busy(session.busy),
            "sync_error": session.sync_error,
            "created_at": session.created_at,
            "updated_at": session.updated_at,
            "version": 1,
        }

    def _deserialize_session(self, data: dict[str, Any]) -> FormSession:
        """Deserialize dict to FormSession."""
        return FormSession(
            session_id=data["session_id"],
            step=FormStep(data.get("step", FormStep.select_date.value)),
            direction=Direction(data.get("direction", Direction.forward.value)),
            draft=self._deserialize_draft(data.get("draft", {})),
            errors=dict(data.get("errors") or {}),
            busy=self._deserialize_busy(data.get("busy")),
            sync_error=data.get("sync_error"),
            created_at=data.get("created_at"),
            updated_at=data.get("updated_at"),
        )

    def _serialize_draft(self, draft: BookingDraft) -> dict[str, Any]:
        return {
            "day": draft.day.isoformat() if draft.day else None,
            "start_time": draft.start_time.strftime("%H:%M") if draft.start_time else None,
            "duration_minutes": draft.duration_minutes,
            "full_name": draft.full_name,
            "phone": draft.phone,
            "company_email": draft.company_email,
            "company_name": draft.company_name,
            "company_website": draft.company_website,
            "impact_level": draft.impact_level.value if draft.impact_level else None,
            "budget_tier": draft.budget_tier.value if draft.budget_tier else None,
        }

    def _deserialize_draft(self, data: dict[str, Any]) -> BookingDraft:
        return BookingDraft(
            day=date.fromisoformat(data["day"]) if data.get("day") else None,
            start_time=time.fromisoformat(data["start_time"]) if data.get("start_time") else None,
            duration_minutes=data.get("duration_minutes", 30),
            full_name=data.get("full_name", ""),
            phone=data.get("phone", ""),
            company_email=data.get("company_email", ""),
            company_name=data.get("company_name", ""),
            company_website=data.get("company_website", ""),
            impact_level=ImpactLevel(data["impact_level"]) if data.get("impact_level") else None,
            budget_tier=BudgetTier(data["budget_tier"]) if data.get("budget_tier") else None,
        )

    def _serialize_busy(self, busy: BusySlots | None) -> dict[str, Any] | None:
        if busy is None:
            return None
        return {
            "by_day": {
                day.isoformat(): sorted(t.strftime("%H:%M") for t in times)
                for day, times in busy.by_day.items()
            },
            "fetched_at": busy.fetched_at.isoformat() if busy.fetched_at else None,
        }

    def _deserialize_busy(self, data: dict[str, Any] | None) -> BusySlots | None:
        if data is None:
            return None
        return BusySlots(
            by_day={
                date.fromisoformat(day): frozenset(time.fromisoformat(t) for t in times)
                for day, times in (data.get("by_day") or {}).items()
            },
            fetched_at=datetime.fromisoformat(data["fetched_at"]) if data.get("fetched_at") else None,
        )
