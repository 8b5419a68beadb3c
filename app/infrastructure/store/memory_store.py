from __future__ import annotations

import threading

from app.application.exceptions import SessionNotFoundError
from app.application.ports.session_store import FormSessionStorePort
from app.domain.entities.form_session import FormSession


class MemoryFormSessionStore(FormSessionStorePort):
    def __init__(self) -> None:
        self._sessions: dict[str, FormSession] = {}
        self._booked: set[str] = set()
        self._lock = threading.Lock()

    def get(self, session_id: str) -> FormSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def save(self, session: FormSession) -> None:
        self._sessions[session.session_id] = session

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def reserve_booking(self, booking_key: str) -> bool:
        with self._lock:
            if booking_key in self._booked:
                return False
            self._booked.add(booking_key)
            return True

    def release_booking(self, booking_key: str) -> None:
        with self._lock:
            self._booked.discard(booking_key)
