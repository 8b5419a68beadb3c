from abc import ABC, abstractmethod

from app.domain.entities.form_session import FormSession


class FormSessionStorePort(ABC):
    @abstractmethod
    def get(self, session_id: str) -> FormSession:
        """Return the stored session. Raises SessionNotFoundError."""
        raise NotImplementedError

    @abstractmethod
    def save(self, session: FormSession) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    def reserve_booking(self, booking_key: str) -> bool:
        """Atomically claim a booking key. Returns False if it is already taken."""
        raise NotImplementedError

    @abstractmethod
    def release_booking(self, booking_key: str) -> None:
        raise NotImplementedError
