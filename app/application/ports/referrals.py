from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.booking import Booking


class ReferralPort(ABC):
    @abstractmethod
    def record_referral(self, booking: Booking) -> None:
        """Attribute a booking to its referral code. Raises AttributionError."""
        raise NotImplementedError

    @abstractmethod
    def record_link_visit(self, affiliate_code: str, visited_url: str, timestamp: datetime) -> None:
        """Record a visit through a referral link. Raises AttributionError."""
        raise NotImplementedError
