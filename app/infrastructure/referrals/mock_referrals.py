from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from app.application.ports.referrals import ReferralPort
from app.domain.entities.booking import Booking


class MockReferrals(ReferralPort):
    def __init__(self) -> None:
        self.referrals: list[dict[str, Any]] = []
        self.visits: list[dict[str, Any]] = []
        self._logger = logging.getLogger(__name__)

    def record_referral(self, booking: Booking) -> None:
        self.referrals.append(
            {
                "affiliateCode": booking.referral_code,
                "referredName": booking.draft.full_name,
                "referredEmail": booking.draft.company_email,
                "bookingDate": booking.chosen_slot.start_at().isoformat(),
            }
        )
        self._logger.info("Mock referral recorded", extra={"status": booking.referral_code})

    def record_link_visit(self, affiliate_code: str, visited_url: str, timestamp: datetime) -> None:
        self.visits.append({"affiliateCode": affiliate_code, "visitedUrl": visited_url, "timestamp": timestamp})
        self._logger.info("Mock referral visit recorded", extra={"status": affiliate_code})
