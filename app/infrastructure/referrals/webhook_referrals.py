from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

import httpx

from app.application.exceptions import AttributionError
from app.application.ports.referrals import ReferralPort
from app.core.config import settings
from app.domain.entities.booking import Booking


class WebhookReferrals(ReferralPort):
    def __init__(
        self,
        referral_url: str | None = None,
        visit_url: str | None = None,
        timezone: ZoneInfo | None = None,
        timeout: float | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        self._referral_url = referral_url or settings.REFERRAL_WEBHOOK_URL
        self._visit_url = visit_url or settings.AFFILIATE_VISIT_WEBHOOK_URL
        self._timezone = timezone or ZoneInfo(settings.BUSINESS_TIMEZONE)
        self._client = client or httpx.Client(timeout=timeout or settings.HTTP_TIMEOUT_SECONDS)
        self._logger = logging.getLogger(__name__)

    def record_referral(self, booking: Booking) -> None:
        payload = {
            "affiliateCode": booking.referral_code,
            "referredName": booking.draft.full_name,
            "referredEmail": booking.draft.company_email,
            "bookingDate": booking.chosen_slot.start_at(self._timezone).isoformat(),
        }
        self._post(self._referral_url, payload, "referral")

    def record_link_visit(self, affiliate_code: str, visited_url: str, timestamp: datetime) -> None:
        payload = {
            "affiliateCode": affiliate_code,
            "event": "link_visit",
            "timestamp": timestamp.isoformat(),
            "visitedUrl": visited_url,
        }
        self._post(self._visit_url, payload, "link_visit")

    def _post(self, url: str | None, payload: dict[str, object], kind: str) -> None:
        if not url:
            self._logger.info("No webhook configured, skipping", extra={"status": kind})
            return
        try:
            response = self._client.post(url, json=payload)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise AttributionError(f"Could not record {kind}: {e}") from e
