from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Request
from fastapi.responses import RedirectResponse

from app.application.exceptions import AttributionError
from app.application.ports.referrals import ReferralPort
from app.core.config import settings
from app.wiring.dependencies import get_referrals


router = APIRouter()
logger = logging.getLogger(__name__)


def record_visit(referrals: ReferralPort, affiliate_code: str, visited_url: str) -> None:
    try:
        referrals.record_link_visit(affiliate_code, visited_url, datetime.now(timezone.utc))
    except AttributionError as e:
        logger.warning("Failed to record referral visit", extra={"error": str(e)})


@router.get("/c/{affiliate_code}")
def referral_link(
    request: Request,
    background_tasks: BackgroundTasks,
    affiliate_code: str = Path(..., pattern=r"^[a-zA-Z0-9]+$"),
    referrals: ReferralPort = Depends(get_referrals),
) -> RedirectResponse:
    background_tasks.add_task(record_visit, referrals, affiliate_code, str(request.url))

    # Redirect home so the code does not stay in the address bar.
    response = RedirectResponse(url="/", status_code=302)
    response.set_cookie(
        settings.AFFILIATE_COOKIE_NAME,
        affiliate_code,
        max_age=settings.AFFILIATE_COOKIE_DAYS * 24 * 60 * 60,
        path="/",
        samesite="lax",
    )
    return response
