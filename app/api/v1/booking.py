from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response

from app.api.v1.schemas import (
    BookingSchema,
    ConfirmationSchema,
    ContactDetailsRequestSchema,
    DayAvailabilitySchema,
    DraftSchema,
    MonthAvailabilitySchema,
    QualificationRequestSchema,
    SelectDateRequestSchema,
    SelectTimeRequestSchema,
    SessionSchema,
    SubmitRequestSchema,
    SubmitResponseSchema,
)
from app.application.exceptions import (
    DuplicateBookingError,
    InvalidTransitionError,
    SessionNotFoundError,
    SlotNoLongerAvailableError,
    SubmissionInProgressError,
    SubmitError,
)
from app.application.use_cases.booking_session import BookingSessionUseCase
from app.application.use_cases.submit_booking import SubmitBookingUseCase
from app.core.config import settings
from app.domain.entities.booking import Booking
from app.domain.entities.form_session import FormSession
from app.wiring.dependencies import get_booking_session_use_case, get_submit_booking_use_case


router = APIRouter()


def _session_schema(session: FormSession) -> SessionSchema:
    draft = session.draft
    return SessionSchema(
        session_id=session.session_id,
        step=session.step.value,
        direction=session.direction.value,
        draft=DraftSchema(
            day=draft.day,
            start_time=draft.start_time.strftime("%H:%M") if draft.start_time else None,
            duration_minutes=draft.duration_minutes,
            full_name=draft.full_name,
            phone=draft.phone,
            company_email=draft.company_email,
            company_name=draft.company_name,
            company_website=draft.company_website,
            impact_level=draft.impact_level.value if draft.impact_level else None,
            budget_tier=draft.budget_tier.value if draft.budget_tier else None,
        ),
        errors=dict(session.errors),
        sync_status=session.sync_status,
        sync_error=session.sync_error,
    )


def _booking_schema(booking: Booking) -> BookingSchema:
    draft = booking.draft
    return BookingSchema(
        date=booking.chosen_slot.day,
        start_time=booking.chosen_slot.label,
        duration_minutes=booking.chosen_slot.duration_minutes,
        full_name=draft.full_name,
        phone=draft.phone,
        company_email=draft.company_email,
        company_name=draft.company_name,
        company_website=draft.company_website,
        impact_level=draft.impact_level.value if draft.impact_level else "",
        budget_tier=draft.budget_tier.value if draft.budget_tier else "",
        referral_code=booking.referral_code,
        calendar_reference=booking.calendar_reference,
        created_at=booking.created_at,
    )


def _step_response(session: FormSession) -> SessionSchema:
    schema = _session_schema(session)
    if session.errors:
        raise HTTPException(status_code=422, detail=schema.model_dump(mode="json"))
    return schema


@router.post("/sessions", response_model=SessionSchema, status_code=201)
def start_session(uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    return _session_schema(uc.start())


@router.get("/sessions/{session_id}", response_model=SessionSchema)
def get_session(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    try:
        return _session_schema(uc.get(session_id))
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.delete("/sessions/{session_id}", status_code=204)
def abandon_session(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    try:
        uc.abandon(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    return Response(status_code=204)


@router.post("/sessions/{session_id}/sync", response_model=SessionSchema)
def sync_session(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    try:
        return _session_schema(uc.sync(session_id))
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.get("/sessions/{session_id}/availability", response_model=MonthAvailabilitySchema)
def month_availability(
    session_id: str,
    year: int | None = Query(None, ge=2000, le=2100),
    month: int | None = Query(None, ge=1, le=12),
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    try:
        result = uc.month_availability(session_id, year, month)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")

    return MonthAvailabilitySchema(
        year=result.year,
        month=result.month,
        can_go_back=result.can_go_back,
        can_go_forward=result.can_go_forward,
        days=[
            DayAvailabilitySchema(
                day=d.day,
                status=d.status.value,
                fully_booked=d.fully_booked,
                selectable=d.selectable,
                slots=[slot.label for slot in d.slots],
            )
            for d in result.days
        ],
    )


@router.post("/sessions/{session_id}/date", response_model=SessionSchema)
def select_date(
    session_id: str,
    req: SelectDateRequestSchema,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    try:
        session = uc.select_date(session_id, req.day)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(session)


@router.post("/sessions/{session_id}/time", response_model=SessionSchema)
def select_time(
    session_id: str,
    req: SelectTimeRequestSchema,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    try:
        session = uc.select_time(session_id, req.start_time)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(session)


@router.post("/sessions/{session_id}/contact", response_model=SessionSchema)
def submit_contact(
    session_id: str,
    req: ContactDetailsRequestSchema,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    try:
        session = uc.submit_contact(session_id, req.model_dump())
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(session)


@router.post("/sessions/{session_id}/qualification", response_model=SessionSchema)
def submit_qualification(
    session_id: str,
    req: QualificationRequestSchema,
    uc: BookingSessionUseCase = Depends(get_booking_session_use_case),
):
    try:
        session = uc.submit_qualification(session_id, req.impact_level)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(session)


@router.post("/sessions/{session_id}/forward", response_model=SessionSchema)
def step_forward(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    try:
        session = uc.forward(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return _step_response(session)


@router.post("/sessions/{session_id}/back", response_model=SessionSchema)
def step_back(session_id: str, uc: BookingSessionUseCase = Depends(get_booking_session_use_case)):
    try:
        return _session_schema(uc.back(session_id))
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/sessions/{session_id}/submit", response_model=SubmitResponseSchema)
def submit_booking(
    session_id: str,
    req: SubmitRequestSchema,
    request: Request,
    uc: SubmitBookingUseCase = Depends(get_submit_booking_use_case),
):
    referral_code = request.cookies.get(settings.AFFILIATE_COOKIE_NAME) or None
    try:
        result = uc.execute(session_id, req.budget_tier, referral_code)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except (InvalidTransitionError, SubmissionInProgressError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SlotNoLongerAvailableError as e:
        raise HTTPException(status_code=409, detail={"code": "slot_no_longer_available", "message": str(e)})
    except DuplicateBookingError as e:
        raise HTTPException(status_code=409, detail={"code": "duplicate_booking", "message": str(e)})
    except SubmitError as e:
        raise HTTPException(status_code=502, detail={"code": "submit_failed", "message": str(e)})

    if not result.accepted:
        return _step_response(result.session)

    assert result.booking is not None and result.confirmation is not None
    return SubmitResponseSchema(
        session=_session_schema(result.session),
        booking=_booking_schema(result.booking),
        confirmation=ConfirmationSchema(
            date=result.confirmation.date,
            time=result.confirmation.time,
            calendar_reference=result.confirmation.calendar_reference,
            redirect_url=result.confirmation.redirect_url,
        ),
    )
