from datetime import date, datetime, time

from pydantic import BaseModel, Field


class SelectDateRequestSchema(BaseModel):
    day: date


class SelectTimeRequestSchema(BaseModel):
    start_time: time


class ContactDetailsRequestSchema(BaseModel):
    # Raw strings on purpose: field rules are enforced by the form step so errors come back per field.
    full_name: str = ""
    phone: str = ""
    company_email: str = ""
    company_name: str = ""
    company_website: str = ""


class QualificationRequestSchema(BaseModel):
    impact_level: str | None = None


class SubmitRequestSchema(BaseModel):
    budget_tier: str | None = None


class DraftSchema(BaseModel):
    day: date | None = None
    start_time: str | None = None
    duration_minutes: int
    full_name: str
    phone: str
    company_email: str
    company_name: str
    company_website: str
    impact_level: str | None = None
    budget_tier: str | None = None


class SessionSchema(BaseModel):
    session_id: str
    step: str
    direction: str
    draft: DraftSchema
    errors: dict[str, str] = Field(default_factory=dict)
    sync_status: str
    sync_error: str | None = None


class DayAvailabilitySchema(BaseModel):
    day: date
    status: str
    fully_booked: bool
    selectable: bool
    slots: list[str] = Field(default_factory=list)


class MonthAvailabilitySchema(BaseModel):
    year: int
    month: int
    can_go_back: bool
    can_go_forward: bool
    days: list[DayAvailabilitySchema]


class BookingSchema(BaseModel):
    date: date
    start_time: str
    duration_minutes: int
    full_name: str
    phone: str
    company_email: str
    company_name: str
    company_website: str
    impact_level: str
    budget_tier: str
    referral_code: str | None = None
    calendar_reference: str | None = None
    created_at: datetime


class ConfirmationSchema(BaseModel):
    date: date
    time: str
    calendar_reference: str | None = None
    redirect_url: str


class SubmitResponseSchema(BaseModel):
    session: SessionSchema
    booking: BookingSchema
    confirmation: ConfirmationSchema
