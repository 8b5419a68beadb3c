from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, EmailStr, Field, HttpUrl, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError

from app.application.exceptions import BookingValidationError
from app.domain.entities.booking_draft import BookingDraft, BudgetTier, ImpactLevel


FIELD_MESSAGES: dict[str, str] = {
    "day": "Please pick a day.",
    "start_time": "Please pick a time.",
    "full_name": "Name must be at least 2 characters long.",
    "phone": "Phone number must be at least 10 digits long.",
    "company_email": "Enter a valid email address.",
    "company_name": "Company name must be at least 2 characters long.",
    "company_website": "Enter a valid URL (e.g. https://example.ro).",
    "impact_level": "Please select an option.",
    "budget_tier": "Please select a budget.",
}

_URL = TypeAdapter(HttpUrl)


class ContactDetails(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    full_name: str = Field(min_length=2)
    phone: str = Field(min_length=10)
    company_email: EmailStr
    company_name: str = Field(min_length=2)
    company_website: str = ""

    @field_validator("company_website")
    @classmethod
    def _website_empty_or_url(cls, value: str) -> str:
        if not value:
            return ""
        try:
            _URL.validate_python(value)
        except PydanticValidationError as e:
            raise ValueError("invalid url") from e
        return value


class QualificationAnswer(BaseModel):
    impact_level: ImpactLevel


class BudgetAnswer(BaseModel):
    budget_tier: BudgetTier


def _collect(exc: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = err.get("loc") or ("__root__",)
        name = str(loc[0])
        errors.setdefault(name, FIELD_MESSAGES.get(name, err.get("msg", "Invalid value.")))
    return errors


def parse_contact_details(raw: Mapping[str, Any]) -> ContactDetails:
    try:
        return ContactDetails.model_validate(dict(raw))
    except PydanticValidationError as e:
        raise BookingValidationError(_collect(e)) from e


def parse_impact_level(raw: Any) -> ImpactLevel:
    try:
        return QualificationAnswer.model_validate({"impact_level": raw}).impact_level
    except PydanticValidationError as e:
        raise BookingValidationError(_collect(e)) from e


def parse_budget_tier(raw: Any) -> BudgetTier:
    try:
        return BudgetAnswer.model_validate({"budget_tier": raw}).budget_tier
    except PydanticValidationError as e:
        raise BookingValidationError(_collect(e)) from e


def validate_draft(draft: BookingDraft) -> None:
    """Validate every field of a finished draft at once. Raises BookingValidationError."""
    errors: dict[str, str] = {}
    if draft.day is None:
        errors["day"] = FIELD_MESSAGES["day"]
    if draft.start_time is None:
        errors["start_time"] = FIELD_MESSAGES["start_time"]
    checks = (
        lambda: parse_contact_details(contact_payload(draft)),
        lambda: parse_impact_level(draft.impact_level),
        lambda: parse_budget_tier(draft.budget_tier),
    )
    for check in checks:
        try:
            check()
        except BookingValidationError as e:
            errors.update(e.errors)
    if errors:
        raise BookingValidationError(errors)


def contact_payload(draft: BookingDraft) -> dict[str, str]:
    return {
        "full_name": draft.full_name,
        "phone": draft.phone,
        "company_email": draft.company_email,
        "company_name": draft.company_name,
        "company_website": draft.company_website,
    }
