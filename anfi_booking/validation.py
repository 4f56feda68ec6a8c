"""
Booking form schema and field-level error messages.
"""

import datetime
from typing import Any, Optional

from pydantic import BaseModel, EmailStr, Field, ValidationError

from .config import MIN_GUESTS, MAX_GUESTS


class BookingForm(BaseModel):
    guests: int = Field(strict=True, ge=MIN_GUESTS, le=MAX_GUESTS)
    date: str = Field(min_length=1)
    time: str = Field(min_length=1)
    contact_name: str = Field(min_length=2)
    contact_phone: str = Field(min_length=10)
    contact_email: EmailStr
    special_requests: Optional[str] = None


FIELD_MESSAGES = {
    "guests": "At least 1 guest required",
    "date": "Please select a date",
    "time": "Please select a time",
    "contact_name": "Name is required",
    "contact_phone": "Valid phone number required",
    "contact_email": "Valid email required",
}

# Messages that depend on which bound was broken
BOUND_MESSAGES = {
    ("guests", "greater_than_equal"): f"At least {MIN_GUESTS} guest required",
    ("guests", "less_than_equal"): f"Maximum {MAX_GUESTS} guests",
}

PAST_DATE_MESSAGE = "Please select a future date"


def _errors_by_field(exc: ValidationError) -> dict[str, str]:
    errors = {}
    for err in exc.errors():
        if not err["loc"]:
            continue
        name = str(err["loc"][0])
        if name in errors:
            continue
        errors[name] = BOUND_MESSAGES.get((name, err["type"]), FIELD_MESSAGES.get(name, err["msg"]))
    return errors


def validate_booking_form(data: dict[str, Any]) -> tuple[Optional[BookingForm], dict[str, str]]:
    """Validate the whole form. Returns (form, {}) or (None, {field: message})."""
    try:
        return BookingForm.model_validate(data), {}
    except ValidationError as e:
        return None, _errors_by_field(e)


def validate_field(name: str, data: dict[str, Any]) -> Optional[str]:
    """Check one field (on blur). Other fields' problems are ignored."""
    _, errors = validate_booking_form(data)
    return errors.get(name)


def validate_booking_date(value: str, today: datetime.date) -> Optional[str]:
    """Date picker rule: compare calendar days, never timestamps."""
    if not value:
        return FIELD_MESSAGES["date"]
    try:
        day = datetime.date.fromisoformat(value)
    except ValueError:
        return FIELD_MESSAGES["date"]
    if day < today:
        return PAST_DATE_MESSAGE
    return None
