"""
Common validation utilities for booking payloads.

Each helper either returns the cleaned value or raises ValidationError
naming the offending field.
"""

import logging
import re
from datetime import date, datetime
from typing import Any, Iterable, List, Optional

from salon_booking.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

TIME_LABEL_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
PHONE_ALLOWED_RE = re.compile(r"^[\d\s+\-()]+$")

MAX_NAME_LENGTH = 100
MAX_SERVICE_LENGTH = 100
MAX_NOTE_LENGTH = 1000


def _fail(message: str, field: Optional[str]) -> None:
    logger.debug(
        "Validation failed", extra={"context": {"field": field, "reason": message}}
    )
    raise ValidationError(message, field)


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def require_text(value: Any, field_name: str, max_length: int) -> str:
    """Validate that a required text field is present and not empty."""
    if is_blank(value):
        _fail(f"{field_name} is required", field_name)
    if not isinstance(value, str):
        _fail(f"{field_name} must be a string", field_name)
    cleaned = value.strip()
    if len(cleaned) > max_length:
        _fail(f"{field_name} must be at most {max_length} characters", field_name)
    return cleaned


def optional_text(value: Any, field_name: str, max_length: int) -> Optional[str]:
    if is_blank(value):
        return None
    return require_text(value, field_name, max_length)


def parse_date(value: Any, field_name: str = "date") -> date:
    """Validate and convert an ISO 8601 calendar date (YYYY-MM-DD)."""
    if is_blank(value):
        _fail(f"{field_name} is required", field_name)

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, str):
        try:
            return datetime.strptime(value.strip(), "%Y-%m-%d").date()
        except ValueError:
            pass
    _fail(f"{field_name} must be a date in YYYY-MM-DD format", field_name)


def parse_time_label(value: Any, field_name: str = "time") -> str:
    """
    Validate a slot label.

    Labels are 24h HH:MM strings. A single-digit hour ("9:00") is accepted
    and zero padded so stored labels sort correctly.
    """
    if is_blank(value):
        _fail(f"{field_name} is required", field_name)
    if not isinstance(value, str):
        _fail(f"{field_name} must be a string in HH:MM format", field_name)

    label = value.strip()
    if re.match(r"^\d:[0-5]\d$", label):
        label = "0" + label
    if not TIME_LABEL_RE.match(label):
        _fail(f"{field_name} must be a time in HH:MM format", field_name)
    return label


def normalize_slots(values: Any, field_name: str = "slots") -> List[str]:
    """
    Validate a collection of slot labels.

    Duplicates collapse silently; the result is sorted ascending.
    """
    if values is None or isinstance(values, (str, bytes)) or not isinstance(
        values, Iterable
    ):
        _fail(f"{field_name} must be a list of HH:MM times", field_name)

    labels = {parse_time_label(v, field_name) for v in values}
    if not labels:
        _fail(f"{field_name} must contain at least one time", field_name)
    return sorted(labels)


def validate_email(value: Any, field_name: str = "client_email") -> Optional[str]:
    if is_blank(value):
        return None
    email = require_text(value, field_name, 254)
    if not EMAIL_RE.match(email):
        _fail("Invalid email format", field_name)
    return email.lower()


def validate_phone(value: Any, field_name: str = "client_phone") -> Optional[str]:
    if is_blank(value):
        return None
    phone = require_text(value, field_name, 32)
    digits = re.sub(r"\D", "", phone)
    if not PHONE_ALLOWED_RE.match(phone) or not 6 <= len(digits) <= 20:
        _fail("Invalid phone number", field_name)
    return phone


def require_contact(email: Optional[str], phone: Optional[str]) -> None:
    """At least one contact channel is mandatory."""
    if not email and not phone:
        _fail("A contact email or phone is required", "contact")
