"""
Data Transfer Objects (DTOs) and validation schemas.

Requests are built from raw JSON payloads and validated in place:
`validate()` normalizes every field or raises ValidationError. Responses
turn domain entities into JSON-ready dicts.
"""

import datetime as dt
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Mapping, Optional

from salon_booking.core import validation as v
from salon_booking.core.exceptions import ValidationError

# Field names accepted from the original frontend
FIELD_ALIASES = {
    "fecha": "date",
    "hora": "time",
    "servicio": "service",
    "nombre": "client_name",
    "name": "client_name",
    "email": "client_email",
    "telefono": "client_phone",
    "phone": "client_phone",
    "message": "note",
    "notes": "note",
}


def normalize_payload(data: Mapping[str, Any]) -> Dict[str, Any]:
    """Map alias keys onto canonical field names (canonical keys win)."""
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        canonical = FIELD_ALIASES.get(key)
        if canonical is None:
            normalized[key] = value
        elif canonical not in data:
            normalized[canonical] = value
    return normalized


@dataclass
class AppointmentCreateRequest:
    """DTO for booking requests."""

    date: Any = None
    time: Any = None
    service: Any = None
    client_name: Any = None
    client_email: Any = None
    client_phone: Any = None
    note: Any = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "AppointmentCreateRequest":
        normalized = normalize_payload(data)
        known = {f.name for f in fields(cls)}
        return cls(**{k: val for k, val in normalized.items() if k in known})

    def validate(self) -> None:
        """Validate and normalize the request data."""
        self.date = v.parse_date(self.date, "date")
        self.time = v.parse_time_label(self.time, "time")
        self.service = v.require_text(self.service, "service", v.MAX_SERVICE_LENGTH)
        self.client_name = v.require_text(
            self.client_name, "client_name", v.MAX_NAME_LENGTH
        )
        self.client_email = v.validate_email(self.client_email)
        self.client_phone = v.validate_phone(self.client_phone)
        v.require_contact(self.client_email, self.client_phone)
        self.note = v.optional_text(self.note, "note", v.MAX_NOTE_LENGTH)


@dataclass
class AppointmentUpdateRequest:
    """DTO for appointment edits. Omitted fields keep their current value."""

    date: Any = None
    time: Any = None
    service: Any = None
    client_name: Any = None
    client_email: Any = None
    client_phone: Any = None
    note: Any = None
    provided: frozenset = frozenset()

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "AppointmentUpdateRequest":
        normalized = normalize_payload(data)
        known = {f.name for f in fields(cls)} - {"provided"}
        values = {k: val for k, val in normalized.items() if k in known}
        return cls(provided=frozenset(values), **values)

    def validate(self) -> None:
        """Validate the fields that were supplied."""
        if not self.provided:
            raise ValidationError("No fields to update")
        if "date" in self.provided:
            self.date = v.parse_date(self.date, "date")
        if "time" in self.provided:
            self.time = v.parse_time_label(self.time, "time")
        if "service" in self.provided:
            self.service = v.require_text(self.service, "service", v.MAX_SERVICE_LENGTH)
        if "client_name" in self.provided:
            self.client_name = v.require_text(
                self.client_name, "client_name", v.MAX_NAME_LENGTH
            )
        if "client_email" in self.provided:
            self.client_email = v.validate_email(self.client_email)
        if "client_phone" in self.provided:
            self.client_phone = v.validate_phone(self.client_phone)
        if "note" in self.provided:
            self.note = v.optional_text(self.note, "note", v.MAX_NOTE_LENGTH)


@dataclass
class ScheduleRequest:
    """DTO for the administrative set-schedule operation."""

    date: Any = None
    slots: Any = None

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> "ScheduleRequest":
        return cls(
            date=data.get("date", data.get("fecha")),
            slots=data.get("slots", data.get("times", data.get("horarios"))),
        )

    def validate(self) -> None:
        self.date = v.parse_date(self.date, "date")
        self.slots = v.normalize_slots(self.slots, "slots")


def _iso(value: Optional[Any]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass
class AppointmentResponse:
    """DTO for appointment API responses."""

    id: int
    date: str
    time: str
    service: str
    client_name: str
    client_email: Optional[str]
    client_phone: Optional[str]
    note: Optional[str]
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_domain(cls, appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            date=appointment.date.isoformat(),
            time=appointment.time,
            service=appointment.service,
            client_name=appointment.client_name,
            client_email=appointment.client_email,
            client_phone=appointment.client_phone,
            note=appointment.note,
            created_at=_iso(appointment.created_at),
            updated_at=_iso(appointment.updated_at),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class ScheduleResponse:
    """DTO for availability set responses."""

    date: str
    slots: List[str]
    created_at: Optional[str]
    updated_at: Optional[str]

    @classmethod
    def from_domain(cls, schedule) -> "ScheduleResponse":
        return cls(
            date=schedule.date.isoformat(),
            slots=list(schedule.slots),
            created_at=_iso(schedule.created_at),
            updated_at=_iso(schedule.updated_at),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def reserved_slot_to_dict(slot) -> Dict[str, Any]:
    return {"date": slot.date.isoformat(), "time": slot.time, "service": slot.service}


def parse_query_date(value: Optional[str]) -> Optional[dt.date]:
    """Optional ?date= filter."""
    if v.is_blank(value):
        return None
    return v.parse_date(value, "date")
