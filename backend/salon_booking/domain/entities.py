"""
Domain entities - pure booking concepts, no framework dependencies.

These are the objects the registry and the ledger hand back to callers;
they are detached from any database session.
"""

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Appointment:
    """A booked (date, time) slot and the client who holds it."""

    id: Optional[int] = None
    date: Optional[dt.date] = None
    time: str = ""
    service: str = ""
    client_name: str = ""
    client_email: Optional[str] = None
    client_phone: Optional[str] = None
    note: Optional[str] = None
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    @property
    def slot(self) -> tuple:
        return (self.date, self.time)


@dataclass
class AvailabilitySet:
    """Time labels still offered for one calendar date, ascending."""

    date: dt.date
    slots: List[str] = field(default_factory=list)
    created_at: Optional[dt.datetime] = None
    updated_at: Optional[dt.datetime] = None

    def __post_init__(self):
        # Unique and ordered regardless of how the caller built it
        self.slots = sorted(set(self.slots))


@dataclass(frozen=True)
class ReservedSlot:
    """Public view of a booked slot, without client details."""

    date: dt.date
    time: str
    service: str
