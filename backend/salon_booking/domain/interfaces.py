"""
Abstract interfaces for repositories and collaborators.

Repositories operate on a session owned by the caller: they flush but never
commit, so the services decide the transaction boundaries.
"""

import datetime as dt
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from .entities import Appointment, AvailabilitySet, ReservedSlot


class IScheduleReader(ABC):
    """Interface for schedule read operations."""

    @abstractmethod
    def get(self, day: dt.date) -> Optional[AvailabilitySet]:
        """Get the schedule configured for a date."""

    @abstractmethod
    def list_all(self) -> List[AvailabilitySet]:
        """Get every schedule ordered by date ascending."""

    @abstractmethod
    def slot_times(self, day: dt.date) -> List[str]:
        """Get the offered time labels for a date (empty if unconfigured)."""

    @abstractmethod
    def exists(self, day: dt.date) -> bool:
        """Whether a schedule is configured for a date."""


class IScheduleWriter(ABC):
    """Interface for schedule write operations."""

    @abstractmethod
    def lock(self, day: dt.date) -> bool:
        """Lock the date's schedule row until commit. False if unconfigured."""

    @abstractmethod
    def replace(self, day: dt.date, slots: Iterable[str]) -> AvailabilitySet:
        """Create or overwrite the schedule for a date."""

    @abstractmethod
    def delete(self, day: dt.date) -> bool:
        """Delete the schedule for a date."""

    @abstractmethod
    def remove_slot(self, day: dt.date, time: str) -> bool:
        """Remove one time label. False when it was not offered."""

    @abstractmethod
    def add_slot(self, day: dt.date, time: str) -> bool:
        """Re-add one time label. False when the date has no schedule."""


class IScheduleRepository(IScheduleReader, IScheduleWriter):
    """Complete schedule repository interface."""


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def get_by_id(
        self, appointment_id: int, for_update: bool = False
    ) -> Optional[Appointment]:
        """Get appointment by ID, optionally locking the row."""

    @abstractmethod
    def get_by_slot(
        self, day: dt.date, time: str, exclude_id: Optional[int] = None
    ) -> Optional[Appointment]:
        """Get the appointment holding (day, time), ignoring `exclude_id`."""

    @abstractmethod
    def list_all(self, day: Optional[dt.date] = None) -> List[Appointment]:
        """Get appointments ordered by (date, time), optionally for one date."""

    @abstractmethod
    def booked_times(self, day: dt.date) -> List[str]:
        """Get the time labels booked on a date."""

    @abstractmethod
    def reserved_slots(self) -> List[ReservedSlot]:
        """Get every booked slot without client details."""


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment and return it with its id."""

    @abstractmethod
    def update(self, appointment: Appointment) -> Appointment:
        """Write every field of an existing appointment."""

    @abstractmethod
    def delete(self, appointment_id: int) -> bool:
        """Delete an appointment."""


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface."""


class INotifier(ABC):
    """Outbound message channel (email or similar)."""

    @abstractmethod
    def send(self, destination: str, subject: str, body: str) -> None:
        """Deliver one message. Raises on delivery failure."""
