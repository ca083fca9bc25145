"""
Booking ledger: appointment lifecycle and the one-appointment-per-slot rule.
"""

import logging
from dataclasses import replace
from typing import List, Optional

from sqlalchemy.exc import IntegrityError

from salon_booking.core.exceptions import ConflictError, NotFoundError
from salon_booking.core.validation import require_contact
from salon_booking.db.session import Database
from salon_booking.domain.entities import Appointment, ReservedSlot
from salon_booking.repositories.appointment_repo import AppointmentRepository
from salon_booking.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentUpdateRequest,
)
from salon_booking.services.availability_service import AvailabilityRegistry
from salon_booking.services.notification_service import NotificationDispatcher

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Slot already booked"
SLOT_NOT_OFFERED_MESSAGE = "Time is not offered on that date"


class BookingLedger:
    """Application service for appointment use-cases.

    Every mutation runs in a single transaction: the uniqueness check, the
    row change and the matching schedule change commit together or not at
    all. The store's UNIQUE(date, time) constraint backs the check up when
    two requests race for the same slot.
    """

    def __init__(
        self,
        database: Database,
        registry: AvailabilityRegistry,
        notifications: Optional[NotificationDispatcher] = None,
    ):
        self.db = database
        self.registry = registry
        self.notifications = notifications

    def create_appointment(self, request: AppointmentCreateRequest) -> Appointment:
        """Book a slot.

        Raises:
            ValidationError: missing or malformed field (nothing is stored)
            ConflictError: the slot is already booked, or the date has a
                schedule that does not offer the time
        """
        request.validate()

        try:
            with self.db.transaction() as session:
                repo = AppointmentRepository(session)
                if repo.get_by_slot(request.date, request.time) is not None:
                    raise ConflictError(SLOT_TAKEN_MESSAGE)

                created = repo.add(
                    Appointment(
                        date=request.date,
                        time=request.time,
                        service=request.service,
                        client_name=request.client_name,
                        client_email=request.client_email,
                        client_phone=request.client_phone,
                        note=request.note,
                    )
                )
                consumed = self._take_slot(session, request.date, request.time)
        except IntegrityError as e:
            logger.warning(
                "Concurrent booking lost the race for a slot",
                extra={"context": {"date": str(request.date), "time": request.time}},
            )
            raise ConflictError(SLOT_TAKEN_MESSAGE) from e

        logger.info(
            "Appointment booked",
            extra={
                "context": {
                    "appointment_id": created.id,
                    "date": created.date.isoformat(),
                    "time": created.time,
                    "service": created.service,
                    "slot_was_scheduled": consumed,
                }
            },
        )
        self._notify("appointment_booked", created)
        return created

    def list_appointments(self, day=None) -> List[Appointment]:
        """All appointments ordered by (date, time), optionally for one date."""
        with self.db.transaction() as session:
            return AppointmentRepository(session).list_all(day)

    def get_appointment(self, appointment_id: int) -> Appointment:
        with self.db.transaction() as session:
            appointment = AppointmentRepository(session).get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError(f"Appointment {appointment_id} not found")
        return appointment

    def list_reserved_slots(self) -> List[ReservedSlot]:
        """Booked (date, time, service) triples, safe to expose publicly."""
        with self.db.transaction() as session:
            return AppointmentRepository(session).reserved_slots()

    def delete_appointment(self, appointment_id: int) -> Appointment:
        """Cancel an appointment and give its slot back to the schedule."""
        with self.db.transaction() as session:
            repo = AppointmentRepository(session)
            appointment = repo.get_by_id(appointment_id, for_update=True)
            if appointment is None:
                raise NotFoundError(f"Appointment {appointment_id} not found")

            repo.delete(appointment_id)
            restored = self.registry.restore_slot(
                appointment.date, appointment.time, session=session
            )

        logger.info(
            "Appointment cancelled",
            extra={
                "context": {
                    "appointment_id": appointment.id,
                    "date": appointment.date.isoformat(),
                    "time": appointment.time,
                    "slot_restored": restored,
                }
            },
        )
        self._notify("appointment_cancelled", appointment)
        return appointment

    def update_appointment(
        self, appointment_id: int, request: AppointmentUpdateRequest
    ) -> Appointment:
        """Edit an appointment; moving it releases the old slot and takes the new one.

        Raises:
            ValidationError: a supplied field is malformed
            NotFoundError: no appointment with that id
            ConflictError: the target slot belongs to another appointment or
                is not offered
        """
        request.validate()

        try:
            with self.db.transaction() as session:
                repo = AppointmentRepository(session)
                current = repo.get_by_id(appointment_id, for_update=True)
                if current is None:
                    raise NotFoundError(f"Appointment {appointment_id} not found")

                changes = {
                    name: getattr(request, name)
                    for name in request.provided
                }
                target = replace(current, **changes)
                require_contact(target.client_email, target.client_phone)

                moved = (target.date, target.time) != (current.date, current.time)
                if moved:
                    if (
                        repo.get_by_slot(target.date, target.time, exclude_id=current.id)
                        is not None
                    ):
                        raise ConflictError(SLOT_TAKEN_MESSAGE)
                    self.registry.restore_slot(current.date, current.time, session=session)
                    self._take_slot(session, target.date, target.time)

                updated = repo.update(target)
        except IntegrityError as e:
            raise ConflictError(SLOT_TAKEN_MESSAGE) from e

        logger.info(
            "Appointment updated",
            extra={
                "context": {
                    "appointment_id": updated.id,
                    "fields": sorted(request.provided),
                    "moved": moved,
                }
            },
        )
        if moved:
            self._notify("appointment_rescheduled", current, updated)
        return updated

    def _take_slot(self, session, day, time: str) -> bool:
        """Consume a slot; a configured date must actually offer the time."""
        if self.registry.consume_slot(day, time, session=session):
            return True
        if self.registry.is_configured(day, session=session):
            logger.warning(
                "Booking refused for a time the schedule does not offer",
                extra={"context": {"date": str(day), "time": time}},
            )
            raise ConflictError(SLOT_NOT_OFFERED_MESSAGE)
        return False

    def _notify(self, event_name: str, *appointments: Appointment) -> None:
        """Hand off to the dispatcher; never lets a failure reach the caller."""
        if self.notifications is None:
            return
        try:
            getattr(self.notifications, event_name)(*appointments)
        except Exception as e:
            logger.error(
                "Failed to schedule notification",
                extra={"context": {"event": event_name, "error": str(e)}},
                exc_info=True,
            )
