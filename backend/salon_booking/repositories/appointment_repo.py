"""
Appointment repository implementation.
"""

import datetime as dt
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from salon_booking.db.base import AppointmentRecord
from salon_booking.domain.entities import Appointment as DomainAppointment
from salon_booking.domain.entities import ReservedSlot
from salon_booking.domain.interfaces import IAppointmentRepository


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations.

    Works inside the caller's session: writes are flushed so constraint
    violations surface immediately, but committing is left to the service.
    """

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def get_by_id(
        self, appointment_id: int, for_update: bool = False
    ) -> Optional[DomainAppointment]:
        record = self._get_record(appointment_id, for_update)
        return self._to_domain(record) if record else None

    def get_by_slot(
        self, day: dt.date, time: str, exclude_id: Optional[int] = None
    ) -> Optional[DomainAppointment]:
        stmt = select(AppointmentRecord).where(
            AppointmentRecord.date == day, AppointmentRecord.time == time
        )
        if exclude_id is not None:
            stmt = stmt.where(AppointmentRecord.id != exclude_id)
        record = self.db.scalars(stmt).first()
        return self._to_domain(record) if record else None

    def list_all(self, day: Optional[dt.date] = None) -> List[DomainAppointment]:
        stmt = select(AppointmentRecord).order_by(
            AppointmentRecord.date.asc(), AppointmentRecord.time.asc()
        )
        if day is not None:
            stmt = stmt.where(AppointmentRecord.date == day)
        return [self._to_domain(r) for r in self.db.scalars(stmt).all()]

    def booked_times(self, day: dt.date) -> List[str]:
        return list(
            self.db.scalars(
                select(AppointmentRecord.time)
                .where(AppointmentRecord.date == day)
                .order_by(AppointmentRecord.time.asc())
            ).all()
        )

    def reserved_slots(self) -> List[ReservedSlot]:
        rows = self.db.execute(
            select(
                AppointmentRecord.date,
                AppointmentRecord.time,
                AppointmentRecord.service,
            ).order_by(AppointmentRecord.date.asc(), AppointmentRecord.time.asc())
        ).all()
        return [ReservedSlot(date=r.date, time=r.time, service=r.service) for r in rows]

    def add(self, appointment: DomainAppointment) -> DomainAppointment:
        record = AppointmentRecord(
            date=appointment.date,
            time=appointment.time,
            service=appointment.service,
            client_name=appointment.client_name,
            client_email=appointment.client_email,
            client_phone=appointment.client_phone,
            note=appointment.note,
        )
        self.db.add(record)
        self.db.flush()
        self.db.refresh(record)
        return self._to_domain(record)

    def update(self, appointment: DomainAppointment) -> DomainAppointment:
        record = self._get_record(appointment.id)
        if record is None:
            raise ValueError(f"Appointment {appointment.id} does not exist")

        record.date = appointment.date
        record.time = appointment.time
        record.service = appointment.service
        record.client_name = appointment.client_name
        record.client_email = appointment.client_email
        record.client_phone = appointment.client_phone
        record.note = appointment.note
        record.updated_at = dt.datetime.now(dt.timezone.utc)
        self.db.flush()
        return self._to_domain(record)

    def delete(self, appointment_id: int) -> bool:
        record = self._get_record(appointment_id)
        if record is None:
            return False
        self.db.delete(record)
        self.db.flush()
        return True

    def _get_record(
        self, appointment_id: int, for_update: bool = False
    ) -> Optional[AppointmentRecord]:
        stmt = select(AppointmentRecord).where(AppointmentRecord.id == appointment_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.scalars(stmt).first()

    def _to_domain(self, record: AppointmentRecord) -> DomainAppointment:
        return DomainAppointment(
            id=record.id,
            date=record.date,
            time=record.time,
            service=record.service,
            client_name=record.client_name,
            client_email=record.client_email,
            client_phone=record.client_phone,
            note=record.note,
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
