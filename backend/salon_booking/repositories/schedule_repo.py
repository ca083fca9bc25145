"""
Schedule repository: availability sets stored as one row per offered time.
"""

import datetime as dt
from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from salon_booking.db.base import AppointmentRecord, ScheduleRecord, ScheduleSlotRecord
from salon_booking.domain.entities import AvailabilitySet
from salon_booking.domain.interfaces import IScheduleRepository


class ScheduleRepository(IScheduleRepository):
    """Repository for schedule persistence. Flushes, never commits.

    Every write that touches a date's slots first takes the row lock on
    that date's schedule, so an overwrite and a booking on the same date
    run one after the other.
    """

    def __init__(self, db_session: Session) -> None:
        self.db = db_session

    def lock(self, day: dt.date) -> bool:
        return self._locked_record(day) is not None

    def exists(self, day: dt.date) -> bool:
        return (
            self.db.scalar(select(ScheduleRecord.date).where(ScheduleRecord.date == day))
            is not None
        )

    def get(self, day: dt.date) -> Optional[AvailabilitySet]:
        record = self.db.get(ScheduleRecord, day)
        return self._to_domain(record) if record else None

    def list_all(self) -> List[AvailabilitySet]:
        records = self.db.scalars(
            select(ScheduleRecord).order_by(ScheduleRecord.date.asc())
        ).all()
        return [self._to_domain(r) for r in records]

    def slot_times(self, day: dt.date) -> List[str]:
        return list(
            self.db.scalars(
                select(ScheduleSlotRecord.time)
                .where(ScheduleSlotRecord.schedule_date == day)
                .order_by(ScheduleSlotRecord.time.asc())
            ).all()
        )

    def offered_times(self, day: dt.date) -> List[str]:
        """Slot times for a date that no appointment currently holds."""
        booked = select(AppointmentRecord.time).where(AppointmentRecord.date == day)
        return list(
            self.db.scalars(
                select(ScheduleSlotRecord.time)
                .where(
                    ScheduleSlotRecord.schedule_date == day,
                    ScheduleSlotRecord.time.not_in(booked),
                )
                .order_by(ScheduleSlotRecord.time.asc())
            ).all()
        )

    def replace(self, day: dt.date, slots: Iterable[str]) -> AvailabilitySet:
        record = self._locked_record(day)
        if record is None:
            record = ScheduleRecord(date=day)
            self.db.add(record)
        else:
            self.db.execute(
                delete(ScheduleSlotRecord).where(ScheduleSlotRecord.schedule_date == day)
            )
            record.updated_at = dt.datetime.now(dt.timezone.utc)
        self.db.flush()

        self.db.add_all(
            [ScheduleSlotRecord(schedule_date=day, time=t) for t in sorted(set(slots))]
        )
        self.db.flush()
        self.db.refresh(record)
        return self._to_domain(record)

    def delete(self, day: dt.date) -> bool:
        self.db.execute(
            delete(ScheduleSlotRecord).where(ScheduleSlotRecord.schedule_date == day)
        )
        result = self.db.execute(delete(ScheduleRecord).where(ScheduleRecord.date == day))
        return result.rowcount > 0

    def remove_slot(self, day: dt.date, time: str) -> bool:
        if not self.lock(day):
            return False

        result = self.db.execute(
            delete(ScheduleSlotRecord).where(
                ScheduleSlotRecord.schedule_date == day,
                ScheduleSlotRecord.time == time,
            )
        )
        return result.rowcount > 0

    def add_slot(self, day: dt.date, time: str) -> bool:
        if not self.lock(day):
            return False

        existing = self.db.scalar(
            select(ScheduleSlotRecord.id).where(
                ScheduleSlotRecord.schedule_date == day,
                ScheduleSlotRecord.time == time,
            )
        )
        if existing is None:
            self.db.add(ScheduleSlotRecord(schedule_date=day, time=time))
            self.db.flush()
        return True

    def _locked_record(self, day: dt.date) -> Optional[ScheduleRecord]:
        return self.db.scalar(
            select(ScheduleRecord).where(ScheduleRecord.date == day).with_for_update()
        )

    def _to_domain(self, record: ScheduleRecord) -> AvailabilitySet:
        return AvailabilitySet(
            date=record.date,
            slots=self.offered_times(record.date),
            created_at=record.created_at,
            updated_at=record.updated_at,
        )
