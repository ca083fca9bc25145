"""
Availability registry: which (date, time) slots are currently offered.

Schedules are keyed by calendar date. Nothing is cached in process memory;
every call re-reads the store, so several app instances can share one
database.
"""

import datetime as dt
import logging
from contextlib import contextmanager
from typing import Iterable, Iterator, List, Optional

from sqlalchemy.orm import Session

from salon_booking.core.exceptions import NotFoundError
from salon_booking.core.validation import normalize_slots, parse_date, parse_time_label
from salon_booking.db.session import Database
from salon_booking.domain.entities import AvailabilitySet
from salon_booking.repositories.appointment_repo import AppointmentRepository
from salon_booking.repositories.schedule_repo import ScheduleRepository

logger = logging.getLogger(__name__)


class AvailabilityRegistry:
    """Application service owning the schedules.

    `consume_slot` and `restore_slot` accept the caller's session so the
    booking ledger can run them inside its own transaction. Without a
    session they open and commit one of their own.
    """

    def __init__(self, database: Database):
        self.db = database

    @contextmanager
    def _scope(self, session: Optional[Session]) -> Iterator[Session]:
        if session is not None:
            yield session
        else:
            with self.db.transaction() as own:
                yield own

    def set_schedule(self, day, slots: Iterable[str]) -> AvailabilitySet:
        """Create or overwrite the schedule for a date.

        Overwrite wins: times held by existing appointments are not merged
        back in. Callers that want to keep them must include them; the
        ones left out are logged.
        """
        day = parse_date(day, "date")
        labels = normalize_slots(slots, "slots")

        with self.db.transaction() as session:
            schedules = ScheduleRepository(session)
            schedules.lock(day)
            booked = set(AppointmentRepository(session).booked_times(day))
            offered_booked = booked.intersection(labels)
            schedule = schedules.replace(
                day, [t for t in labels if t not in offered_booked]
            )

        orphaned = sorted(booked.difference(labels))
        if orphaned:
            logger.warning(
                "Schedule overwritten without times held by appointments",
                extra={"context": {"date": day.isoformat(), "booked_times": orphaned}},
            )
        logger.info(
            "Schedule set",
            extra={
                "context": {
                    "date": day.isoformat(),
                    "slots": schedule.slots,
                    "already_booked": sorted(offered_booked),
                }
            },
        )
        return schedule

    def get_schedule(self, day) -> AvailabilitySet:
        day = parse_date(day, "date")
        with self.db.transaction() as session:
            schedule = ScheduleRepository(session).get(day)
        if schedule is None:
            raise NotFoundError(f"No schedule configured for {day.isoformat()}")
        return schedule

    def list_schedules(self) -> List[AvailabilitySet]:
        with self.db.transaction() as session:
            return ScheduleRepository(session).list_all()

    def delete_schedule(self, day) -> AvailabilitySet:
        day = parse_date(day, "date")
        with self.db.transaction() as session:
            repo = ScheduleRepository(session)
            schedule = repo.get(day)
            if schedule is None:
                raise NotFoundError(f"No schedule configured for {day.isoformat()}")
            repo.delete(day)

        logger.info(
            "Schedule deleted",
            extra={"context": {"date": day.isoformat(), "slots": schedule.slots}},
        )
        return schedule

    def get_available_times(self, day) -> List[str]:
        """Configured times minus booked ones. Empty when unconfigured."""
        day = parse_date(day, "date")
        with self.db.transaction() as session:
            offered = ScheduleRepository(session).slot_times(day)
            if not offered:
                return []
            booked = set(AppointmentRepository(session).booked_times(day))
        return [t for t in offered if t not in booked]

    def is_configured(self, day, session: Optional[Session] = None) -> bool:
        day = parse_date(day, "date")
        with self._scope(session) as s:
            return ScheduleRepository(s).exists(day)

    def consume_slot(
        self, day: dt.date, time: str, session: Optional[Session] = None
    ) -> bool:
        """Remove a time from the date's schedule. False if it was not offered."""
        day = parse_date(day, "date")
        time = parse_time_label(time)
        with self._scope(session) as s:
            return ScheduleRepository(s).remove_slot(day, time)

    def restore_slot(
        self, day: dt.date, time: str, session: Optional[Session] = None
    ) -> bool:
        """Re-offer a time. Idempotent; a no-op for dates without a schedule."""
        day = parse_date(day, "date")
        time = parse_time_label(time)
        with self._scope(session) as s:
            return ScheduleRepository(s).add_slot(day, time)
