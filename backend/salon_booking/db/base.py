from __future__ import annotations

import datetime as dt
from typing import Optional

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from .session import Base


class AppointmentRecord(Base):
    """A booked slot. At most one row may exist per (date, time)."""

    __tablename__ = "appointments"
    __table_args__ = (
        UniqueConstraint("date", "time", name="uq_appointments_date_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False, index=True)
    time: Mapped[str] = mapped_column(String(5), nullable=False)
    service: Mapped[str] = mapped_column(String(100), nullable=False)
    client_name: Mapped[str] = mapped_column(String(100), nullable=False)
    client_email: Mapped[Optional[str]] = mapped_column(String(254), nullable=True)
    client_phone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )


class ScheduleRecord(Base):
    """Bookable times configured for one calendar date."""

    __tablename__ = "schedules"

    date: Mapped[dt.date] = mapped_column(Date, primary_key=True)
    created_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[Optional[dt.datetime]] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )


class ScheduleSlotRecord(Base):
    """One offered time label. Deleted when booked, re-inserted on cancel."""

    __tablename__ = "schedule_slots"
    __table_args__ = (
        UniqueConstraint("schedule_date", "time", name="uq_schedule_slots_date_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    schedule_date: Mapped[dt.date] = mapped_column(
        Date, ForeignKey("schedules.date", ondelete="CASCADE"), nullable=False
    )
    time: Mapped[str] = mapped_column(String(5), nullable=False)
