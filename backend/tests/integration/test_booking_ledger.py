"""
Integration tests for BookingLedger.

Runs the registry and the ledger against SQLite to check that an
appointment row and the schedule never disagree about whether a slot is
free, including when several bookings race for the same slot.
"""

import threading
from datetime import date

import pytest
from sqlalchemy import func, select

from salon_booking.core.exceptions import ConflictError, NotFoundError, ValidationError
from salon_booking.db.base import AppointmentRecord
from salon_booking.schemas.dtos import AppointmentCreateRequest, AppointmentUpdateRequest
from salon_booking.services.appointment_service import BookingLedger
from salon_booking.services.availability_service import AvailabilityRegistry
from salon_booking.services.notification_service import NotificationDispatcher

DAY = date(2025, 6, 10)
SALON_INBOX = "salon@example.com"


def count_appointments(database) -> int:
    with database.transaction() as session:
        return session.scalar(select(func.count()).select_from(AppointmentRecord))


def book(ledger, booking_payload, **overrides):
    return ledger.create_appointment(
        AppointmentCreateRequest.from_payload(booking_payload(**overrides))
    )


@pytest.mark.integration
@pytest.mark.appointment
class TestBookingScenarios:
    def test_booking_consumes_the_slot(self, registry, ledger, booking_payload):
        registry.set_schedule("2025-06-10", ["09:00", "10:00"])

        appointment = book(ledger, booking_payload)

        assert appointment.id is not None
        assert appointment.slot == (DAY, "09:00")
        assert registry.get_available_times("2025-06-10") == ["10:00"]

    def test_repeat_booking_conflicts(
        self, registry, ledger, database, booking_payload
    ):
        registry.set_schedule("2025-06-10", ["09:00", "10:00"])
        book(ledger, booking_payload)

        with pytest.raises(ConflictError):
            book(ledger, booking_payload, client_name="Someone Else")

        assert count_appointments(database) == 1
        assert registry.get_available_times("2025-06-10") == ["10:00"]

    def test_cancellation_restores_the_slot(self, registry, ledger, booking_payload):
        registry.set_schedule("2025-06-10", ["09:00", "10:00"])
        appointment = book(ledger, booking_payload)

        ledger.delete_appointment(appointment.id)

        assert registry.get_available_times("2025-06-10") == ["09:00", "10:00"]

    def test_missing_contact_stores_nothing(
        self, registry, ledger, database, booking_payload
    ):
        registry.set_schedule("2025-06-10", ["09:00", "10:00"])

        with pytest.raises(ValidationError):
            book(ledger, booking_payload, client_email="", client_phone="")

        assert count_appointments(database) == 0
        assert registry.get_available_times("2025-06-10") == ["09:00", "10:00"]

    def test_round_trip_restores_availability(self, registry, ledger, booking_payload):
        registry.set_schedule(DAY, ["09:00", "10:00", "11:00"])
        before = set(registry.get_available_times(DAY))

        appointment = book(ledger, booking_payload, time="11:00")
        ledger.delete_appointment(appointment.id)

        assert set(registry.get_available_times(DAY)) == before

    def test_time_not_offered_is_refused(
        self, registry, ledger, database, booking_payload
    ):
        registry.set_schedule(DAY, ["09:00", "10:00"])

        with pytest.raises(ConflictError, match="not offered"):
            book(ledger, booking_payload, time="15:00")

        assert count_appointments(database) == 0
        assert registry.get_schedule(DAY).slots == ["09:00", "10:00"]

    def test_move_to_time_not_offered_changes_nothing(
        self, registry, ledger, booking_payload
    ):
        registry.set_schedule(DAY, ["09:00", "10:00"])
        appointment = book(ledger, booking_payload)

        with pytest.raises(ConflictError, match="not offered"):
            ledger.update_appointment(
                appointment.id, AppointmentUpdateRequest.from_payload({"time": "15:00"})
            )

        assert ledger.get_appointment(appointment.id).time == "09:00"
        assert registry.get_available_times(DAY) == ["10:00"]

        ledger.delete_appointment(appointment.id)
        assert registry.get_schedule(DAY).slots == ["09:00", "10:00"]

    def test_booking_without_schedule_is_allowed(
        self, registry, ledger, booking_payload
    ):
        appointment = book(ledger, booking_payload, date="2025-07-01")

        assert appointment.date == date(2025, 7, 1)
        assert registry.get_available_times("2025-07-01") == []

    def test_cancel_after_schedule_removed(self, registry, ledger, booking_payload):
        registry.set_schedule(DAY, ["09:00"])
        appointment = book(ledger, booking_payload)
        registry.delete_schedule(DAY)

        ledger.delete_appointment(appointment.id)

        assert registry.get_available_times(DAY) == []

    def test_delete_unknown_id(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.delete_appointment(404)


@pytest.mark.integration
@pytest.mark.appointment
class TestQueriesAndEdits:
    def test_list_ordered_by_date_and_time(self, ledger, booking_payload):
        book(ledger, booking_payload, date="2025-06-11", time="09:00")
        book(ledger, booking_payload, date="2025-06-10", time="15:00")
        book(ledger, booking_payload, date="2025-06-10", time="10:00")

        slots = [(a.date.isoformat(), a.time) for a in ledger.list_appointments()]
        assert slots == [
            ("2025-06-10", "10:00"),
            ("2025-06-10", "15:00"),
            ("2025-06-11", "09:00"),
        ]
        assert len(ledger.list_appointments(date(2025, 6, 10))) == 2

    def test_reserved_slots_hide_client_details(self, ledger, booking_payload):
        book(ledger, booking_payload, service="Pedicure")

        (slot,) = ledger.list_reserved_slots()
        assert (slot.date, slot.time, slot.service) == (DAY, "09:00", "Pedicure")
        assert not hasattr(slot, "client_email")

    def test_move_swaps_availability(self, registry, ledger, booking_payload):
        registry.set_schedule(DAY, ["09:00", "10:00", "11:00"])
        appointment = book(ledger, booking_payload)

        moved = ledger.update_appointment(
            appointment.id, AppointmentUpdateRequest.from_payload({"hora": "11:00"})
        )

        assert moved.time == "11:00"
        assert moved.updated_at is not None
        assert registry.get_available_times(DAY) == ["09:00", "10:00"]

    def test_move_onto_booked_slot_changes_nothing(
        self, registry, ledger, booking_payload
    ):
        registry.set_schedule(DAY, ["09:00", "10:00", "11:00"])
        first = book(ledger, booking_payload, time="09:00")
        book(ledger, booking_payload, time="10:00")

        with pytest.raises(ConflictError):
            ledger.update_appointment(
                first.id, AppointmentUpdateRequest.from_payload({"time": "10:00"})
            )

        assert ledger.get_appointment(first.id).time == "09:00"
        assert registry.get_available_times(DAY) == ["11:00"]

    def test_edit_details_in_place(self, ledger, booking_payload):
        appointment = book(ledger, booking_payload)

        updated = ledger.update_appointment(
            appointment.id,
            AppointmentUpdateRequest.from_payload({"service": "Gel", "note": "Nude"}),
        )

        assert updated.slot == appointment.slot
        assert (updated.service, updated.note) == ("Gel", "Nude")

    def test_get_unknown_id(self, ledger):
        with pytest.raises(NotFoundError):
            ledger.get_appointment(123)


@pytest.mark.integration
@pytest.mark.appointment
class TestNotifications:
    def test_booking_and_cancellation_notify(
        self, registry, ledger, notifier, booking_payload
    ):
        appointment = book(ledger, booking_payload)
        assert notifier.wait_for(2)

        ledger.delete_appointment(appointment.id)
        assert notifier.wait_for(4)

        subjects = [subject for _, subject, _ in notifier.sent]
        assert any("new appointment" in s for s in subjects)
        assert any("cancelled" in s for s in subjects)
        assert notifier.destinations().count(SALON_INBOX) == 2

    def test_failed_delivery_keeps_booking(
        self, database, registry, failing_notifier, booking_payload
    ):
        ledger = BookingLedger(
            database,
            registry,
            NotificationDispatcher(failing_notifier, salon_inbox=SALON_INBOX),
        )

        appointment = book(ledger, booking_payload)

        assert failing_notifier.wait_for(2)
        assert ledger.get_appointment(appointment.id).id == appointment.id


@pytest.mark.integration
@pytest.mark.appointment
@pytest.mark.slow
class TestConcurrentBooking:
    WORKERS = 8

    def test_exactly_one_concurrent_booking_wins(self, file_database, booking_payload):
        registry = AvailabilityRegistry(file_database)
        ledger = BookingLedger(file_database, registry)
        registry.set_schedule(DAY, ["09:00", "10:00"])

        barrier = threading.Barrier(self.WORKERS)
        results = []
        lock = threading.Lock()

        def attempt(n):
            request = AppointmentCreateRequest.from_payload(
                booking_payload(client_name=f"Client {n}")
            )
            barrier.wait()
            try:
                ledger.create_appointment(request)
                outcome = "booked"
            except ConflictError:
                outcome = "conflict"
            with lock:
                results.append(outcome)

        threads = [
            threading.Thread(target=attempt, args=(n,)) for n in range(self.WORKERS)
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)

        assert results.count("booked") == 1
        assert results.count("conflict") == self.WORKERS - 1
        assert count_appointments(file_database) == 1
        assert registry.get_available_times(DAY) == ["10:00"]
