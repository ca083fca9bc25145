"""
Service wiring.

`build_services` constructs the process-wide object graph once; controllers
reach it through `get_services()` instead of module-level globals.
"""

from dataclasses import dataclass

from flask import current_app

from salon_booking.db.session import Database
from salon_booking.services.appointment_service import BookingLedger
from salon_booking.services.availability_service import AvailabilityRegistry
from salon_booking.services.notification_service import NotificationDispatcher

EXTENSION_KEY = "salon_booking"


@dataclass
class Services:
    database: Database
    registry: AvailabilityRegistry
    ledger: BookingLedger
    notifications: NotificationDispatcher


def build_services(database: Database, notifications: NotificationDispatcher) -> Services:
    registry = AvailabilityRegistry(database)
    ledger = BookingLedger(database, registry, notifications)
    return Services(
        database=database,
        registry=registry,
        ledger=ledger,
        notifications=notifications,
    )


def get_services() -> Services:
    """Return the services bound to the current Flask app."""
    return current_app.extensions[EXTENSION_KEY]
