"""
Central pytest configuration for the salon booking tests.

Provides the store, registry, ledger and Flask client fixtures shared by
the unit and integration suites, and registers the test markers.
"""

import os
import threading
from typing import List, Tuple

import pytest

# Set early so anything reading the environment at import time sees test values
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "0"  # Disable rate limiting in tests
os.environ["LOG_TO_FILE"] = "0"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-for-the-salon-booking-suite"
os.environ.pop("ADMIN_AUTH_DISABLED", None)
os.environ.pop("SMTP_USER", None)
os.environ.pop("SMTP_PASSWORD", None)
os.environ.pop("SENTRY_DSN", None)

from salon_booking.db.session import Database  # noqa: E402
from salon_booking.domain.interfaces import INotifier  # noqa: E402
from salon_booking.main import create_app  # noqa: E402
from salon_booking.services import EXTENSION_KEY  # noqa: E402
from salon_booking.services.appointment_service import BookingLedger  # noqa: E402
from salon_booking.services.availability_service import (  # noqa: E402
    AvailabilityRegistry,
)
from salon_booking.services.notification_service import (  # noqa: E402
    NotificationDispatcher,
)

SALON_INBOX = "salon@example.com"


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "services: mark test as service layer test")
    config.addinivalue_line("markers", "repositories: mark test as repository test")
    config.addinivalue_line("markers", "controllers: mark test as controller-related")
    config.addinivalue_line("markers", "appointment: mark test as appointment-related")
    config.addinivalue_line("markers", "schedule: mark test as schedule-related")
    config.addinivalue_line("markers", "security: mark test as security-related")
    config.addinivalue_line("markers", "slow: mark test as slow running")


# =====================================================
# NOTIFICATION FIXTURES
# =====================================================


class RecordingNotifier(INotifier):
    """Collects sent messages; optionally fails every delivery."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Tuple[str, str, str]] = []
        self._cond = threading.Condition()

    def send(self, destination: str, subject: str, body: str) -> None:
        with self._cond:
            self.sent.append((destination, subject, body))
            self._cond.notify_all()
        if self.fail:
            raise ConnectionError("SMTP relay unreachable")

    def wait_for(self, count: int, timeout: float = 5.0) -> bool:
        """Block until `count` messages were attempted."""
        with self._cond:
            return self._cond.wait_for(lambda: len(self.sent) >= count, timeout)

    def destinations(self) -> List[str]:
        with self._cond:
            return [d for d, _, _ in self.sent]


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def failing_notifier():
    return RecordingNotifier(fail=True)


@pytest.fixture
def dispatcher(notifier):
    return NotificationDispatcher(notifier, salon_name="NailsCata", salon_inbox=SALON_INBOX)


# =====================================================
# STORE AND SERVICES
# =====================================================


@pytest.fixture
def database():
    """Fresh in-memory store with the schema created."""
    db = Database("sqlite:///:memory:")
    db.create_tables()
    yield db
    db.drop_tables()
    db.dispose()


@pytest.fixture
def file_database(tmp_path):
    """File-backed SQLite store; several connections can race on it."""
    db = Database(f"sqlite:///{tmp_path / 'salon_test.db'}")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def registry(database):
    return AvailabilityRegistry(database)


@pytest.fixture
def ledger(database, registry, dispatcher):
    return BookingLedger(database, registry, dispatcher)


@pytest.fixture
def booking_payload():
    """Factory for valid booking payloads."""

    def _make(**overrides):
        payload = {
            "date": "2025-06-10",
            "time": "09:00",
            "service": "Manicure",
            "client_name": "Ana Perez",
            "client_email": "ana@example.com",
            "client_phone": "+56 9 1234 5678",
        }
        payload.update(overrides)
        return payload

    return _make


# =====================================================
# FLASK APP FIXTURES
# =====================================================


@pytest.fixture
def app(dispatcher):
    """App with the admin guard off; see `secured_app` for guard tests."""
    flask_app = create_app(
        database_url="sqlite:///:memory:",
        notifications=dispatcher,
        config_overrides={"ADMIN_AUTH_DISABLED": True},
        configure_logging=False,
    )
    yield flask_app
    flask_app.extensions[EXTENSION_KEY].database.dispose()


@pytest.fixture
def secured_app(dispatcher):
    flask_app = create_app(
        database_url="sqlite:///:memory:",
        notifications=dispatcher,
        config_overrides={"ADMIN_AUTH_DISABLED": False},
        configure_logging=False,
    )
    yield flask_app
    flask_app.extensions[EXTENSION_KEY].database.dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def services(app):
    return app.extensions[EXTENSION_KEY]
