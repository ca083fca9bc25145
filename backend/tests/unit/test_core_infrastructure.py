"""
Unit tests for configuration getters, log formatters and the store handle.
"""

import json
import logging

import pytest
from sqlalchemy import text
from sqlalchemy.exc import IntegrityError, OperationalError

from salon_booking.core import config
from salon_booking.core.exceptions import TransientStoreError
from salon_booking.core.logging_config import ConsoleFormatter, JSONFormatter
from salon_booking.db.session import mask_url_password


def make_record(msg="Appointment booked", context=None, level=logging.INFO):
    record = logging.LogRecord(
        name="salon_booking.test",
        level=level,
        pathname=__file__,
        lineno=10,
        msg=msg,
        args=(),
        exc_info=None,
    )
    if context is not None:
        record.context = context
    return record


@pytest.mark.unit
class TestConfig:
    def test_database_url_default(self, monkeypatch):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        assert config.get_database_url() == "sqlite:///./salon.db"

    def test_smtp_disabled_without_credentials(self, monkeypatch):
        monkeypatch.delenv("SMTP_USER", raising=False)
        monkeypatch.delenv("SMTP_PASSWORD", raising=False)
        settings = config.get_smtp_settings()
        assert not settings.enabled
        assert settings.port == 587

    def test_smtp_settings_from_env(self, monkeypatch):
        monkeypatch.setenv("SMTP_USER", "mailer@example.com")
        monkeypatch.setenv("SMTP_PASSWORD", "pw")
        monkeypatch.setenv("SMTP_PORT", "not-a-port")
        monkeypatch.setenv("NOTIFY_EMAIL", "salon@example.com")
        monkeypatch.setenv("NOTIFY_CLIENT", "false")
        monkeypatch.setenv("SALON_NAME", "Nails Studio")
        monkeypatch.delenv("NOTIFY_FROM", raising=False)

        settings = config.get_smtp_settings()

        assert settings.enabled
        assert settings.port == 587
        assert settings.salon_inbox == "salon@example.com"
        assert settings.notify_client is False
        assert settings.sender == "Nails Studio <mailer@example.com>"

    @pytest.mark.parametrize("value,expected", [("1", True), ("true", True), ("0", False)])
    def test_admin_auth_flag(self, monkeypatch, value, expected):
        monkeypatch.setenv("ADMIN_AUTH_DISABLED", value)
        assert config.get_admin_auth_disabled() is expected

    def test_booking_rate_limit_default(self, monkeypatch):
        monkeypatch.delenv("BOOKING_RATE_LIMIT", raising=False)
        assert config.get_booking_rate_limit() == "10 per minute"


@pytest.mark.unit
class TestFormatters:
    def test_json_formatter_includes_context(self):
        output = JSONFormatter().format(make_record(context={"appointment_id": 7}))
        data = json.loads(output)
        assert data["message"] == "Appointment booked"
        assert data["level"] == "INFO"
        assert data["context"] == {"appointment_id": 7}

    def test_console_formatter_appends_context_without_mutating_record(self):
        record = make_record(context={"date": "2025-06-10"})
        output = ConsoleFormatter("%(levelname)s %(message)s").format(record)
        assert '{"date": "2025-06-10"}' in output
        assert record.levelname == "INFO"


@pytest.mark.unit
@pytest.mark.repositories
class TestDatabase:
    def test_mask_url_password(self):
        masked = mask_url_password("postgresql://salon:s3cret@db:5432/salon")
        assert masked == "postgresql://salon:***@db:5432/salon"

    def test_ping(self, database):
        assert database.ping() is True

    def test_transaction_rolls_back_on_error(self, database):
        with pytest.raises(RuntimeError):
            with database.transaction() as session:
                session.execute(
                    text("INSERT INTO schedules (date) VALUES ('2025-06-10')")
                )
                raise RuntimeError("abort")

        with database.transaction() as session:
            count = session.execute(text("SELECT COUNT(*) FROM schedules")).scalar()
        assert count == 0

    def test_connectivity_failure_is_transient(self, database):
        with pytest.raises(TransientStoreError):
            with database.transaction():
                raise OperationalError("SELECT 1", {}, Exception("server closed"))

    def test_integrity_error_propagates_unchanged(self, database):
        with pytest.raises(IntegrityError):
            with database.transaction():
                raise IntegrityError("INSERT", {}, Exception("UNIQUE"))

    def test_sqlite_foreign_keys_enabled(self, database):
        with database.transaction() as session:
            assert session.execute(text("PRAGMA foreign_keys")).scalar() == 1

