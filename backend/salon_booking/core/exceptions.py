"""
Custom exceptions for the booking core.

Every error the registry and the ledger raise derives from BookingError so
the transport layer can map them to responses in one place.
"""

from typing import Optional


class BookingError(Exception):
    """Base class for errors surfaced by the booking core."""

    kind = "booking_error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """A required field is missing or malformed. Not retryable as-is."""

    kind = "validation_error"
    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ConflictError(BookingError):
    """The slot is booked or not offered. Retry with a different slot."""

    kind = "conflict"
    status_code = 409


class NotFoundError(BookingError):
    """The targeted appointment or schedule does not exist."""

    kind = "not_found"
    status_code = 404


class TransientStoreError(BookingError):
    """
    The store could not be reached or timed out.

    Reads are safe to retry. Writes must re-check availability first since
    the commit outcome may be unknown.
    """

    kind = "store_unavailable"
    status_code = 503
