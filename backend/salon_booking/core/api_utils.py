"""
Common API utilities for consistent response formatting across controllers.
"""

import logging
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from salon_booking.core.exceptions import (
    BookingError,
    ConflictError,
    TransientStoreError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def api_response(
    success: bool, message: str, data: Optional[Any] = None, status_code: int = 200
) -> tuple:
    """
    Standardized API response format for all endpoints.

    Returns:
        Tuple of (json_response, status_code)
    """
    response: Dict[str, Any] = {"success": success, "message": message}

    if data is not None:
        response["data"] = data

    return jsonify(response), status_code


def error_response(error: str, message: str, status_code: int, **details) -> tuple:
    response: Dict[str, Any] = {"success": False, "error": error, "message": message}
    if details:
        response["details"] = details
    return jsonify(response), status_code


def get_json_payload() -> Dict[str, Any]:
    """Return the request JSON object or raise ValidationError."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def register_error_handlers(app: Flask) -> None:
    """Map the booking error taxonomy to HTTP responses."""

    @app.errorhandler(BookingError)
    def handle_booking_error(exc: BookingError):
        context = {"path": request.path, "error": exc.kind, "reason": exc.message}
        if isinstance(exc, ConflictError):
            logger.warning("Booking conflict", extra={"context": context})
        elif isinstance(exc, TransientStoreError):
            logger.error("Store unavailable", extra={"context": context})
        else:
            logger.info("Request rejected", extra={"context": context})

        details = {}
        if isinstance(exc, ValidationError) and exc.field:
            details["field"] = exc.field
        return error_response(exc.kind, exc.message, exc.status_code, **details)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return error_response(
            exc.name.lower().replace(" ", "_"),
            exc.description or exc.name,
            exc.code or 500,
        )

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        logger.error(
            "Unhandled error",
            extra={"context": {"path": request.path, "error": str(exc)}},
            exc_info=True,
        )
        return error_response("server_error", "Internal server error", 500)
