"""
Health controller - liveness and database connectivity checks.
"""

import logging

from flask import Blueprint, jsonify

from salon_booking import __version__
from salon_booking.core.config import get_salon_name
from salon_booking.services import get_services

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__)


@health_bp.route("/", methods=["GET"])
def index():
    return f"{get_salon_name()} booking backend is running!"


@health_bp.route("/health", methods=["GET"])
def health_check():
    """
    Report whether the database answers.

    Status codes:
        200: database reachable
        503: database unreachable
    """
    database_ok = get_services().database.ping()
    status = "healthy" if database_ok else "degraded"

    if not database_ok:
        logger.error(
            "Health check failed: database unreachable",
            extra={"context": {"endpoint": "/health"}},
        )

    return (
        jsonify({"status": status, "database": database_ok, "version": __version__}),
        200 if database_ok else 503,
    )
