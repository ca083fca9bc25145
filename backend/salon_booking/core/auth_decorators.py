"""
Authentication helpers for staff endpoints.

Clients book and browse availability anonymously. Schedule management and
the appointment list/edit/cancel endpoints require a Bearer JWT whose
payload carries role=admin (see `manage.py issue-admin-token`).

Example:
    @schedule_bp.route("", methods=["POST"])
    @admin_required
    def set_schedule():
        ...
"""

import logging
from functools import wraps

from flask import current_app, g, jsonify, request

from salon_booking.core.security import ADMIN_ROLE, decode_access_token

logger = logging.getLogger(__name__)


def _unauthorized(message: str, status_code: int = 401):
    return (
        jsonify({"success": False, "error": "unauthorized", "message": message}),
        status_code,
    )


def admin_required(f):
    """Decorator to require an admin JWT on an endpoint.

    Skipped entirely when the app runs with ADMIN_AUTH_DISABLED.
    """

    @wraps(f)
    def decorated_function(*args, **kwargs):
        if current_app.config.get("ADMIN_AUTH_DISABLED"):
            g.admin_subject = "anonymous"
            return f(*args, **kwargs)

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return _unauthorized("Missing or invalid Authorization header")

        payload = decode_access_token(auth_header.split(" ", 1)[1].strip())
        if not payload:
            return _unauthorized("Invalid or expired token")

        if payload.get("role") != ADMIN_ROLE:
            logger.warning(
                "Non-admin token rejected",
                extra={"context": {"subject": payload.get("sub"), "path": request.path}},
            )
            return _unauthorized("Admin role required", 403)

        g.admin_subject = payload.get("sub")
        return f(*args, **kwargs)

    return decorated_function
