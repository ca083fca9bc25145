"""
Appointment controller: HTTP concerns only.

Booking and the public reserved-slot view are anonymous; listing, editing
and cancelling are staff operations. Errors raised by the ledger are turned
into responses by the handlers registered in create_app.
"""

from flask import Blueprint, request

from salon_booking.core.api_utils import api_response, get_json_payload
from salon_booking.core.auth_decorators import admin_required
from salon_booking.core.config import get_booking_rate_limit
from salon_booking.core.limiter_config import limiter
from salon_booking.schemas.dtos import (
    AppointmentCreateRequest,
    AppointmentResponse,
    AppointmentUpdateRequest,
    parse_query_date,
    reserved_slot_to_dict,
)
from salon_booking.services import get_services

appointment_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


@appointment_bp.route("", methods=["POST"])
@limiter.limit(get_booking_rate_limit)
def create_appointment():
    """Book a slot. 201 on success, 400 invalid input, 409 slot taken."""
    create_request = AppointmentCreateRequest.from_payload(get_json_payload())
    appointment = get_services().ledger.create_appointment(create_request)
    return api_response(
        True,
        "Appointment booked",
        AppointmentResponse.from_domain(appointment).to_dict(),
        201,
    )


@appointment_bp.route("", methods=["GET"])
@admin_required
def list_appointments():
    day = parse_query_date(request.args.get("date"))
    appointments = get_services().ledger.list_appointments(day)
    return api_response(
        True,
        f"{len(appointments)} appointment(s)",
        [AppointmentResponse.from_domain(a).to_dict() for a in appointments],
    )


@appointment_bp.route("/reserved", methods=["GET"])
def list_reserved_slots():
    """Booked slots without client details, for the booking form."""
    slots = get_services().ledger.list_reserved_slots()
    return api_response(
        True, f"{len(slots)} reserved slot(s)", [reserved_slot_to_dict(s) for s in slots]
    )


@appointment_bp.route("/<int:appointment_id>", methods=["GET"])
@admin_required
def get_appointment(appointment_id: int):
    appointment = get_services().ledger.get_appointment(appointment_id)
    return api_response(
        True, "Appointment found", AppointmentResponse.from_domain(appointment).to_dict()
    )


@appointment_bp.route("/<int:appointment_id>", methods=["PUT"])
@admin_required
def update_appointment(appointment_id: int):
    update_request = AppointmentUpdateRequest.from_payload(get_json_payload())
    appointment = get_services().ledger.update_appointment(
        appointment_id, update_request
    )
    return api_response(
        True,
        "Appointment updated",
        AppointmentResponse.from_domain(appointment).to_dict(),
    )


@appointment_bp.route("/<int:appointment_id>", methods=["DELETE"])
@admin_required
def delete_appointment(appointment_id: int):
    appointment = get_services().ledger.delete_appointment(appointment_id)
    return api_response(
        True,
        "Appointment cancelled",
        AppointmentResponse.from_domain(appointment).to_dict(),
    )
