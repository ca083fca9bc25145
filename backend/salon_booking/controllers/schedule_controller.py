"""
Schedule controller: administrative schedule management and the public
available-times lookup.
"""

from flask import Blueprint

from salon_booking.core.api_utils import api_response, get_json_payload
from salon_booking.core.auth_decorators import admin_required
from salon_booking.schemas.dtos import ScheduleRequest, ScheduleResponse
from salon_booking.services import get_services

schedule_bp = Blueprint("schedules", __name__, url_prefix="/api/schedules")
availability_bp = Blueprint("availability", __name__, url_prefix="/api/availability")


@schedule_bp.route("", methods=["POST"])
@admin_required
def set_schedule():
    """Create or overwrite the bookable times for a date."""
    schedule_request = ScheduleRequest.from_payload(get_json_payload())
    schedule_request.validate()
    schedule = get_services().registry.set_schedule(
        schedule_request.date, schedule_request.slots
    )
    return api_response(
        True, "Schedule saved", ScheduleResponse.from_domain(schedule).to_dict()
    )


@schedule_bp.route("", methods=["GET"])
@admin_required
def list_schedules():
    schedules = get_services().registry.list_schedules()
    return api_response(
        True,
        f"{len(schedules)} schedule(s)",
        [ScheduleResponse.from_domain(s).to_dict() for s in schedules],
    )


@schedule_bp.route("/<day>", methods=["GET"])
@admin_required
def get_schedule(day: str):
    schedule = get_services().registry.get_schedule(day)
    return api_response(
        True, "Schedule found", ScheduleResponse.from_domain(schedule).to_dict()
    )


@schedule_bp.route("/<day>", methods=["DELETE"])
@admin_required
def delete_schedule(day: str):
    schedule = get_services().registry.delete_schedule(day)
    return api_response(
        True, "Schedule deleted", ScheduleResponse.from_domain(schedule).to_dict()
    )


@availability_bp.route("/<day>", methods=["GET"])
def available_times(day: str):
    """Times still bookable on a date; an empty list when none are configured."""
    times = get_services().registry.get_available_times(day)
    return api_response(True, f"{len(times)} available time(s)", {"date": day, "times": times})
