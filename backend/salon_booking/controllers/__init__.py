# Controllers package: one blueprint module per resource

from .appointment_controller import appointment_bp
from .health_controller import health_bp
from .schedule_controller import availability_bp, schedule_bp

__all__ = ["appointment_bp", "availability_bp", "health_bp", "schedule_bp"]
