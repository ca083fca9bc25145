from .entities import Appointment, AvailabilitySet, ReservedSlot

__all__ = ["Appointment", "AvailabilitySet", "ReservedSlot"]
