"""Request schemas for the scheduling core."""

from .appointment import AppointmentCreate, AppointmentUpdate
from .availability import AvailabilityCreate, AvailabilityUpdate

__all__ = [
    "AppointmentCreate",
    "AppointmentUpdate",
    "AvailabilityCreate",
    "AvailabilityUpdate",
]
