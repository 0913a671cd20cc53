"""Pydantic models for data validation and serialization."""

from .appointment import Appointment, AppointmentCreate, AppointmentStatus, BookingRequest
from .availability import (
    AvailabilitySource,
    BookableDate,
    DayAvailability,
    ScheduleOverride,
    Slot,
    WeeklyAvailability,
    WeeklyAvailabilityUpdate,
)
from .barber import Barber, BarberCreate
from .service import Service

__all__ = [
    "Appointment",
    "AppointmentCreate",
    "AppointmentStatus",
    "AvailabilitySource",
    "Barber",
    "BarberCreate",
    "BookableDate",
    "BookingRequest",
    "DayAvailability",
    "ScheduleOverride",
    "Service",
    "Slot",
    "WeeklyAvailability",
    "WeeklyAvailabilityUpdate",
]
