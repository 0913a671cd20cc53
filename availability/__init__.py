"""Availability resolution for barber schedules."""

from .guard import LatestRequestGuard
from .resolver import (
    AvailabilityResolver,
    build_slots,
    day_of_week,
    disable_past_slots,
    is_date_in_past,
    resolve_day,
)

__all__ = [
    "AvailabilityResolver",
    "LatestRequestGuard",
    "build_slots",
    "day_of_week",
    "disable_past_slots",
    "is_date_in_past",
    "resolve_day",
]
