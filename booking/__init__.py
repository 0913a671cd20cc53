"""Booking workflow and dashboard operations."""

from .service import BookingService, validate_booking_request

__all__ = ["BookingService", "validate_booking_request"]
