"""Booking and cancellation emails."""

from .email import build_email_payload, send_booking_email

__all__ = ["build_email_payload", "send_booking_email"]
