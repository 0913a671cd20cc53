"""
Custom exception classes for better error handling.
Provides specific error types instead of generic exceptions.
"""


class DatabaseError(Exception):
    """Base exception for database operations."""

    pass


class DataFetchError(DatabaseError):
    """Raised when a read against the data store fails.

    A failed read must never be interpreted as "no rows".
    """

    pass


class BarberNotFoundError(DatabaseError):
    """Raised when a barber is not found."""

    pass


class ServiceNotFoundError(DatabaseError):
    """Raised when a service is not found."""

    pass


class AppointmentNotFoundError(DatabaseError):
    """Raised when an appointment is not found."""

    pass


class AppointmentCreationError(DatabaseError):
    """Raised when appointment creation fails."""

    pass


class ScheduleUpdateError(DatabaseError):
    """Raised when a weekly availability or override write fails."""

    pass


class MalformedScheduleError(Exception):
    """Raised when an available schedule row is missing its start or end time."""

    pass


class StaleRequestError(Exception):
    """Raised when a query result was superseded by a newer request."""

    pass


class NotificationError(Exception):
    """Raised when the booking email function cannot be invoked."""

    pass


class AuthenticationError(Exception):
    """Raised when an admin access token is missing or rejected."""

    pass


class ValidationError(Exception):
    """Raised when input validation fails."""

    pass
