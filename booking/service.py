"""
Booking workflow and admin schedule/appointment operations.

The public booking form lists barbers and services, asks the resolver for
bookable dates and slots, and submits an appointment. The dashboard edits
weekly defaults and date overrides and manages appointments.

Appointments are plain inserts: there is no slot reservation, so two
customers submitting the same slot at the same time both get booked.
"""

from datetime import date, datetime, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from availability.resolver import AvailabilityResolver
from config import settings
from db.supabase_client import SupabaseClient
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus, BookingRequest
from models.availability import (
    BookableDate,
    ScheduleOverride,
    Slot,
    WeeklyAvailability,
    WeeklyAvailabilityUpdate,
)
from models.barber import Barber, BarberCreate
from models.service import Service
from notifications.email import send_booking_email
from utils.constants import EMAIL_CANCELLED, EMAIL_NEW_BOOKING, MAX_DATE_RANGE_DAYS, MAX_NAME_LENGTH
from utils.datetime_utils import local_now, localize, parse_date, parse_time_of_day
from utils.exceptions import (
    AppointmentNotFoundError,
    BarberNotFoundError,
    DataFetchError,
    NotificationError,
    ServiceNotFoundError,
    ValidationError,
)
from utils.logging_config import setup_logging
from utils.validation import sanitize_text, validate_email, validate_phone

logger = setup_logging(
    name=__name__, log_level=settings.log_level, log_file="booking.log", log_dir=settings.log_dir
)


def validate_booking_request(request: BookingRequest) -> None:
    """
    Check a booking form submission, reporting the first problem found.

    Raises:
        ValidationError: With a message suitable for the customer
    """
    if not request.barber_id:
        raise ValidationError("Please select a barber")
    if not request.service_id:
        raise ValidationError("Please select a service")
    if not request.date:
        raise ValidationError("Please select a date")
    if not request.time:
        raise ValidationError("Please select a time")
    if not request.first_name.strip():
        raise ValidationError("First name is required")
    if not request.last_name.strip():
        raise ValidationError("Last name is required")
    if not request.email.strip():
        raise ValidationError("Email is required")
    if not validate_email(request.email):
        raise ValidationError("Please enter a valid email address")
    if request.phone and not validate_phone(request.phone):
        raise ValidationError("Please enter a valid phone number")


class BookingService:
    """Booking and dashboard operations on top of Supabase."""

    def __init__(self, db: SupabaseClient, resolver: Optional[AvailabilityResolver] = None):
        self.db = db
        self.resolver = resolver or AvailabilityResolver(db, tz_name=db.tz_name)

    # ========== Public Listings ==========

    async def list_barbers(self) -> List[Barber]:
        return await self.db.get_barbers()

    async def count_barbers(self) -> int:
        return await self.db.get_barber_count()

    async def list_services(self) -> List[Service]:
        return await self.db.get_services()

    # ========== Availability ==========

    def _default_range(
        self, start: Optional[date], end: Optional[date]
    ) -> Tuple[date, date]:
        today = local_now(self.db.tz_name).date()
        start = start or today
        end = end or start + timedelta(days=settings.booking_window_days - 1)
        return start, end

    async def get_available_dates(
        self,
        barber_id: str,
        start: Union[str, date, None] = None,
        end: Union[str, date, None] = None,
    ) -> List[BookableDate]:
        """
        Bookable dates of a barber for the date picker.

        Without a range the configured booking window starting today is used.

        Raises:
            ValidationError: If the range is longer than a year
        """
        try:
            start = parse_date(start) if start else None
            end = parse_date(end) if end else None
        except ValueError as e:
            raise ValidationError(str(e)) from e

        start, end = self._default_range(start, end)
        if (end - start).days >= MAX_DATE_RANGE_DAYS:
            raise ValidationError(f"Date range may not exceed {MAX_DATE_RANGE_DAYS} days")

        return await self.resolver.list_bookable_calendar(barber_id, start, end)

    async def get_slots(self, barber_id: str, day: Union[str, date]) -> List[Slot]:
        try:
            day = parse_date(day)
        except ValueError as e:
            raise ValidationError(str(e)) from e
        return await self.resolver.compute_slots(barber_id, day)

    # ========== Booking ==========

    async def create_appointment(self, request: BookingRequest) -> Appointment:
        """
        Book an appointment from a booking form submission.

        The end time is the start plus the service duration. The new
        appointment is saved as pending and the barber is emailed; a failed
        email is logged and does not undo the booking.

        Raises:
            ValidationError: If the submission is incomplete or invalid
            ServiceNotFoundError: If the service does not exist
            AppointmentCreationError: If the insert fails
        """
        validate_booking_request(request)

        try:
            day = parse_date(request.date)
            start_at = parse_time_of_day(request.time)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        service = await self.db.get_service_by_id(request.service_id)
        if service is None:
            raise ServiceNotFoundError(f"Service {request.service_id} not found")

        appt_time = localize(day, start_at, self.db.tz_name)
        end_time = appt_time + service.length

        appointment = await self.db.create_appointment(
            AppointmentCreate(
                barber_id=request.barber_id,
                service_id=request.service_id,
                customer_first_name=sanitize_text(request.first_name, MAX_NAME_LENGTH),
                customer_last_name=sanitize_text(request.last_name, MAX_NAME_LENGTH),
                customer_email=request.email.strip(),
                customer_phone=sanitize_text(request.phone or "") or None,
                appt_time=appt_time,
                end_time=end_time,
                status=AppointmentStatus.PENDING,
            )
        )
        logger.info(
            f"Booked appointment {appointment.id} with barber {request.barber_id} "
            f"at {appt_time.isoformat()}"
        )

        await self._notify(EMAIL_NEW_BOOKING, appointment)
        return appointment

    async def _notify(self, kind: str, appointment: Appointment) -> None:
        try:
            await send_booking_email(self.db, kind, appointment)
        except NotificationError as e:
            logger.error(f"Failed to send {kind} email: {e}", exc_info=True)

    # ========== Weekly Availability (admin) ==========

    async def get_weekly_availability(self, barber_id: str) -> List[WeeklyAvailability]:
        return await self.db.get_weekly_availability(barber_id)

    async def set_weekly_availability(
        self,
        barber_id: str,
        entries: Iterable[Union[WeeklyAvailabilityUpdate, Dict[str, Any]]],
    ) -> List[WeeklyAvailability]:
        """Replace the weekly rows given; days not listed keep their row."""
        updates = [self._weekly_entry(entry) for entry in entries]
        rows = await self.db.set_weekly_availability(barber_id, updates)
        logger.info(f"Updated {len(rows)} weekly availability rows for barber {barber_id}")
        return rows

    async def update_weekly_availability(
        self, barber_id: str, day_of_week: int, updates: Dict[str, Any]
    ) -> WeeklyAvailability:
        """Change some fields of one weekday, keeping the others."""
        current = {
            row.day_of_week: row for row in await self.db.get_weekly_availability(barber_id)
        }.get(day_of_week)

        merged = {"day_of_week": day_of_week, "is_available": False}
        if current is not None:
            merged.update(
                is_available=current.is_available,
                start_time=current.start_time,
                end_time=current.end_time,
            )
        merged.update({k: v for k, v in updates.items() if k != "day_of_week"})

        return await self.db.upsert_weekly_availability(barber_id, self._weekly_entry(merged))

    def _weekly_entry(
        self, entry: Union[WeeklyAvailabilityUpdate, Dict[str, Any]]
    ) -> WeeklyAvailabilityUpdate:
        try:
            if not isinstance(entry, WeeklyAvailabilityUpdate):
                entry = WeeklyAvailabilityUpdate(**entry)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid weekly availability: {e}") from e

        if entry.is_available and entry.start_time and entry.end_time:
            if entry.start_time >= entry.end_time:
                raise ValidationError("Start time must be before end time")
        return entry

    # ========== Schedule Overrides (admin) ==========

    async def upsert_schedule_override(
        self,
        barber_id: str,
        day: Union[str, date],
        is_available: bool,
        start_time: Any = None,
        end_time: Any = None,
    ) -> ScheduleOverride:
        """
        Open or close one date regardless of the weekly default.

        Raises:
            ValidationError: If an open date lacks a valid window
        """
        try:
            day = parse_date(day)
            start = parse_time_of_day(start_time)
            end = parse_time_of_day(end_time)
        except ValueError as e:
            raise ValidationError(str(e)) from e

        if is_available:
            if start is None or end is None:
                raise ValidationError("Start and end time are required for an available day")
            if start >= end:
                raise ValidationError("Start time must be before end time")

        override = await self.db.upsert_schedule_override(barber_id, day, is_available, start, end)
        logger.info(
            f"Schedule override for barber {barber_id} on {day.isoformat()}: "
            f"{'open' if is_available else 'closed'}"
        )
        return override

    async def get_schedule_overrides(
        self,
        barber_id: str,
        start: Union[str, date, None] = None,
        end: Union[str, date, None] = None,
    ) -> List[ScheduleOverride]:
        try:
            start = parse_date(start) if start else None
            end = parse_date(end) if end else None
        except ValueError as e:
            raise ValidationError(str(e)) from e

        start, end = self._default_range(start, end)
        return await self.db.get_schedule_overrides(barber_id, start, end)

    # ========== Appointments (admin) ==========

    async def list_appointments(
        self,
        status: Optional[str] = None,
        barber_id: Optional[str] = None,
        date_from: Union[str, date, None] = None,
        date_to: Union[str, date, None] = None,
    ) -> List[Appointment]:
        """
        Appointments for the dashboard, newest first.

        ``date_from`` and ``date_to`` are local calendar dates; both ends are
        inclusive.
        """
        try:
            status_filter = AppointmentStatus(status) if status else None
            start_day = parse_date(date_from) if date_from else None
            end_day = parse_date(date_to) if date_to else None
        except ValueError as e:
            raise ValidationError(str(e)) from e

        tz_name = self.db.tz_name
        range_start: Optional[datetime] = None
        range_end: Optional[datetime] = None
        if start_day:
            range_start = localize(start_day, datetime.min.time(), tz_name)
        if end_day:
            range_end = localize(end_day, datetime.max.time(), tz_name)

        return await self.db.get_all_appointments(
            status=status_filter, barber_id=barber_id, date_from=range_start, date_to=range_end
        )

    async def update_appointment_status(
        self, appointment_id: str, status: Union[str, AppointmentStatus]
    ) -> Appointment:
        try:
            status = AppointmentStatus(status)
        except ValueError as e:
            raise ValidationError(f"Invalid status: {status}") from e

        if status == AppointmentStatus.CANCELLED:
            return await self.cancel_appointment(appointment_id)

        appointment = await self.db.update_appointment(appointment_id, {"status": status.value})
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

        logger.info(f"Appointment {appointment_id} marked {status.value}")
        return appointment

    async def cancel_appointment(self, appointment_id: str) -> Appointment:
        """Cancel an appointment (frees its slot) and email the barber."""
        updated = await self.db.update_appointment(
            appointment_id, {"status": AppointmentStatus.CANCELLED.value}
        )
        if updated is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

        try:
            appointment = await self.db.get_appointment_by_id(appointment_id) or updated
        except DataFetchError as e:
            logger.warning(f"Appointment {appointment_id} cancelled but re-read failed: {e}")
            appointment = updated
        logger.info(f"Appointment {appointment_id} cancelled")

        await self._notify(EMAIL_CANCELLED, appointment)
        return appointment

    async def delete_appointment(self, appointment_id: str) -> None:
        """Delete an appointment, then email the barber about the cancellation."""
        appointment = await self.db.get_appointment_by_id(appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(f"Appointment {appointment_id} not found")

        await self.db.delete_appointment(appointment_id)
        logger.info(f"Appointment {appointment_id} deleted")

        await self._notify(EMAIL_CANCELLED, appointment)

    # ========== Barbers (admin) ==========

    async def create_barber(self, data: Union[BarberCreate, Dict[str, Any]]) -> Barber:
        try:
            if not isinstance(data, BarberCreate):
                data = BarberCreate(**data)
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Invalid barber: {e}") from e

        if not validate_email(data.email):
            raise ValidationError("Please enter a valid email address")

        barber = await self.db.create_barber(data)
        logger.info(f"Created barber {barber.id} ({barber.full_name})")
        return barber

    async def update_barber(self, barber_id: str, updates: Dict[str, Any]) -> Barber:
        allowed = set(BarberCreate.model_fields)
        unknown = set(updates) - allowed
        if unknown:
            raise ValidationError(f"Unknown barber fields: {', '.join(sorted(unknown))}")

        barber = await self.db.update_barber(barber_id, updates)
        if barber is None:
            raise BarberNotFoundError(f"Barber {barber_id} not found")
        return barber

    async def delete_barber(self, barber_id: str) -> None:
        if not await self.db.delete_barber(barber_id):
            raise BarberNotFoundError(f"Barber {barber_id} not found")
        logger.info(f"Deleted barber {barber_id}")
