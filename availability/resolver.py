"""
Availability resolver.

Turns a barber's weekly defaults, date overrides and existing appointments
into bookable dates and hourly slots. The resolver holds no state: every
query re-reads its inputs through the injected repository.

Precedence for a single date:
    1. a schedule override for that date decides on its own
    2. otherwise an available weekly row for the weekday opens the day
    3. otherwise the day is closed
"""

import logging
from datetime import date, datetime, time
from typing import Dict, Iterable, List, Optional, Union

from db.repository import AvailabilityRepository
from models.appointment import Appointment
from models.availability import (
    AvailabilitySource,
    BookableDate,
    DayAvailability,
    ScheduleOverride,
    Slot,
    WeeklyAvailability,
)
from utils.datetime_utils import iter_dates, parse_date, to_local
from utils.exceptions import DataFetchError, MalformedScheduleError

logger = logging.getLogger(__name__)

DateLike = Union[str, date]


def day_of_week(day: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def resolve_day(
    weekly_by_day: Dict[int, WeeklyAvailability],
    overrides_by_date: Dict[date, ScheduleOverride],
    day: date,
) -> DayAvailability:
    """Apply the override / weekly / closed precedence to one date."""
    override = overrides_by_date.get(day)
    if override is not None:
        if not override.is_available:
            return DayAvailability(is_available=False, source=AvailabilitySource.OVERRIDE)
        return DayAvailability(
            is_available=True,
            start_time=override.start_time,
            end_time=override.end_time,
            source=AvailabilitySource.OVERRIDE,
        )

    weekly = weekly_by_day.get(day_of_week(day))
    if weekly is not None and weekly.is_available:
        return DayAvailability(
            is_available=True,
            start_time=weekly.start_time,
            end_time=weekly.end_time,
            source=AvailabilitySource.WEEKLY,
        )

    return DayAvailability(is_available=False, source=AvailabilitySource.CLOSED)


def slot_hours(day: DayAvailability) -> range:
    """
    Hours h with start_hour <= h < end_hour of an available day.

    Raises:
        MalformedScheduleError: If the day is available but has no window
    """
    if not day.is_available:
        return range(0)
    if not day.has_window:
        raise MalformedScheduleError("Available day is missing its start or end time")
    return range(day.start_time.hour, day.end_time.hour)


def build_slots(
    day: DayAvailability,
    appointments: Iterable[Appointment],
    tz_name: Optional[str] = None,
) -> List[Slot]:
    """
    Partition the day's window into hourly slots and mark booked hours.

    An appointment occupies only the hour bucket its start falls in (local
    time), whatever its duration. Cancelled appointments are ignored.
    """
    try:
        hours = slot_hours(day)
    except MalformedScheduleError as e:
        logger.warning(f"{e}; returning no slots")
        return []

    booked = {
        to_local(appt.appt_time, tz_name).hour
        for appt in appointments
        if not appt.is_cancelled
    }
    return [Slot.for_hour(hour, hour not in booked) for hour in hours]


def is_date_in_past(day: date, today: date) -> bool:
    """True for dates strictly before ``today``."""
    return day < today


def disable_past_slots(slots: List[Slot], day: date, now: datetime) -> List[Slot]:
    """
    Mark slots that already started as unavailable.

    Only slots on ``now``'s own date are affected. ``now`` must be the
    caller's local wall-clock time.
    """
    if day != now.date():
        return list(slots)

    current = now.time().replace(tzinfo=None)
    return [
        Slot(start_time=slot.start_time, is_available=False)
        if time(slot.hour) < current
        else slot
        for slot in slots
    ]


class AvailabilityResolver:
    """Answers date and slot availability queries for one shop."""

    def __init__(self, repository: AvailabilityRepository, tz_name: Optional[str] = None):
        """
        Initialize resolver.

        Args:
            repository: Source of weekly rows, overrides and appointments
            tz_name: Local zone appointment start hours are bucketed in
        """
        self.repository = repository
        self.tz_name = tz_name

    async def _load_weekly(self, barber_id: str) -> Dict[int, WeeklyAvailability]:
        rows = await self._fetch(self.repository.get_weekly_availability(barber_id))
        return {row.day_of_week: row for row in rows}

    async def _load_overrides(
        self, barber_id: str, date_from: date, date_to: date
    ) -> Dict[date, ScheduleOverride]:
        rows = await self._fetch(
            self.repository.get_schedule_overrides(barber_id, date_from, date_to)
        )
        return {row.date: row for row in rows}

    async def _fetch(self, coro):
        # Any read failure aborts the whole query
        try:
            return await coro
        except DataFetchError:
            raise
        except Exception as e:
            raise DataFetchError(f"Failed to load availability data: {e}") from e

    async def resolve_day_availability(self, barber_id: str, day: DateLike) -> DayAvailability:
        """Resolve whether ``day`` is open for the barber, and its window."""
        day = parse_date(day)
        weekly = await self._load_weekly(barber_id)
        overrides = await self._load_overrides(barber_id, day, day)
        return resolve_day(weekly, overrides, day)

    async def list_bookable_dates(
        self, barber_id: str, start_date: DateLike, end_date: DateLike
    ) -> List[date]:
        """
        Dates in [start_date, end_date] whose resolved availability is open.

        Returns an empty list when the range is inverted.
        """
        start_date = parse_date(start_date)
        end_date = parse_date(end_date)
        if end_date < start_date:
            return []

        weekly = await self._load_weekly(barber_id)
        overrides = await self._load_overrides(barber_id, start_date, end_date)

        return [
            day
            for day in iter_dates(start_date, end_date)
            if resolve_day(weekly, overrides, day).is_available
        ]

    async def list_bookable_calendar(
        self, barber_id: str, start_date: DateLike, end_date: DateLike
    ) -> List[BookableDate]:
        """Bookable dates with the labels the date picker shows."""
        dates = await self.list_bookable_dates(barber_id, start_date, end_date)
        return [BookableDate.from_date(day) for day in dates]

    async def compute_slots(self, barber_id: str, day: DateLike) -> List[Slot]:
        """Hourly slots of ``day`` in ascending order; empty when closed."""
        day = parse_date(day)
        availability = await self.resolve_day_availability(barber_id, day)
        if not availability.is_available:
            return []

        appointments = await self._fetch(self.repository.get_appointments(barber_id, day))
        slots = build_slots(availability, appointments, self.tz_name)

        logger.debug(
            f"Resolved {len(slots)} slots for barber {barber_id} on {day.isoformat()}"
        )
        return slots
