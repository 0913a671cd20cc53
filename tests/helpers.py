"""
Builders and fakes shared by the test modules.
"""

from datetime import date, datetime
from typing import List, Optional

from models.appointment import Appointment, AppointmentStatus
from models.availability import ScheduleOverride, WeeklyAvailability
from utils.datetime_utils import local_day_bounds


def weekly_row(day_of_week: int, is_available: bool = True, start="09:00", end="18:00"):
    return WeeklyAvailability(
        barber_id="1",
        day_of_week=day_of_week,
        is_available=is_available,
        start_time=start,
        end_time=end,
    )


def override_row(day: date, is_available: bool, start=None, end=None):
    return ScheduleOverride(
        barber_id="1", date=day, is_available=is_available, start_time=start, end_time=end
    )


def appointment_at(
    start: datetime,
    status: AppointmentStatus = AppointmentStatus.CONFIRMED,
    appointment_id: str = "appt_1",
) -> Appointment:
    return Appointment(
        id=appointment_id,
        barber_id="1",
        service_id="svc_1",
        customer_first_name="Jane",
        customer_last_name="Doe",
        customer_email="jane@example.com",
        appt_time=start,
        status=status,
    )


class FakeRepository:
    """In-memory availability repository.

    Appointments are filtered the way the Supabase query filters them:
    cancelled rows are dropped and only the requested local day is kept.
    """

    def __init__(
        self,
        weekly: Optional[List[WeeklyAvailability]] = None,
        overrides: Optional[List[ScheduleOverride]] = None,
        appointments: Optional[List[Appointment]] = None,
        fail_on: Optional[str] = None,
        tz_name: str = "America/New_York",
    ):
        self.weekly = weekly or []
        self.overrides = overrides or []
        self.appointments = appointments or []
        self.fail_on = fail_on
        self.tz_name = tz_name
        self.calls: List[str] = []

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if self.fail_on == name:
            raise RuntimeError(f"{name} unavailable")

    async def get_weekly_availability(self, barber_id):
        self._maybe_fail("weekly")
        return [row for row in self.weekly if row.barber_id == barber_id]

    async def get_schedule_overrides(self, barber_id, date_from, date_to):
        self._maybe_fail("overrides")
        return [
            row
            for row in self.overrides
            if row.barber_id == barber_id and date_from <= row.date <= date_to
        ]

    async def get_appointments(self, barber_id, day):
        self._maybe_fail("appointments")
        day_start, day_end = local_day_bounds(day, self.tz_name)
        return [
            appt
            for appt in self.appointments
            if appt.barber_id == barber_id
            and not appt.is_cancelled
            and day_start <= appt.appt_time < day_end
        ]

