"""
Read capabilities the availability resolver depends on.

``SupabaseClient`` satisfies this protocol; tests pass in-memory fakes.
"""

from datetime import date
from typing import List, Protocol

from models.appointment import Appointment
from models.availability import ScheduleOverride, WeeklyAvailability


class AvailabilityRepository(Protocol):
    """Snapshot reads for one barber. Implementations raise DataFetchError on failure."""

    async def get_weekly_availability(self, barber_id: str) -> List[WeeklyAvailability]:
        ...

    async def get_schedule_overrides(
        self, barber_id: str, date_from: date, date_to: date
    ) -> List[ScheduleOverride]:
        ...

    async def get_appointments(self, barber_id: str, day: date) -> List[Appointment]:
        """Non-cancelled appointments starting on ``day`` in the shop's local zone."""
        ...
