"""
Supabase database client with CRUD operations.
Handles all database interactions for barbers, services, weekly
availability, date overrides and appointments.

Row Level Security (RLS) Notes:
==============================
Supabase RLS policies should be configured in the Supabase dashboard to ensure:
1. barbers, services, weekly_availability and schedules are readable by anon
2. appointments can be inserted by anon but read only by authenticated admins
3. every other write requires an authenticated admin session

Example RLS Policies (SQL):
----------------------------
-- Public booking form may read schedules
CREATE POLICY "Anyone can read schedules"
ON schedules FOR SELECT
USING (true);

-- Public booking form may create appointments
CREATE POLICY "Anyone can book"
ON appointments FOR INSERT
WITH CHECK (status = 'pending');

-- Only the dashboard may read appointments
CREATE POLICY "Admins can read appointments"
ON appointments FOR SELECT
USING (auth.role() = 'authenticated');
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Iterable, List, Optional, Tuple

from supabase import Client as SupabaseClientType
from supabase import create_client

from config import settings
from models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from models.availability import ScheduleOverride, WeeklyAvailability, WeeklyAvailabilityUpdate
from models.barber import Barber, BarberCreate
from models.service import Service
from utils.constants import (
    APPOINTMENTS_TABLE,
    BARBERS_TABLE,
    SCHEDULES_CONFLICT,
    SCHEDULES_TABLE,
    SERVICES_TABLE,
    WEEKLY_AVAILABILITY_CONFLICT,
    WEEKLY_AVAILABILITY_TABLE,
)
from utils.datetime_utils import (
    format_time_of_day,
    local_day_bounds,
    parse_iso_datetime,
    parse_time_of_day,
    to_iso_string,
    utc_now,
)
from utils.exceptions import (
    AppointmentCreationError,
    AuthenticationError,
    DatabaseError,
    DataFetchError,
    NotificationError,
    ScheduleUpdateError,
)

logger = logging.getLogger(__name__)

APPOINTMENT_WITH_RELATIONS = (
    "*, barber:barbers(id, first_name, last_name, email), "
    "service:services(id, name, price)"
)


class SupabaseClient:
    """
    Supabase database client wrapper.

    Every read wraps failures in DataFetchError so callers never mistake a
    failed query for an empty table.

    Includes a small in-memory cache for the barber and service listings.
    Availability inputs are never cached.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        key: Optional[str] = None,
        tz_name: Optional[str] = None,
    ):
        self.client: SupabaseClientType = create_client(
            url or settings.supabase_url, key or settings.supabase_key
        )
        self.tz_name = tz_name or settings.timezone

        # Format: {cache_key: (data, expiry_time)}
        self._cache: Dict[str, Tuple[Any, datetime]] = {}
        self._cache_ttl = timedelta(minutes=5)

    # ========== Cache Helpers ==========

    def _get_from_cache(self, key: str) -> Optional[Any]:
        """Get value from cache if not expired."""
        if key not in self._cache:
            return None

        data, expiry = self._cache[key]
        if utc_now() > expiry:
            del self._cache[key]
            return None

        return data

    def _set_cache(self, key: str, value: Any) -> None:
        """Set value in cache with TTL."""
        self._cache[key] = (value, utc_now() + self._cache_ttl)

    def _clear_cache(self, pattern: Optional[str] = None) -> None:
        """Clear cache entries matching pattern, or all if pattern is None."""
        if pattern is None:
            self._cache.clear()
        else:
            for k in [k for k in self._cache if pattern in k]:
                del self._cache[k]

    # ========== Barber Operations ==========

    async def get_barbers(self) -> List[Barber]:
        """Get active barbers, oldest first."""
        cache_key = "barbers:active"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table(BARBERS_TABLE)
                .select("*")
                .eq("is_active", True)
                .order("created_at", desc=False)
                .execute()
            )
            barbers = [Barber(**item) for item in response.data]
        except Exception as e:
            raise DataFetchError(f"Failed to get barbers: {e}") from e

        self._set_cache(cache_key, barbers)
        return barbers

    async def get_barber_count(self) -> int:
        """Count active barbers without fetching rows."""
        try:
            response = (
                self.client.table(BARBERS_TABLE)
                .select("*", count="exact", head=True)
                .eq("is_active", True)
                .execute()
            )
            return response.count or 0
        except Exception as e:
            raise DataFetchError(f"Failed to count barbers: {e}") from e

    async def get_barber_by_id(self, barber_id: str) -> Optional[Barber]:
        """Get barber by ID."""
        try:
            response = (
                self.client.table(BARBERS_TABLE).select("*").eq("id", barber_id).execute()
            )
            if response.data:
                return Barber(**response.data[0])
            return None
        except Exception as e:
            raise DataFetchError(f"Failed to get barber: {e}") from e

    async def create_barber(self, barber_data: BarberCreate) -> Barber:
        """Create a new barber."""
        try:
            data = barber_data.model_dump()
            response = self.client.table(BARBERS_TABLE).insert(data).execute()

            if not response.data:
                raise ValueError("Failed to create barber: no data returned")

            barber = Barber(**response.data[0])
        except Exception as e:
            raise DatabaseError(f"Failed to create barber: {e}") from e

        self._clear_cache("barbers")
        return barber

    async def update_barber(self, barber_id: str, updates: Dict[str, Any]) -> Optional[Barber]:
        """Update barber fields."""
        try:
            response = (
                self.client.table(BARBERS_TABLE)
                .update(updates)
                .eq("id", barber_id)
                .execute()
            )
            barber = Barber(**response.data[0]) if response.data else None
        except Exception as e:
            raise DatabaseError(f"Failed to update barber: {e}") from e

        self._clear_cache("barbers")
        return barber

    async def delete_barber(self, barber_id: str) -> bool:
        """Delete a barber. Returns True if a row was removed."""
        try:
            response = (
                self.client.table(BARBERS_TABLE).delete().eq("id", barber_id).execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to delete barber: {e}") from e

        self._clear_cache("barbers")
        return len(response.data) > 0

    # ========== Service Operations ==========

    async def get_services(self) -> List[Service]:
        """Get active services, cheapest first."""
        cache_key = "services:active"
        cached = self._get_from_cache(cache_key)
        if cached is not None:
            return cached

        try:
            response = (
                self.client.table(SERVICES_TABLE)
                .select("*")
                .eq("is_active", True)
                .order("price", desc=False)
                .execute()
            )
            services = [Service(**item) for item in response.data]
        except Exception as e:
            raise DataFetchError(f"Failed to get services: {e}") from e

        self._set_cache(cache_key, services)
        return services

    async def get_service_by_id(self, service_id: str) -> Optional[Service]:
        """Get service by ID."""
        try:
            response = (
                self.client.table(SERVICES_TABLE).select("*").eq("id", service_id).execute()
            )
            if response.data:
                return Service(**response.data[0])
            return None
        except Exception as e:
            raise DataFetchError(f"Failed to get service: {e}") from e

    # ========== Weekly Availability ==========

    async def get_weekly_availability(self, barber_id: str) -> List[WeeklyAvailability]:
        """Get the weekly default rows of a barber, ordered by weekday."""
        try:
            response = (
                self.client.table(WEEKLY_AVAILABILITY_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .order("day_of_week")
                .execute()
            )
            return [WeeklyAvailability(**item) for item in response.data]
        except Exception as e:
            raise DataFetchError(f"Failed to get weekly availability: {e}") from e

    async def upsert_weekly_availability(
        self, barber_id: str, entry: WeeklyAvailabilityUpdate
    ) -> WeeklyAvailability:
        """Insert or replace the row for one weekday."""
        rows = await self.set_weekly_availability(barber_id, [entry])
        return rows[0]

    async def set_weekly_availability(
        self, barber_id: str, entries: Iterable[WeeklyAvailabilityUpdate]
    ) -> List[WeeklyAvailability]:
        """
        Bulk upsert weekly rows (one per weekday).

        Missing times fall back to the configured default working day.
        """
        records = [
            {
                "barber_id": barber_id,
                "day_of_week": entry.day_of_week,
                "is_available": entry.is_available,
                "start_time": format_time_of_day(
                    entry.start_time or parse_time_of_day(settings.default_day_start)
                ),
                "end_time": format_time_of_day(
                    entry.end_time or parse_time_of_day(settings.default_day_end)
                ),
            }
            for entry in entries
        ]
        if not records:
            return []

        try:
            response = (
                self.client.table(WEEKLY_AVAILABILITY_TABLE)
                .upsert(records, on_conflict=WEEKLY_AVAILABILITY_CONFLICT)
                .execute()
            )

            if not response.data:
                raise ValueError("no data returned")

            return [WeeklyAvailability(**item) for item in response.data]
        except Exception as e:
            raise ScheduleUpdateError(f"Failed to set weekly availability: {e}") from e

    # ========== Schedule Overrides ==========

    async def get_schedule_overrides(
        self, barber_id: str, date_from: date, date_to: date
    ) -> List[ScheduleOverride]:
        """Get date overrides of a barber within [date_from, date_to]."""
        try:
            response = (
                self.client.table(SCHEDULES_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .gte("date", date_from.isoformat())
                .lte("date", date_to.isoformat())
                .order("date")
                .execute()
            )
            return [ScheduleOverride(**item) for item in response.data]
        except Exception as e:
            raise DataFetchError(f"Failed to get schedule overrides: {e}") from e

    async def upsert_schedule_override(
        self,
        barber_id: str,
        day: date,
        is_available: bool,
        start_time: Optional[time] = None,
        end_time: Optional[time] = None,
    ) -> ScheduleOverride:
        """
        Insert or replace the override of one date.

        Closed days store null times.
        """
        data = {
            "barber_id": barber_id,
            "date": day.isoformat(),
            "is_available": is_available,
            "start_time": format_time_of_day(start_time) if is_available else None,
            "end_time": format_time_of_day(end_time) if is_available else None,
        }

        try:
            response = (
                self.client.table(SCHEDULES_TABLE)
                .upsert(data, on_conflict=SCHEDULES_CONFLICT)
                .execute()
            )

            if not response.data:
                raise ValueError("no data returned")

            return ScheduleOverride(**response.data[0])
        except Exception as e:
            raise ScheduleUpdateError(f"Failed to update schedule: {e}") from e

    # ========== Appointment Operations ==========

    async def get_appointments(self, barber_id: str, day: date) -> List[Appointment]:
        """
        Get non-cancelled appointments of a barber starting on ``day``.

        The day is [00:00, 24:00) in the shop's local zone.
        """
        day_start, day_end = local_day_bounds(day, self.tz_name)

        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .select("*")
                .eq("barber_id", barber_id)
                .gte("appt_time", to_iso_string(day_start))
                .lt("appt_time", to_iso_string(day_end))
                .neq("status", AppointmentStatus.CANCELLED.value)
                .execute()
            )
            return [self._parse_appointment(item) for item in response.data]
        except Exception as e:
            raise DataFetchError(f"Failed to get appointments: {e}") from e

    async def get_appointment_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID with its barber and service embedded."""
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .select(APPOINTMENT_WITH_RELATIONS)
                .eq("id", appointment_id)
                .execute()
            )
            if response.data:
                return self._parse_appointment(response.data[0])
            return None
        except Exception as e:
            raise DataFetchError(f"Failed to get appointment: {e}") from e

    async def get_all_appointments(
        self,
        status: Optional[AppointmentStatus] = None,
        barber_id: Optional[str] = None,
        date_from: Optional[datetime] = None,
        date_to: Optional[datetime] = None,
    ) -> List[Appointment]:
        """
        Get appointments for the dashboard, newest first (admin operation).

        Args:
            status: Filter by appointment status
            barber_id: Filter by barber
            date_from: Appointments starting at or after this instant
            date_to: Appointments starting at or before this instant
        """
        try:
            query = self.client.table(APPOINTMENTS_TABLE).select(APPOINTMENT_WITH_RELATIONS)

            if status:
                query = query.eq("status", status.value)
            if barber_id:
                query = query.eq("barber_id", barber_id)
            if date_from:
                query = query.gte("appt_time", to_iso_string(date_from))
            if date_to:
                query = query.lte("appt_time", to_iso_string(date_to))

            response = query.order("appt_time", desc=True).execute()

            return [self._parse_appointment(item) for item in response.data]
        except Exception as e:
            raise DataFetchError(f"Failed to get appointments: {e}") from e

    async def create_appointment(self, appointment_data: AppointmentCreate) -> Appointment:
        """
        Insert a new appointment.

        There is no slot reservation; two inserts for the same slot both succeed.
        """
        try:
            data = appointment_data.model_dump(exclude_none=True, mode="json")
            data["appt_time"] = to_iso_string(appointment_data.appt_time)
            data["end_time"] = to_iso_string(appointment_data.end_time)

            response = self.client.table(APPOINTMENTS_TABLE).insert(data).execute()

            if not response.data:
                raise ValueError("no data returned")

            created = self._parse_appointment(response.data[0])
        except Exception as e:
            raise AppointmentCreationError(f"Failed to create appointment: {e}") from e

        # Re-read with relations so the confirmation email has names; the row
        # is already saved, so a failed re-read falls back to the inserted row
        if created.id:
            try:
                with_relations = await self.get_appointment_by_id(created.id)
            except DataFetchError as e:
                logger.warning(f"Appointment {created.id} saved but re-read failed: {e}")
                return created
            if with_relations:
                return with_relations
        return created

    async def update_appointment(
        self, appointment_id: str, updates: Dict[str, Any]
    ) -> Optional[Appointment]:
        """Update appointment fields."""
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .update(updates)
                .eq("id", appointment_id)
                .execute()
            )
            if not response.data:
                return None
            return self._parse_appointment(response.data[0])
        except Exception as e:
            raise DatabaseError(f"Failed to update appointment: {e}") from e

    async def delete_appointment(self, appointment_id: str) -> bool:
        """Delete an appointment. Returns True if a row was removed."""
        try:
            response = (
                self.client.table(APPOINTMENTS_TABLE)
                .delete()
                .eq("id", appointment_id)
                .execute()
            )
        except Exception as e:
            raise DatabaseError(f"Failed to delete appointment: {e}") from e

        return len(response.data) > 0

    # ========== Edge Functions & Auth ==========

    async def invoke_function(self, name: str, body: Dict[str, Any]) -> Any:
        """Invoke a Supabase edge function with a JSON body."""
        try:
            return self.client.functions.invoke(name, invoke_options={"body": body})
        except Exception as e:
            raise NotificationError(f"Failed to invoke {name}: {e}") from e

    async def get_user_email(self, access_token: str) -> str:
        """
        Resolve a Supabase Auth access token to the user's email.

        Raises:
            AuthenticationError: If the token is rejected
        """
        try:
            response = self.client.auth.get_user(access_token)
        except Exception as e:
            raise AuthenticationError(f"Invalid access token: {e}") from e

        user = getattr(response, "user", None)
        if user is None or not getattr(user, "email", None):
            raise AuthenticationError("Invalid access token")
        return user.email

    # ========== Helper Methods ==========

    def _parse_appointment(self, item: dict) -> Appointment:
        """
        Parse appointment data from database response.

        Args:
            item: Raw appointment data from database

        Returns:
            Parsed Appointment object
        """
        item = item.copy()
        for field in ["appt_time", "end_time", "created_at"]:
            if isinstance(item.get(field), str):
                item[field] = parse_iso_datetime(item[field])
        return Appointment(**item)


# Global database client instance
_db_client: Optional[SupabaseClient] = None


def get_db_client() -> SupabaseClient:
    """Get or create database client instance."""
    global _db_client
    if _db_client is None:
        _db_client = SupabaseClient()
    return _db_client
