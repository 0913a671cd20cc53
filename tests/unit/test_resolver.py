"""
Unit tests for the availability resolver.
"""

import logging
from datetime import date, datetime, timedelta, timezone

import pytest

from availability.resolver import (
    AvailabilityResolver,
    build_slots,
    day_of_week,
    disable_past_slots,
    is_date_in_past,
    resolve_day,
)
from helpers import FakeRepository, appointment_at, override_row, weekly_row
from models.appointment import AppointmentStatus
from models.availability import AvailabilitySource, DayAvailability, Slot
from utils.exceptions import DataFetchError

TUESDAY = date(2026, 3, 3)
TZ = "America/New_York"


def local(hour: int, minute: int = 0, day: date = TUESDAY) -> datetime:
    """UTC instant of a New York wall-clock time in early March 2026 (EST, UTC-5)."""
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc) + timedelta(
        hours=5
    )


@pytest.fixture
def resolver(tuesday_repository):
    return AvailabilityResolver(tuesday_repository, tz_name=TZ)


class TestDayOfWeek:
    """Weekday numbering starts at Sunday."""

    @pytest.mark.parametrize(
        "day,expected",
        [
            (date(2026, 3, 1), 0),
            (date(2026, 3, 2), 1),
            (date(2026, 3, 3), 2),
            (date(2026, 3, 7), 6),
        ],
    )
    def test_numbering(self, day, expected):
        assert day_of_week(day) == expected


class TestResolveDay:
    """Override / weekly / closed precedence."""

    def test_unavailable_override_closes_weekly_day(self):
        weekly = {2: weekly_row(2)}
        overrides = {TUESDAY: override_row(TUESDAY, False)}

        result = resolve_day(weekly, overrides, TUESDAY)

        assert result.is_available is False
        assert result.source == AvailabilitySource.OVERRIDE

    def test_available_override_opens_closed_weekday(self):
        monday = date(2026, 3, 2)
        overrides = {monday: override_row(monday, True, "10:00", "14:00")}

        result = resolve_day({}, overrides, monday)

        assert result.is_available is True
        assert result.start_time.hour == 10
        assert result.end_time.hour == 14

    def test_override_window_replaces_weekly_window(self):
        weekly = {2: weekly_row(2)}
        overrides = {TUESDAY: override_row(TUESDAY, True, "12:00", "15:00")}

        result = resolve_day(weekly, overrides, TUESDAY)

        assert (result.start_time.hour, result.end_time.hour) == (12, 15)

    def test_weekly_row_window(self):
        result = resolve_day({2: weekly_row(2)}, {}, TUESDAY)

        assert result.is_available is True
        assert result.source == AvailabilitySource.WEEKLY
        assert (result.start_time.hour, result.end_time.hour) == (9, 18)

    def test_weekly_unavailable_is_closed(self):
        result = resolve_day({2: weekly_row(2, is_available=False)}, {}, TUESDAY)

        assert result.is_available is False
        assert result.source == AvailabilitySource.CLOSED

    def test_no_rows_is_closed(self):
        result = resolve_day({}, {}, date(2026, 3, 1))

        assert result.is_available is False

    def test_override_for_other_date_is_ignored(self):
        other = TUESDAY + timedelta(days=7)
        result = resolve_day({2: weekly_row(2)}, {other: override_row(other, False)}, TUESDAY)

        assert result.is_available is True


class TestBuildSlots:
    """Hourly partitioning and hour-bucket collisions."""

    def test_full_day(self):
        day = resolve_day({2: weekly_row(2)}, {}, TUESDAY)

        slots = build_slots(day, [], TZ)

        assert [s.start_time for s in slots] == [f"{h:02d}:00" for h in range(9, 18)]
        assert all(s.is_available for s in slots)

    def test_closed_day_has_no_slots(self):
        assert build_slots(DayAvailability(is_available=False), [appointment_at(local(13))]) == []

    def test_partial_end_hour_is_dropped(self):
        day = resolve_day({2: weekly_row(2, start="09:00", end="17:30")}, {}, TUESDAY)

        slots = build_slots(day, [], TZ)

        assert slots[-1].start_time == "16:00"

    def test_long_appointment_blocks_only_its_start_hour(self):
        day = resolve_day({2: weekly_row(2)}, {}, TUESDAY)
        appt = appointment_at(local(13))
        appt.end_time = local(15, 30)

        slots = {s.start_time: s.is_available for s in build_slots(day, [appt], TZ)}

        assert slots["13:00"] is False
        assert slots["14:00"] is True
        assert slots["15:00"] is True

    def test_cancelled_appointment_is_ignored(self):
        day = resolve_day({2: weekly_row(2)}, {}, TUESDAY)
        cancelled = appointment_at(local(13), status=AppointmentStatus.CANCELLED)

        slots = build_slots(day, [cancelled], TZ)

        assert all(s.is_available for s in slots)

    def test_start_hour_is_taken_in_local_zone(self):
        day = resolve_day({2: weekly_row(2)}, {}, TUESDAY)
        # 14:00 UTC is 09:00 in New York
        appt = appointment_at(datetime(2026, 3, 3, 14, 0, tzinfo=timezone.utc))

        slots = {s.start_time: s.is_available for s in build_slots(day, [appt], TZ)}

        assert slots["09:00"] is False
        assert slots["14:00"] is True

    def test_available_day_without_window_yields_no_slots(self, caplog):
        day = DayAvailability(is_available=True, source=AvailabilitySource.OVERRIDE)

        with caplog.at_level(logging.WARNING, logger="availability.resolver"):
            slots = build_slots(day, [], TZ)

        assert slots == []
        assert "missing its start or end time" in caplog.text


class TestComputeSlots:
    """Resolver queries against an in-memory repository."""

    @pytest.mark.asyncio
    async def test_tuesday_without_appointments(self, resolver):
        slots = await resolver.compute_slots("1", TUESDAY)

        assert len(slots) == 9
        assert slots[0].start_time == "09:00"
        assert slots[-1].start_time == "17:00"
        assert all(s.is_available for s in slots)

    @pytest.mark.asyncio
    async def test_confirmed_appointment_takes_its_hour(self, tuesday_repository, resolver):
        tuesday_repository.appointments = [appointment_at(local(13))]

        slots = await resolver.compute_slots("1", TUESDAY)

        taken = [s.start_time for s in slots if not s.is_available]
        assert taken == ["13:00"]
        assert len(slots) == 9

    @pytest.mark.asyncio
    async def test_unavailable_override_empties_day(self, tuesday_repository, resolver):
        tuesday_repository.overrides = [override_row(TUESDAY, False)]
        tuesday_repository.appointments = [appointment_at(local(13))]

        assert await resolver.compute_slots("1", TUESDAY) == []

    @pytest.mark.asyncio
    async def test_closed_day_skips_appointment_fetch(self, tuesday_repository, resolver):
        await resolver.compute_slots("1", date(2026, 3, 2))

        assert "appointments" not in tuesday_repository.calls

    @pytest.mark.asyncio
    async def test_accepts_iso_date_string(self, resolver):
        slots = await resolver.compute_slots("1", "2026-03-03")

        assert len(slots) == 9

    @pytest.mark.asyncio
    async def test_is_idempotent(self, tuesday_repository, resolver):
        tuesday_repository.appointments = [
            appointment_at(local(10), appointment_id="a"),
            appointment_at(local(15), appointment_id="b"),
        ]

        first = await resolver.compute_slots("1", TUESDAY)
        second = await resolver.compute_slots("1", TUESDAY)

        assert first == second

    @pytest.mark.asyncio
    async def test_other_barbers_appointments_do_not_block(self, tuesday_repository, resolver):
        other = appointment_at(local(13))
        other.barber_id = "2"
        tuesday_repository.appointments = [other]

        slots = await resolver.compute_slots("1", TUESDAY)

        assert all(s.is_available for s in slots)

    @pytest.mark.asyncio
    async def test_malformed_override_yields_no_slots(self, tuesday_repository, resolver):
        tuesday_repository.overrides = [override_row(TUESDAY, True)]

        assert await resolver.compute_slots("1", TUESDAY) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("failing", ["weekly", "overrides", "appointments"])
    async def test_fetch_failure_raises_data_fetch_error(self, failing):
        repository = FakeRepository(weekly=[weekly_row(2)], fail_on=failing)
        resolver = AvailabilityResolver(repository, tz_name=TZ)

        with pytest.raises(DataFetchError):
            await resolver.compute_slots("1", TUESDAY)

    @pytest.mark.asyncio
    async def test_data_fetch_error_passes_through(self):
        class BrokenRepository(FakeRepository):
            async def get_weekly_availability(self, barber_id):
                raise DataFetchError("Failed to get weekly availability: timeout")

        resolver = AvailabilityResolver(BrokenRepository(), tz_name=TZ)

        with pytest.raises(DataFetchError, match="timeout"):
            await resolver.resolve_day_availability("1", TUESDAY)


class TestListBookableDates:
    """Date range queries."""

    @pytest.mark.asyncio
    async def test_only_tuesday_in_first_week_of_march(self, resolver):
        dates = await resolver.list_bookable_dates("1", date(2026, 3, 1), date(2026, 3, 7))

        assert dates == [TUESDAY]

    @pytest.mark.asyncio
    async def test_overrides_open_and_close_dates(self, tuesday_repository, resolver):
        saturday = date(2026, 3, 7)
        tuesday_repository.overrides = [
            override_row(TUESDAY, False),
            override_row(saturday, True, "10:00", "14:00"),
        ]

        dates = await resolver.list_bookable_dates("1", date(2026, 3, 1), date(2026, 3, 14))

        assert dates == [saturday, date(2026, 3, 10)]

    @pytest.mark.asyncio
    async def test_dates_are_ascending_and_inclusive(self, tuesday_repository, resolver):
        tuesday_repository.weekly = [weekly_row(d) for d in range(7)]

        dates = await resolver.list_bookable_dates("1", "2026-03-01", "2026-03-07")

        assert dates == [date(2026, 3, d) for d in range(1, 8)]

    @pytest.mark.asyncio
    async def test_inverted_range_is_empty(self, tuesday_repository, resolver):
        dates = await resolver.list_bookable_dates("1", date(2026, 3, 7), date(2026, 3, 1))

        assert dates == []
        assert tuesday_repository.calls == []

    @pytest.mark.asyncio
    async def test_fetches_each_table_once(self, tuesday_repository, resolver):
        await resolver.list_bookable_dates("1", date(2026, 3, 1), date(2026, 3, 31))

        assert tuesday_repository.calls == ["weekly", "overrides"]

    @pytest.mark.asyncio
    async def test_calendar_entries(self, resolver):
        entries = await resolver.list_bookable_calendar("1", date(2026, 3, 1), date(2026, 3, 7))

        assert [e.to_dict() for e in entries] == [
            {"date": "2026-03-03", "dayName": "Tue", "dayNum": 3, "month": "Mar"}
        ]

    @pytest.mark.asyncio
    async def test_override_fetch_failure(self):
        resolver = AvailabilityResolver(FakeRepository(fail_on="overrides"), tz_name=TZ)

        with pytest.raises(DataFetchError):
            await resolver.list_bookable_dates("1", date(2026, 3, 1), date(2026, 3, 7))


class TestPastSlots:
    """Presentation helpers applied on top of resolver output."""

    def test_disables_started_slots_today(self):
        slots = [Slot.for_hour(h, True) for h in range(9, 18)]
        now = datetime(2026, 3, 3, 13, 30)

        result = disable_past_slots(slots, TUESDAY, now)

        assert [s.start_time for s in result if not s.is_available] == [
            "09:00",
            "10:00",
            "11:00",
            "12:00",
            "13:00",
        ]

    def test_other_dates_are_untouched(self):
        slots = [Slot.for_hour(h, True) for h in range(9, 12)]
        now = datetime(2026, 3, 2, 23, 0)

        assert disable_past_slots(slots, TUESDAY, now) == slots

    def test_booked_slot_stays_booked(self):
        slots = [Slot.for_hour(15, False)]
        now = datetime(2026, 3, 3, 8, 0)

        assert disable_past_slots(slots, TUESDAY, now)[0].is_available is False

    def test_is_date_in_past(self):
        assert is_date_in_past(date(2026, 3, 2), TUESDAY) is True
        assert is_date_in_past(TUESDAY, TUESDAY) is False
