"""Availability models: weekly defaults, date overrides and derived slots."""

from datetime import date as Date
from datetime import time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from utils.datetime_utils import format_time_of_day, parse_date, parse_time_of_day


def _coerce_id(value: Any) -> Any:
    """Supabase ids arrive as UUID strings or integers; keep them as strings."""
    if value is None:
        return value
    return str(value)


class WeeklyAvailability(BaseModel):
    """Recurring default hours for one weekday of one barber."""

    id: Optional[str] = None
    barber_id: str
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday ... 6 = Saturday")
    is_available: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    coerce_ids = field_validator("id", "barber_id", mode="before")(_coerce_id)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> Optional[time]:
        """Accept Postgres ``time`` strings such as ``09:00:00``."""
        return parse_time_of_day(v)

    @field_validator("is_available", mode="before")
    @classmethod
    def null_is_unavailable(cls, v: Any) -> bool:
        return bool(v)

    class Config:
        json_schema_extra = {
            "example": {
                "barber_id": "uuid-here",
                "day_of_week": 2,
                "is_available": True,
                "start_time": "09:00:00",
                "end_time": "18:00:00",
            }
        }


class WeeklyAvailabilityUpdate(BaseModel):
    """One entry of a bulk weekly availability update from the dashboard."""

    day_of_week: int = Field(..., ge=0, le=6)
    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> Optional[time]:
        return parse_time_of_day(v)


class ScheduleOverride(BaseModel):
    """A date-specific exception that replaces the weekly default for that date."""

    id: Optional[str] = None
    barber_id: str
    date: Date
    is_available: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None

    coerce_ids = field_validator("id", "barber_id", mode="before")(_coerce_id)

    @field_validator("date", mode="before")
    @classmethod
    def parse_day(cls, v: Any) -> Date:
        return parse_date(v)

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time(cls, v: Any) -> Optional[time]:
        return parse_time_of_day(v)

    @field_validator("is_available", mode="before")
    @classmethod
    def null_is_unavailable(cls, v: Any) -> bool:
        return bool(v)

    class Config:
        json_schema_extra = {
            "example": {
                "barber_id": "uuid-here",
                "date": "2026-03-03",
                "is_available": False,
                "start_time": None,
                "end_time": None,
            }
        }


class AvailabilitySource(str, Enum):
    """Which rule decided a day's availability."""

    OVERRIDE = "override"
    WEEKLY = "weekly"
    CLOSED = "closed"


class DayAvailability(BaseModel):
    """Resolved availability of a single barber on a single date."""

    is_available: bool
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    source: AvailabilitySource = AvailabilitySource.CLOSED

    @property
    def has_window(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    def to_dict(self) -> dict:
        return {
            "is_available": self.is_available,
            "start_time": format_time_of_day(self.start_time),
            "end_time": format_time_of_day(self.end_time),
            "source": self.source.value,
        }


class Slot(BaseModel):
    """An hourly booking unit inside a resolved working window."""

    start_time: str = Field(..., description="Hour boundary formatted as HH:00")
    is_available: bool

    @property
    def hour(self) -> int:
        return int(self.start_time.split(":")[0])

    @classmethod
    def for_hour(cls, hour: int, is_available: bool) -> "Slot":
        return cls(start_time=f"{hour:02d}:00", is_available=is_available)


class BookableDate(BaseModel):
    """A bookable calendar date as the date picker displays it."""

    date: Date
    day_name: str
    day_num: int
    month: str

    @classmethod
    def from_date(cls, day: Date) -> "BookableDate":
        return cls(
            date=day,
            day_name=day.strftime("%a"),
            day_num=day.day,
            month=day.strftime("%b"),
        )

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "dayName": self.day_name,
            "dayNum": self.day_num,
            "month": self.month,
        }
