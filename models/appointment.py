"""Appointment models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class AppointmentStatus(str, Enum):
    """Appointment status."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Appointment(BaseModel):
    """Appointment model.

    ``barber`` and ``service`` hold the embedded rows returned when the
    appointment is selected together with its relations.
    """

    id: Optional[str] = None
    barber_id: str
    service_id: Optional[str] = None
    customer_first_name: Optional[str] = None
    customer_last_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    appt_time: datetime = Field(..., description="Start of the appointment")
    end_time: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.PENDING
    created_at: Optional[datetime] = None
    barber: Optional[dict] = None
    service: Optional[dict] = None

    @field_validator("id", "barber_id", "service_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @property
    def is_cancelled(self) -> bool:
        return self.status == AppointmentStatus.CANCELLED

    @property
    def customer_name(self) -> str:
        return f"{self.customer_first_name or ''} {self.customer_last_name or ''}".strip()

    class Config:
        json_schema_extra = {
            "example": {
                "barber_id": "uuid-here",
                "service_id": "uuid-here",
                "customer_first_name": "Jane",
                "customer_last_name": "Doe",
                "customer_email": "jane@example.com",
                "appt_time": "2026-03-03T18:00:00+00:00",
                "end_time": "2026-03-03T19:00:00+00:00",
                "status": "pending",
            }
        }


class AppointmentCreate(BaseModel):
    """Appointment creation model (end time already computed by the caller)."""

    barber_id: str
    service_id: str
    customer_first_name: str
    customer_last_name: str
    customer_email: str
    customer_phone: Optional[str] = None
    appt_time: datetime
    end_time: datetime
    status: AppointmentStatus = AppointmentStatus.PENDING


class BookingRequest(BaseModel):
    """Booking form submission.

    Fields are loose on purpose; the booking service checks them and
    reports the first problem with a customer-facing message.
    """

    barber_id: str = ""
    service_id: str = ""
    date: str = ""
    time: str = ""
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: Optional[str] = None

    @field_validator("barber_id", "service_id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        return "" if v is None else str(v)
