"""Service models for barbershop services."""

from datetime import timedelta
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Service(BaseModel):
    """Service model.

    Only ``duration`` takes part in booking: it turns an appointment's
    start into its end time.
    """

    id: Optional[str] = None
    name: str
    description: Optional[str] = None
    duration: int = Field(..., ge=1, description="Duration in minutes")
    price: float = Field(..., ge=0)
    is_active: bool = True

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @property
    def length(self) -> timedelta:
        return timedelta(minutes=self.duration)

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Haircut",
                "description": "Classic cut and style",
                "duration": 60,
                "price": 35,
            }
        }
