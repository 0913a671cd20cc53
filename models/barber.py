"""Barber models."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class Barber(BaseModel):
    """Barber model."""

    id: Optional[str] = None
    first_name: str
    last_name: str = ""
    email: Optional[str] = None
    bio: Optional[str] = None
    specialty: Optional[str] = None
    profile_img: Optional[str] = Field(None, description="Public URL in Supabase Storage")
    is_active: bool = True
    created_at: Optional[datetime] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Optional[str]:
        return None if v is None else str(v)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    class Config:
        json_schema_extra = {
            "example": {
                "first_name": "Chait",
                "last_name": "Smith",
                "email": "chait@example.com",
                "specialty": "Fades",
                "is_active": True,
            }
        }


class BarberCreate(BaseModel):
    """Barber creation model."""

    first_name: str
    last_name: str
    email: str
    bio: Optional[str] = None
    specialty: Optional[str] = None
    profile_img: Optional[str] = None
    is_active: bool = True
