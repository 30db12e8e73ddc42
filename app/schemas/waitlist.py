"""Waitlist schemas."""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional
from datetime import datetime

from app.schemas.booking import to_facility_time


class WaitlistJoin(BaseModel):
    """Schema for joining the waitlist of a booked slot."""

    court_id: int
    starts_at: datetime
    ends_at: datetime
    contact_email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    contact_name: Optional[str] = None
    contact_phone: Optional[str] = None

    @field_validator("starts_at", "ends_at")
    @classmethod
    def local_naive(cls, value: datetime) -> datetime:
        return to_facility_time(value)


class WaitlistEntryRead(BaseModel):
    """Schema for waitlist entry from database."""

    id: int
    court_id: int
    starts_at: datetime
    ends_at: datetime
    contact_email: str
    contact_name: Optional[str] = None
    position: int
    status: str

    model_config = ConfigDict(from_attributes=True)
