"""Booking schemas."""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Literal, Optional
from datetime import datetime, date
from decimal import Decimal

import pytz

from app.core.config import settings


def to_facility_time(value: datetime) -> datetime:
    """
    Normalize a requested timestamp to naive facility-local time.

    Bookings are stored as naive local datetimes, so offset-aware input is
    converted to ``TIMEZONE`` and stripped of its tzinfo.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.timezone(settings.TIMEZONE)).replace(tzinfo=None)


class BookingCreate(BaseModel):
    """Schema for creating a single (non-recurring) booking."""

    court_id: int
    starts_at: datetime
    ends_at: datetime
    status: Literal["pending", "confirmed"] = "confirmed"
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("starts_at", "ends_at")
    @classmethod
    def local_naive(cls, value: datetime) -> datetime:
        return to_facility_time(value)


class BookingRead(BaseModel):
    """Schema for booking from database."""

    id: int
    court_id: int
    starts_at: datetime
    ends_at: datetime
    status: str
    payment_status: str
    price: Optional[Decimal] = None
    is_seasonal: bool
    seasonal_series_id: Optional[str] = None
    parent_booking_id: Optional[int] = None
    seasonal_start_date: Optional[date] = None
    seasonal_end_date: Optional[date] = None
    day_of_week: Optional[int] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class BookingConflict(BaseModel):
    """An existing booking that overlaps a requested window."""

    date: date
    time: str  # "18:00"
    court_name: str
    existing_booking_id: int
