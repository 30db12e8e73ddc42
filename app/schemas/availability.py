"""Availability schemas."""
from pydantic import BaseModel
from typing import List
from datetime import datetime, date
from decimal import Decimal


class SlotWindow(BaseModel):
    """A bookable time window derived from a court's working hours."""

    court_id: int
    date: date
    starts_at: datetime
    ends_at: datetime
    duration_minutes: int

    @property
    def label(self) -> str:
        return f"{self.starts_at:%H:%M}-{self.ends_at:%H:%M}"


class AvailabilitySlot(BaseModel):
    """Schema for a single slot in the availability grid."""

    time: str  # "08:00"
    end_time: str
    available: bool
    price: Decimal
    duration: int  # minutes


class AvailabilityResponse(BaseModel):
    """Schema for availability response."""

    court_id: int
    court_name: str
    date: date
    slot_duration_minutes: int
    slots: List[AvailabilitySlot]
