"""Seasonal series schemas."""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, time

from app.schemas.booking import BookingConflict, BookingRead


class SeasonalSeriesCreate(BaseModel):
    """
    Schema for requesting a seasonal series.

    Required fields are optional at the schema level so that a missing field
    is reported by the service as a single validation error naming every
    missing field.
    """

    court_id: Optional[int] = None
    seasonal_start_date: Optional[date] = None
    seasonal_end_date: Optional[date] = None
    day_of_week: Optional[int] = Field(default=None, description="0 = Monday ... 6 = Sunday")
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    customer_name: Optional[str] = None
    customer_email: Optional[str] = None
    customer_phone: Optional[str] = None
    notes: Optional[str] = Field(default=None, max_length=2000)


class SeasonalSeriesCreated(BaseModel):
    """Schema returned after a series was created."""

    series_id: str
    parent_booking_id: int
    slot_count: int


class SeriesPreview(BaseModel):
    """Number of dates a recurrence would produce."""

    slot_count: int
    dates: List[date]


class SeasonalSeriesRead(BaseModel):
    """A seasonal series assembled from its bookings."""

    series_id: str
    court_id: int
    seasonal_start_date: date
    seasonal_end_date: date
    day_of_week: int
    start_time: time
    end_time: time
    status: str
    payment_status: str
    bookings: List[BookingRead]


class ActivationRequest(BaseModel):
    """Body of the activate call."""

    skip_conflict_check: bool = False


class ActivationResult(BaseModel):
    """Either the conflicts blocking activation or the activated series."""

    has_conflicts: bool
    conflicts: List[BookingConflict] = Field(default_factory=list)
    series: Optional[SeasonalSeriesRead] = None
    message: str = ""


class AutoCompleteResult(BaseModel):
    """Outcome of an auto-complete sweep."""

    series_completed: int
    bookings_updated: int
