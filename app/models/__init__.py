"""Database models."""
from app.models.facility import Facility
from app.models.court import Court
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.waitlist_entry import WaitlistEntry

__all__ = ["Facility", "Court", "Booking", "BookingStatus", "PaymentStatus", "WaitlistEntry"]
