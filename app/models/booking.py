"""Booking model."""
import enum

from sqlalchemy import (
    Column, Integer, String, Boolean, ForeignKey, DateTime, Date, Numeric, Text, Index,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class BookingStatus(str, enum.Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    ACTIVE = "active"
    REJECTED = "rejected"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Payment flag gating series activation."""

    PENDING = "pending"
    PAID = "paid"


class Booking(Base):
    """Represents a reservation of one court for one time window."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id", ondelete="CASCADE"), nullable=False, index=True)
    starts_at = Column(DateTime, nullable=False)  # Local to the facility
    ends_at = Column(DateTime, nullable=False)
    status = Column(String, nullable=False, default=BookingStatus.PENDING.value)
    payment_status = Column(String, nullable=False, default=PaymentStatus.PENDING.value)
    price = Column(Numeric(10, 2), nullable=True)

    # Seasonal series grouping
    is_seasonal = Column(Boolean, default=False, nullable=False)
    seasonal_series_id = Column(String, nullable=True, index=True)
    parent_booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=True)
    seasonal_start_date = Column(Date, nullable=True)
    seasonal_end_date = Column(Date, nullable=True)
    day_of_week = Column(Integer, nullable=True)  # 0 = Monday ... 6 = Sunday

    # Customer
    customer_name = Column(String, nullable=True)
    customer_email = Column(String, nullable=True)
    customer_phone = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    court = relationship("Court", back_populates="bookings")

    __table_args__ = (
        Index("ix_bookings_court_window", "court_id", "starts_at", "ends_at"),
        Index("ix_bookings_series_status", "seasonal_series_id", "status"),
    )

    @property
    def is_series_parent(self) -> bool:
        """First occurrence of a seasonal series; its status is the series status."""
        return self.is_seasonal and self.parent_booking_id is None
