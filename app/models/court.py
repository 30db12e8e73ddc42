"""Court model."""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Court(Base):
    """Represents a bookable court at a facility."""

    __tablename__ = "courts"

    id = Column(Integer, primary_key=True, index=True)
    facility_id = Column(Integer, ForeignKey("facilities.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    sport_type = Column(String, nullable=True)  # e.g., "padel", "tennis"
    slot_duration_minutes = Column(Integer, default=60, nullable=False)
    working_hours = Column(JSON, nullable=True)  # Overrides the facility's hours when set
    pricing = Column(JSON, nullable=True)  # {"mode": "basic", "basic_price": 25} or {"mode": "advanced", "tiers": [...]}
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    facility = relationship("Facility", back_populates="courts", lazy="joined", innerjoin=True)
    bookings = relationship("Booking", back_populates="court", cascade="all, delete-orphan")
    waitlist_entries = relationship("WaitlistEntry", back_populates="court", cascade="all, delete-orphan")
