"""Waitlist entry model."""
from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class WaitlistEntry(Base):
    """Represents a party waiting for a booked slot to free up."""

    __tablename__ = "waitlist_entries"

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id", ondelete="CASCADE"), nullable=False, index=True)
    starts_at = Column(DateTime, nullable=False)
    ends_at = Column(DateTime, nullable=False)
    contact_email = Column(String, nullable=False)
    contact_name = Column(String, nullable=True)
    contact_phone = Column(String, nullable=True)
    position = Column(Integer, nullable=False)  # 1-indexed per (court_id, starts_at)
    status = Column(String, nullable=False, default="waiting")  # waiting, offered
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    court = relationship("Court", back_populates="waitlist_entries")

    __table_args__ = (
        Index("ix_waitlist_court_slot", "court_id", "starts_at", "position"),
    )
