"""Facility model."""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, Numeric
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.core.database import Base


class Facility(Base):
    """Represents a sports facility that owns courts."""

    __tablename__ = "facilities"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    timezone = Column(String, nullable=True, default="Europe/Berlin")
    working_hours = Column(JSON, nullable=True)  # {"monday": {"open": "08:00", "close": "22:00", "closed": false}, ...}
    fallback_price = Column(Numeric(10, 2), nullable=True)  # Used when a court has no pricing policy
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    courts = relationship("Court", back_populates="facility", cascade="all, delete-orphan")
