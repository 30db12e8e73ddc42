"""Availability service composing slot generation, pricing and bookings."""
import logging
from datetime import date, datetime, time, timedelta
from typing import List

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models.booking import Booking, BookingStatus
from app.models.court import Court
from app.schemas.availability import AvailabilityResponse, AvailabilitySlot
from app.services.conflict_detector import occupying_clause, overlaps
from app.services.pricing import resolve_court_price, warn_if_unpriced
from app.services.slot_generator import generate_slots

logger = logging.getLogger(__name__)


class AvailabilityService:
    """Service answering what can be booked on a court and for how much."""

    async def _get_court(self, db: AsyncSession, court_id: int) -> Court:
        result = await db.execute(select(Court).where(Court.id == court_id))
        court = result.scalar_one_or_none()

        if not court or not court.is_active:
            raise NotFoundError(f"Court {court_id} not found")
        return court

    async def _taken_windows(
        self, db: AsyncSession, court_id: int, target_date: date
    ) -> List[Booking]:
        """Bookings that make a slot unavailable on a day."""
        day_start = datetime.combine(target_date, time(0, 0))
        day_end = day_start + timedelta(days=1)

        result = await db.execute(
            select(Booking).where(
                and_(
                    Booking.court_id == court_id,
                    Booking.starts_at < day_end,
                    Booking.ends_at > day_start,
                    # Pending requests are shown as taken to customers
                    or_(
                        occupying_clause(),
                        Booking.status == BookingStatus.PENDING.value,
                    ),
                )
            )
        )
        return list(result.scalars().all())

    async def get_availability(
        self, db: AsyncSession, court_id: int, target_date: date
    ) -> AvailabilityResponse:
        """
        Get the slot grid for a court on a date.

        Args:
            db: Database session
            court_id: Court ID
            target_date: Day to show

        Returns:
            Slots with availability, price and duration
        """
        court = await self._get_court(db, court_id)
        windows = generate_slots(court, target_date)
        taken = await self._taken_windows(db, court_id, target_date)
        if windows:
            warn_if_unpriced(court)

        slots = []
        for window in windows:
            available = not any(
                overlaps(window.starts_at, window.ends_at, b.starts_at, b.ends_at)
                for b in taken
            )
            slots.append(
                AvailabilitySlot(
                    time=f"{window.starts_at:%H:%M}",
                    end_time=f"{window.ends_at:%H:%M}",
                    available=available,
                    price=resolve_court_price(court, window.starts_at, window.duration_minutes),
                    duration=window.duration_minutes,
                )
            )

        logger.info(
            f"Court {court_id} on {target_date}: "
            f"{sum(1 for s in slots if s.available)}/{len(slots)} slots available"
        )
        return AvailabilityResponse(
            court_id=court.id,
            court_name=court.name,
            date=target_date,
            slot_duration_minutes=court.slot_duration_minutes,
            slots=slots,
        )


# Singleton instance
availability_service = AvailabilityService()
