"""Overlap detection against bookings that occupy a court.

A booking occupies its court when it is ``active``, or ``confirmed`` and not
part of a seasonal series (a confirmed series only holds the court once it is
activated). Pending, rejected, completed and cancelled bookings never block.

Windows are half-open: ``[08:00, 09:00)`` and ``[09:00, 10:00)`` do not
overlap.
"""
import logging
from datetime import datetime
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.models.court import Court
from app.schemas.booking import BookingConflict

logger = logging.getLogger(__name__)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open interval intersection."""
    return a_start < b_end and b_start < a_end


def occupying_clause():
    """SQL condition selecting bookings that hold court time."""
    return or_(
        Booking.status == BookingStatus.ACTIVE.value,
        and_(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.seasonal_series_id.is_(None),
        ),
    )


class ConflictDetector:
    """Finds existing occupying bookings that overlap candidate windows."""

    async def find_overlapping_bookings(
        self,
        db: AsyncSession,
        court_id: int,
        windows: Sequence,
        exclude_series_id: Optional[str] = None,
        exclude_booking_ids: Iterable[int] = (),
    ) -> List[tuple]:
        """
        Return ``(window, booking, court_name)`` for every overlap.

        All candidate windows are checked with a single query bounded by the
        earliest start and latest end, then intersected in memory.

        Args:
            db: Database session (inside the court lock when a write follows)
            court_id: Court to check
            windows: Objects with ``starts_at`` and ``ends_at``
            exclude_series_id: Series whose own bookings are ignored
            exclude_booking_ids: Bookings to ignore

        Returns:
            Overlapping pairs ordered by window start
        """
        if not windows:
            return []

        earliest = min(w.starts_at for w in windows)
        latest = max(w.ends_at for w in windows)

        query = (
            select(Booking, Court.name)
            .join(Court, Court.id == Booking.court_id)
            .where(
                Booking.court_id == court_id,
                Booking.starts_at < latest,
                Booking.ends_at > earliest,
                occupying_clause(),
            )
            .order_by(Booking.starts_at)
            .execution_options(populate_existing=True)
        )
        if exclude_series_id is not None:
            query = query.where(
                or_(
                    Booking.seasonal_series_id.is_(None),
                    Booking.seasonal_series_id != exclude_series_id,
                )
            )
        excluded = list(exclude_booking_ids)
        if excluded:
            query = query.where(Booking.id.notin_(excluded))

        result = await db.execute(query)
        existing = result.all()

        pairs = []
        for window in sorted(windows, key=lambda w: w.starts_at):
            for booking, court_name in existing:
                if overlaps(window.starts_at, window.ends_at, booking.starts_at, booking.ends_at):
                    pairs.append((window, booking, court_name))
        return pairs

    async def find_conflicts(
        self,
        db: AsyncSession,
        court_id: int,
        windows: Sequence,
        exclude_series_id: Optional[str] = None,
        exclude_booking_ids: Iterable[int] = (),
    ) -> List[BookingConflict]:
        """
        List the conflicts for candidate windows on a court.

        Returns:
            One conflict per (window, existing booking) overlap, empty if none
        """
        pairs = await self.find_overlapping_bookings(
            db, court_id, windows, exclude_series_id, exclude_booking_ids
        )
        conflicts = [
            BookingConflict(
                date=window.starts_at.date(),
                time=f"{window.starts_at:%H:%M}",
                court_name=court_name,
                existing_booking_id=booking.id,
            )
            for window, booking, court_name in pairs
        ]
        if conflicts:
            logger.info(
                f"Found {len(conflicts)} conflict(s) on court {court_id} "
                f"across {len(windows)} window(s)"
            )
        return conflicts


# Singleton instance
conflict_detector = ConflictDetector()
