"""Single (non-recurring) bookings and cancellation."""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictDetected, InvalidTransition, NotFoundError, ValidationError
from app.core.locking import court_lock, run_with_retries
from app.models.booking import Booking, BookingStatus
from app.schemas.booking import BookingCreate
from app.services.conflict_detector import ConflictDetector, conflict_detector
from app.services.pricing import resolve_court_price, warn_if_unpriced
from app.services.slot_generator import window_fits_hours
from app.services.waitlist_service import WaitlistService, waitlist_service

logger = logging.getLogger(__name__)

CANCELLABLE = (
    BookingStatus.PENDING.value,
    BookingStatus.CONFIRMED.value,
    BookingStatus.ACTIVE.value,
)


class BookingService:
    """Creates and cancels single bookings."""

    def __init__(
        self,
        detector: Optional[ConflictDetector] = None,
        waitlist: Optional[WaitlistService] = None,
    ):
        self.detector = detector or conflict_detector
        self.waitlist = waitlist or waitlist_service

    async def create_booking(self, db: AsyncSession, request: BookingCreate) -> Booking:
        """
        Book one window on a court.

        Raises:
            ValidationError: If the window is inverted or outside working hours
            NotFoundError: If the court does not exist or is inactive
            ConflictDetected: If the window overlaps an occupying booking
        """
        if request.starts_at >= request.ends_at:
            raise ValidationError("Start time must be before end time")

        booking = await run_with_retries(db, self._create_booking, db, request)
        logger.info(
            f"Created booking {booking.id} on court {booking.court_id} "
            f"{booking.starts_at} - {booking.ends_at:%H:%M}"
        )
        return booking

    async def _create_booking(self, db: AsyncSession, request: BookingCreate) -> Booking:
        async with court_lock(db, request.court_id) as court:
            if not court.is_active:
                raise NotFoundError(f"Court {request.court_id} not found")

            if not window_fits_hours(court, request.starts_at, request.ends_at):
                raise ValidationError(
                    "Requested time is outside the court's working hours",
                    details={"court_id": court.id},
                )

            conflicts = await self.detector.find_conflicts(db, court.id, [request])
            if conflicts:
                raise ConflictDetected(
                    f"Conflict detected for {request.starts_at:%Y-%m-%d %H:%M}. Please check availability.",
                    details={"conflicts": [c.model_dump(mode="json") for c in conflicts]},
                )

            warn_if_unpriced(court)
            duration = int((request.ends_at - request.starts_at).total_seconds() // 60)
            booking = Booking(
                court_id=court.id,
                starts_at=request.starts_at,
                ends_at=request.ends_at,
                status=request.status,
                price=resolve_court_price(court, request.starts_at, duration),
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                customer_phone=request.customer_phone,
                notes=request.notes,
            )
            db.add(booking)
            await db.commit()
        return booking

    async def _cancel(self, db: AsyncSession, booking_id: int) -> Booking:
        booking = await db.get(Booking, booking_id, populate_existing=True)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        if booking.seasonal_series_id is not None:
            # Series move as a whole through their own lifecycle
            raise InvalidTransition(
                f"Booking {booking_id} belongs to seasonal series "
                f"{booking.seasonal_series_id} and cannot be cancelled on its own",
                details={"booking_id": booking_id, "series_id": booking.seasonal_series_id},
            )
        if booking.status not in CANCELLABLE:
            raise InvalidTransition(
                f"Cannot cancel a booking in status '{booking.status}'",
                details={"booking_id": booking_id, "status": booking.status},
            )

        booking.status = BookingStatus.CANCELLED.value
        await db.commit()
        return booking

    async def cancel_booking(self, db: AsyncSession, booking_id: int) -> Booking:
        """
        Cancel a booking and offer the freed window to the waitlist.

        Raises:
            NotFoundError: If the booking does not exist
            InvalidTransition: If the booking is already finished or cancelled,
                or belongs to a seasonal series
        """
        booking = await run_with_retries(db, self._cancel, db, booking_id)
        logger.info(f"Cancelled booking {booking_id}")

        await self.waitlist.notify_on_release(
            db, booking.court_id, booking.starts_at, booking.ends_at
        )
        return booking


# Singleton instance
booking_service = BookingService()
