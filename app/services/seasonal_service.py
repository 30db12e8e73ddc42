"""Seasonal series lifecycle.

A seasonal series is a weekly recurring request expanded into one booking per
matching date. The first occurrence is the parent booking; every other
occurrence points at it through ``parent_booking_id`` and all of them share a
``seasonal_series_id``. Transitions always move the parent and its children
together:

    pending -> confirmed -> active -> completed
    pending -> rejected

Activation requires the payment flag to be ``paid`` and re-checks the court
for overlapping occupying bookings under the court lock.
"""
import logging
import uuid
from datetime import date, datetime, time
from typing import List, Optional

import pytz
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import (
    InvalidTransition,
    NotFoundError,
    PaymentRequired,
    ValidationError,
)
from app.core.locking import court_lock, run_with_retries
from app.models.booking import Booking, BookingStatus, PaymentStatus
from app.models.court import Court
from app.schemas.booking import BookingRead
from app.schemas.seasonal import (
    ActivationResult,
    AutoCompleteResult,
    SeasonalSeriesCreate,
    SeasonalSeriesCreated,
    SeasonalSeriesRead,
    SeriesPreview,
)
from app.schemas.working_hours import MINUTES_PER_DAY, minutes_of_day
from app.services.conflict_detector import ConflictDetector, conflict_detector
from app.services.notifications import NotificationService, notification_service
from app.services.pricing import resolve_court_price, warn_if_unpriced
from app.services.series_expander import SeriesOccurrence, expand_series

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "court_id",
    "seasonal_start_date",
    "seasonal_end_date",
    "day_of_week",
    "start_time",
    "end_time",
)


def _parent_of(bookings: List[Booking]) -> Booking:
    for booking in bookings:
        if booking.is_series_parent:
            return booking
    return bookings[0]


def _to_read(series_id: str, bookings: List[Booking]) -> SeasonalSeriesRead:
    parent = _parent_of(bookings)
    return SeasonalSeriesRead(
        series_id=series_id,
        court_id=parent.court_id,
        seasonal_start_date=parent.seasonal_start_date,
        seasonal_end_date=parent.seasonal_end_date,
        day_of_week=parent.day_of_week,
        start_time=parent.starts_at.time(),
        end_time=parent.ends_at.time(),
        status=parent.status,
        payment_status=parent.payment_status,
        bookings=[BookingRead.model_validate(b) for b in bookings],
    )


def local_today(now: Optional[datetime] = None) -> date:
    """Today's date in the facility timezone."""
    tz = pytz.timezone(settings.TIMEZONE)
    if now is None:
        return datetime.now(tz).date()
    if now.tzinfo is not None:
        return now.astimezone(tz).date()
    return now.date()


class SeasonalSeriesService:
    """Creates seasonal series and drives them through their lifecycle."""

    def __init__(
        self,
        detector: Optional[ConflictDetector] = None,
        notifier: Optional[NotificationService] = None,
    ):
        self.detector = detector or conflict_detector
        self.notifier = notifier or notification_service

    # Validation and expansion

    def validate_request(self, request: SeasonalSeriesCreate) -> None:
        """
        Check a series request before anything is written.

        Raises:
            ValidationError: On missing fields, an inverted date range, an
                empty or inverted time window, or an invalid weekday
        """
        missing = [name for name in REQUIRED_FIELDS if getattr(request, name) is None]
        if missing:
            raise ValidationError(
                "Court ID, dates, day of week, and times are required",
                details={"missing": missing},
            )

        if request.seasonal_end_date < request.seasonal_start_date:
            raise ValidationError("End date must not be before start date")

        if not 0 <= request.day_of_week <= 6:
            raise ValidationError(
                "Day of week must be between 0 (Monday) and 6 (Sunday)",
                details={"day_of_week": request.day_of_week},
            )

        end_minutes = minutes_of_day(request.end_time)
        if request.end_time == time(0, 0):
            end_minutes = MINUTES_PER_DAY
        if minutes_of_day(request.start_time) >= end_minutes:
            raise ValidationError("Start time must be before end time")

    def expand(self, request: SeasonalSeriesCreate) -> List[SeriesOccurrence]:
        """Validate a request and expand it into its occurrences."""
        self.validate_request(request)
        return expand_series(
            request.seasonal_start_date,
            request.seasonal_end_date,
            request.day_of_week,
            request.start_time,
            request.end_time,
        )

    def preview(self, request: SeasonalSeriesCreate) -> SeriesPreview:
        """Dates a request would book, shown before submission."""
        occurrences = self.expand(request)
        return SeriesPreview(
            slot_count=len(occurrences),
            dates=[occurrence.date for occurrence in occurrences],
        )

    # Queries

    async def _load_series(self, db: AsyncSession, series_id: str) -> List[Booking]:
        result = await db.execute(
            select(Booking)
            .where(Booking.seasonal_series_id == series_id)
            .order_by(Booking.starts_at)
            .execution_options(populate_existing=True)
        )
        bookings = list(result.scalars().all())
        if not bookings:
            raise NotFoundError(f"Seasonal series {series_id} not found")
        return bookings

    async def get(self, db: AsyncSession, series_id: str) -> SeasonalSeriesRead:
        """Get a series with all its bookings."""
        bookings = await self._load_series(db, series_id)
        return _to_read(series_id, bookings)

    # Creation

    async def create(
        self, db: AsyncSession, request: SeasonalSeriesCreate
    ) -> SeasonalSeriesCreated:
        """
        Create a pending series.

        Args:
            db: Database session
            request: Recurrence and customer details

        Returns:
            Series id, parent booking id and the number of bookings created

        Raises:
            ValidationError: If the request is incomplete or yields no dates
            NotFoundError: If the court does not exist or is inactive
        """
        occurrences = self.expand(request)
        if not occurrences:
            raise ValidationError(
                "No bookings could be generated for the specified criteria"
            )

        created = await run_with_retries(db, self._create, db, request, occurrences)
        logger.info(
            f"Created seasonal series {created.series_id} on court {request.court_id} "
            f"with {created.slot_count} bookings"
        )
        return created

    async def _create(
        self,
        db: AsyncSession,
        request: SeasonalSeriesCreate,
        occurrences: List[SeriesOccurrence],
    ) -> SeasonalSeriesCreated:
        result = await db.execute(select(Court).where(Court.id == request.court_id))
        court = result.scalar_one_or_none()
        if not court or not court.is_active:
            raise NotFoundError(f"Court {request.court_id} not found")

        warn_if_unpriced(court)
        series_id = uuid.uuid4().hex
        parent = None
        count = 0

        for occurrence in occurrences:
            duration = int((occurrence.ends_at - occurrence.starts_at).total_seconds() // 60)
            booking = Booking(
                court_id=court.id,
                starts_at=occurrence.starts_at,
                ends_at=occurrence.ends_at,
                status=BookingStatus.PENDING.value,
                payment_status=PaymentStatus.PENDING.value,
                price=resolve_court_price(court, occurrence.starts_at, duration),
                is_seasonal=True,
                seasonal_series_id=series_id,
                parent_booking_id=parent.id if parent else None,
                seasonal_start_date=request.seasonal_start_date,
                seasonal_end_date=request.seasonal_end_date,
                day_of_week=request.day_of_week,
                customer_name=request.customer_name,
                customer_email=request.customer_email,
                customer_phone=request.customer_phone,
                notes=request.notes,
            )
            db.add(booking)
            if parent is None:
                # Children need the parent's id
                await db.flush()
                parent = booking
            count += 1

        await db.commit()
        return SeasonalSeriesCreated(
            series_id=series_id,
            parent_booking_id=parent.id,
            slot_count=count,
        )

    # Transitions

    async def _transition(
        self,
        db: AsyncSession,
        series_id: str,
        allowed_from: tuple,
        to_status: BookingStatus,
        action: str,
    ) -> SeasonalSeriesRead:
        bookings = await self._load_series(db, series_id)
        parent = _parent_of(bookings)
        if parent.status not in allowed_from:
            raise InvalidTransition(
                f"Cannot {action} a series in status '{parent.status}'",
                details={"series_id": series_id, "status": parent.status},
            )

        for booking in bookings:
            booking.status = to_status.value
        await db.commit()
        return _to_read(series_id, bookings)

    async def confirm(self, db: AsyncSession, series_id: str) -> SeasonalSeriesRead:
        """Approve a pending series. Court time is not held until activation."""
        series = await run_with_retries(
            db,
            self._transition,
            db,
            series_id,
            (BookingStatus.PENDING.value,),
            BookingStatus.CONFIRMED,
            "confirm",
        )
        logger.info(f"Confirmed seasonal series {series_id}")
        await self.notifier.series_event("confirmed", series_id, court_id=series.court_id)
        return series

    async def reject(self, db: AsyncSession, series_id: str) -> SeasonalSeriesRead:
        """Reject a pending series. Rejection is terminal."""
        series = await run_with_retries(
            db,
            self._transition,
            db,
            series_id,
            (BookingStatus.PENDING.value,),
            BookingStatus.REJECTED,
            "reject",
        )
        logger.info(f"Rejected seasonal series {series_id}")
        await self.notifier.series_event("rejected", series_id, court_id=series.court_id)
        return series

    async def _mark_paid(self, db: AsyncSession, series_id: str) -> SeasonalSeriesRead:
        bookings = await self._load_series(db, series_id)
        parent = _parent_of(bookings)
        if parent.status in (BookingStatus.REJECTED.value, BookingStatus.COMPLETED.value):
            raise InvalidTransition(
                f"Cannot record payment for a series in status '{parent.status}'",
                details={"series_id": series_id, "status": parent.status},
            )

        for booking in bookings:
            booking.payment_status = PaymentStatus.PAID.value
        await db.commit()
        return _to_read(series_id, bookings)

    async def mark_paid(self, db: AsyncSession, series_id: str) -> SeasonalSeriesRead:
        """Record that the series has been paid. Idempotent."""
        series = await run_with_retries(db, self._mark_paid, db, series_id)
        logger.info(f"Marked seasonal series {series_id} as paid")
        return series

    async def activate(
        self,
        db: AsyncSession,
        series_id: str,
        skip_conflict_check: bool = False,
    ) -> ActivationResult:
        """
        Activate a confirmed, paid series.

        When other occupying bookings overlap any occurrence, the conflicts are
        returned and nothing changes unless ``skip_conflict_check`` is set, in
        which case the override is logged and the series is activated anyway.

        Raises:
            NotFoundError: If the series does not exist
            PaymentRequired: If the series is not paid
            InvalidTransition: If the series is not confirmed
        """
        result = await run_with_retries(
            db, self._activate, db, series_id, skip_conflict_check
        )
        if result.series is not None:
            await self.notifier.series_event(
                "activated",
                series_id,
                court_id=result.series.court_id,
                overridden_conflicts=len(result.conflicts),
            )
        return result

    async def _activate(
        self,
        db: AsyncSession,
        series_id: str,
        skip_conflict_check: bool,
    ) -> ActivationResult:
        court_id = _parent_of(await self._load_series(db, series_id)).court_id

        async with court_lock(db, court_id):
            # Re-read under the lock; a concurrent call may have moved the series
            bookings = await self._load_series(db, series_id)
            parent = _parent_of(bookings)

            if parent.payment_status != PaymentStatus.PAID.value:
                raise PaymentRequired(
                    "Cannot activate - payment must be marked as paid first",
                    details={"series_id": series_id, "payment_status": parent.payment_status},
                )
            if parent.status != BookingStatus.CONFIRMED.value:
                raise InvalidTransition(
                    f"Cannot activate a series in status '{parent.status}'",
                    details={"series_id": series_id, "status": parent.status},
                )

            conflicts = await self.detector.find_conflicts(
                db, court_id, bookings, exclude_series_id=series_id
            )
            if conflicts and not skip_conflict_check:
                # Nothing was written; ending the transaction releases the row lock
                await db.commit()
                return ActivationResult(
                    has_conflicts=True,
                    conflicts=conflicts,
                    message=f"Found {len(conflicts)} conflicting booking(s)",
                )

            if conflicts:
                logger.warning(
                    f"Activating seasonal series {series_id} on court {court_id} "
                    f"overriding {len(conflicts)} conflict(s): "
                    f"{[c.existing_booking_id for c in conflicts]}"
                )

            for booking in bookings:
                booking.status = BookingStatus.ACTIVE.value
            await db.commit()

        logger.info(f"Activated seasonal series {series_id} ({len(bookings)} bookings)")
        return ActivationResult(
            has_conflicts=False,
            conflicts=conflicts,
            series=_to_read(series_id, bookings),
            message="Seasonal series activated successfully",
        )

    async def auto_complete(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> AutoCompleteResult:
        """
        Complete every active series whose end date has passed.

        Each series is completed with an update guarded on ``status='active'``,
        so running the sweep again, or two sweeps at once, never completes a
        series twice.

        Args:
            db: Database session
            now: Reference time, defaults to the current time in ``TIMEZONE``

        Returns:
            Number of series and bookings moved to completed by this run
        """
        today = local_today(now)
        result = await db.execute(
            select(Booking.seasonal_series_id)
            .where(
                Booking.is_seasonal.is_(True),
                Booking.parent_booking_id.is_(None),
                Booking.status == BookingStatus.ACTIVE.value,
                Booking.seasonal_end_date < today,
            )
            .distinct()
        )
        series_ids = [row[0] for row in result.all() if row[0]]

        series_completed = 0
        bookings_updated = 0
        for series_id in series_ids:
            update_result = await db.execute(
                update(Booking)
                .where(
                    Booking.seasonal_series_id == series_id,
                    Booking.status == BookingStatus.ACTIVE.value,
                )
                .values(status=BookingStatus.COMPLETED.value)
                .execution_options(synchronize_session=False)
            )
            if update_result.rowcount:
                series_completed += 1
                bookings_updated += update_result.rowcount
        await db.commit()

        if series_completed:
            logger.info(
                f"Auto-completed {series_completed} expired series "
                f"({bookings_updated} bookings)"
            )
        return AutoCompleteResult(
            series_completed=series_completed,
            bookings_updated=bookings_updated,
        )


# Singleton instance
seasonal_service = SeasonalSeriesService()
