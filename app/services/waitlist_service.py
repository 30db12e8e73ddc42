"""Waitlist for booked slots."""
import logging
from datetime import datetime
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.core.locking import court_lock, run_with_retries
from app.models.waitlist_entry import WaitlistEntry
from app.schemas.waitlist import WaitlistJoin
from app.services.notifications import NotificationService, notification_service

logger = logging.getLogger(__name__)

WAITING = "waiting"
OFFERED = "offered"


class WaitlistService:
    """
    Ordered queue of parties waiting for a slot.

    Positions are assigned per (court, slot start) in insertion order. The
    same contact may join the same slot more than once.
    """

    def __init__(self, notifier: Optional[NotificationService] = None):
        self.notifier = notifier or notification_service

    async def join(self, db: AsyncSession, request: WaitlistJoin) -> WaitlistEntry:
        """
        Append a contact to a slot's waitlist.

        Returns:
            The new entry, its ``position`` 1-indexed

        Raises:
            ValidationError: If the window is empty or inverted
            NotFoundError: If the court does not exist
        """
        if request.starts_at >= request.ends_at:
            raise ValidationError("Start time must be before end time")

        entry = await run_with_retries(db, self._join, db, request)
        logger.info(
            f"Waitlist entry {entry.id} joined court {entry.court_id} "
            f"at {entry.starts_at} in position {entry.position}"
        )
        return entry

    async def _join(self, db: AsyncSession, request: WaitlistJoin) -> WaitlistEntry:
        async with court_lock(db, request.court_id):
            result = await db.execute(
                select(func.max(WaitlistEntry.position)).where(
                    WaitlistEntry.court_id == request.court_id,
                    WaitlistEntry.starts_at == request.starts_at,
                )
            )
            last_position = result.scalar() or 0

            entry = WaitlistEntry(
                court_id=request.court_id,
                starts_at=request.starts_at,
                ends_at=request.ends_at,
                contact_email=request.contact_email,
                contact_name=request.contact_name,
                contact_phone=request.contact_phone,
                position=last_position + 1,
                status=WAITING,
            )
            db.add(entry)
            await db.commit()
        return entry

    async def notify_on_release(
        self,
        db: AsyncSession,
        court_id: int,
        starts_at: datetime,
        ends_at: datetime,
    ) -> Optional[WaitlistEntry]:
        """
        Offer a released slot to the waiting entry with the lowest position.

        Returns:
            The entry the slot was offered to, or None if nobody is waiting
        """
        entry = await run_with_retries(db, self._offer_next, db, court_id, starts_at)
        if entry is None:
            logger.debug(f"No one waiting for court {court_id} at {starts_at}")
            return None

        logger.info(
            f"Offering court {court_id} at {starts_at}-{ends_at:%H:%M} to waitlist entry {entry.id}"
        )
        await self.notifier.waitlist_offer(entry)
        return entry

    async def _offer_next(
        self,
        db: AsyncSession,
        court_id: int,
        starts_at: datetime,
    ) -> Optional[WaitlistEntry]:
        async with court_lock(db, court_id):
            result = await db.execute(
                select(WaitlistEntry)
                .where(
                    WaitlistEntry.court_id == court_id,
                    WaitlistEntry.starts_at == starts_at,
                    WaitlistEntry.status == WAITING,
                )
                .order_by(WaitlistEntry.position)
                .limit(1)
            )
            entry = result.scalar_one_or_none()
            if entry is None:
                await db.commit()
                return None

            entry.status = OFFERED
            await db.commit()
        return entry

    async def _remove(self, db: AsyncSession, entry_id: int) -> WaitlistEntry:
        entry = await db.get(WaitlistEntry, entry_id)
        if entry is None:
            raise NotFoundError(f"Waitlist entry {entry_id} not found")
        await db.delete(entry)
        await db.commit()
        return entry

    async def fulfil(self, db: AsyncSession, entry_id: int) -> WaitlistEntry:
        """Remove an entry whose wait ended with a booking."""
        entry = await run_with_retries(db, self._remove, db, entry_id)
        logger.info(f"Waitlist entry {entry_id} fulfilled")
        return entry

    async def withdraw(self, db: AsyncSession, entry_id: int) -> WaitlistEntry:
        """Remove an entry at the contact's request."""
        entry = await run_with_retries(db, self._remove, db, entry_id)
        logger.info(f"Waitlist entry {entry_id} withdrawn")
        return entry


# Singleton instance
waitlist_service = WaitlistService()
