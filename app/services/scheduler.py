"""Background scheduler for the seasonal auto-complete sweep."""
import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from app.core.config import settings
from app.core.database import AsyncSessionLocal
from app.schemas.seasonal import AutoCompleteResult
from app.services.seasonal_service import seasonal_service

logger = logging.getLogger(__name__)


class AutoCompleteScheduler:
    """Periodically completes active seasonal series whose end date has passed."""

    def __init__(self, interval_minutes: Optional[int] = None):
        """Initialize the scheduler."""
        self.scheduler = AsyncIOScheduler(timezone=settings.TIMEZONE)
        self.interval_minutes = interval_minutes or settings.AUTO_COMPLETE_INTERVAL_MINUTES
        self.running = False

    async def start(self):
        """Start the scheduler."""
        if self.running:
            logger.warning("Scheduler is already running")
            return

        logger.info("Starting auto-complete scheduler")

        # One sweep at a time; overlapping runs are skipped
        self.scheduler.add_job(
            self.run_sweep,
            IntervalTrigger(minutes=self.interval_minutes),
            id="auto_complete_job",
            name="Auto-complete expired seasonal series",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        self.scheduler.start()
        self.running = True
        logger.info(f"Auto-complete scheduler started (every {self.interval_minutes} min)")

    async def stop(self):
        """Stop the scheduler."""
        if not self.running:
            return

        logger.info("Stopping auto-complete scheduler")
        self.scheduler.shutdown(wait=False)
        self.running = False
        logger.info("Auto-complete scheduler stopped")

    async def run_sweep(self) -> Optional[AutoCompleteResult]:
        """
        Run one auto-complete sweep in its own session.

        Errors are logged and the next interval retries; the sweep is
        idempotent so a failed or repeated run is harmless.
        """
        logger.debug("Running auto-complete sweep")

        async with AsyncSessionLocal() as db:
            try:
                return await seasonal_service.auto_complete(db)
            except Exception as e:
                logger.error(f"Error in auto-complete sweep: {e}", exc_info=True)
                await db.rollback()
                return None


# Singleton instance
auto_complete_scheduler = AutoCompleteScheduler()
