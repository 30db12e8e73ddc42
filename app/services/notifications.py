"""Notification dispatch.

Lifecycle events and waitlist offers are posted as JSON to a webhook that
forwards them to email/SMS delivery. Dispatch is fire-and-forget: a failed
delivery is logged and never undoes the transition that triggered it.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Optional

import httpx

from app.core.config import settings

logger = logging.getLogger(__name__)


class NotificationService:
    """Posts engine events to the configured notification webhook."""

    def __init__(
        self,
        webhook_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize the notification service."""
        self.webhook_url = webhook_url if webhook_url is not None else settings.NOTIFICATION_WEBHOOK_URL
        self.timeout = timeout if timeout is not None else settings.NOTIFICATION_TIMEOUT_SECONDS
        self.transport = transport

    async def send(self, event: str, payload: Dict[str, Any]) -> bool:
        """
        Dispatch one event.

        Args:
            event: Event name, e.g. ``series.activated``
            payload: JSON-serializable event data

        Returns:
            True if the webhook accepted the event, False otherwise
        """
        if not self.webhook_url:
            logger.info(f"Notification {event} not sent: no webhook configured")
            return False

        body = {
            "event": event,
            "sent_at": datetime.utcnow().isoformat(),
            "data": payload,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(self.webhook_url, json=body)
                response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Failed to send notification {event}: {e}")
            return False
        except Exception as e:
            logger.warning(f"Error dispatching notification {event}: {e}", exc_info=True)
            return False

        logger.info(f"Sent notification {event}")
        return True

    async def series_event(self, event: str, series_id: str, **extra: Any) -> bool:
        """Notify about a seasonal series transition."""
        return await self.send(f"series.{event}", {"series_id": series_id, **extra})

    async def waitlist_offer(self, entry) -> bool:
        """Offer a released slot to a waitlist entry."""
        return await self.send(
            "waitlist.offer",
            {
                "waitlist_entry_id": entry.id,
                "court_id": entry.court_id,
                "starts_at": entry.starts_at.isoformat(),
                "ends_at": entry.ends_at.isoformat(),
                "contact_email": entry.contact_email,
                "contact_name": entry.contact_name,
                "position": entry.position,
            },
        )


# Singleton instance
notification_service = NotificationService()
