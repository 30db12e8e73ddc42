"""Domain errors raised by the booking engine.

Every error carries an HTTP status so the API layer can render it through a
single exception handler (see ``app.main``).
"""
from typing import Any, Dict, Optional


class BookingEngineError(Exception):
    """Base class for all booking engine errors."""

    status_code = 500

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(message)


class ValidationError(BookingEngineError):
    """Missing or malformed request fields."""

    status_code = 400


class NotFoundError(BookingEngineError):
    """A referenced court, booking, series or waitlist entry does not exist."""

    status_code = 404


class PaymentRequired(BookingEngineError):
    """Series activation attempted before payment was marked as paid."""

    status_code = 402


class InvalidTransition(BookingEngineError):
    """Lifecycle transition not allowed from the current status."""

    status_code = 409


class ConflictDetected(BookingEngineError):
    """A single booking would overlap an occupying booking."""

    status_code = 409


class ConcurrencyConflict(BookingEngineError):
    """The court lock could not be taken or the transaction kept failing."""

    status_code = 503


class InvalidConfiguration(BookingEngineError):
    """Court or facility data is inconsistent (not user-correctable)."""

    status_code = 500
