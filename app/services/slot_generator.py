"""Slot generation from a court's working hours.

Slots start at opening time and advance by the court's slot duration. A slot
whose end would pass closing time is never produced, so the last window of the
day may end before closing.
"""
import logging
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from app.core.config import settings
from app.core.exceptions import InvalidConfiguration
from app.models.court import Court
from app.schemas.availability import SlotWindow
from app.schemas.working_hours import WEEKDAYS, DayHours

logger = logging.getLogger(__name__)


def _parse_day_hours(raw: Dict[str, Any], weekday: str) -> Optional[DayHours]:
    entry = raw.get(weekday)
    if entry is None:
        return None
    try:
        return DayHours.model_validate(entry)
    except PydanticValidationError as e:
        raise InvalidConfiguration(
            f"Invalid working hours for {weekday}: {e}",
            details={"weekday": weekday},
        ) from e


def effective_day_hours(court: Court, target_date: date) -> DayHours:
    """
    Resolve the opening hours that apply to a court on a date.

    The court's own hours win over the facility's; when neither defines any
    hours the configured defaults apply. A weekday missing from a defined
    mapping is closed.
    """
    weekday = WEEKDAYS[target_date.weekday()]

    for raw in (court.working_hours, court.facility.working_hours if court.facility else None):
        if raw:
            hours = _parse_day_hours(raw, weekday)
            return hours if hours is not None else DayHours(closed=True)

    return DayHours(
        open=time.fromisoformat(settings.DEFAULT_OPEN_TIME),
        close=time.fromisoformat(settings.DEFAULT_CLOSE_TIME),
    )


def generate_windows(
    court_id: int,
    target_date: date,
    hours: DayHours,
    slot_duration_minutes: int,
) -> List[SlotWindow]:
    """
    Cut a day's opening hours into consecutive slot windows.

    Raises:
        InvalidConfiguration: If the duration is not positive or the day opens
            at or after closing time
    """
    if slot_duration_minutes is None or slot_duration_minutes <= 0:
        raise InvalidConfiguration(
            f"Slot duration must be positive, got {slot_duration_minutes}",
            details={"court_id": court_id},
        )

    if hours.closed:
        return []

    open_minutes = hours.open_minutes
    close_minutes = hours.close_minutes
    if open_minutes >= close_minutes:
        raise InvalidConfiguration(
            f"Opening time {hours.open:%H:%M} is not before closing time {hours.close:%H:%M}",
            details={"court_id": court_id, "date": target_date.isoformat()},
        )

    midnight = datetime.combine(target_date, time(0, 0))
    windows = []
    cursor = open_minutes
    while cursor + slot_duration_minutes <= close_minutes:
        windows.append(
            SlotWindow(
                court_id=court_id,
                date=target_date,
                starts_at=midnight + timedelta(minutes=cursor),
                ends_at=midnight + timedelta(minutes=cursor + slot_duration_minutes),
                duration_minutes=slot_duration_minutes,
            )
        )
        cursor += slot_duration_minutes

    return windows


def generate_slots(court: Court, target_date: date) -> List[SlotWindow]:
    """
    Generate the ordered bookable windows for a court on a date.

    Args:
        court: Court with its facility loaded
        target_date: Day to generate slots for

    Returns:
        Ordered list of slot windows, empty on a closed day
    """
    hours = effective_day_hours(court, target_date)
    windows = generate_windows(court.id, target_date, hours, court.slot_duration_minutes)
    logger.debug(f"Generated {len(windows)} slots for court {court.id} on {target_date}")
    return windows


def window_fits_hours(court: Court, starts_at: datetime, ends_at: datetime) -> bool:
    """Check that a window lies within the court's hours on its start date."""
    hours = effective_day_hours(court, starts_at.date())
    if hours.closed:
        return False

    midnight = datetime.combine(starts_at.date(), time(0, 0))
    start_minutes = (starts_at - midnight).total_seconds() / 60
    end_minutes = (ends_at - midnight).total_seconds() / 60
    return hours.open_minutes <= start_minutes < end_minutes <= hours.close_minutes
