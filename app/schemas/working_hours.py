"""Working hours schemas."""
from datetime import time
from typing import Dict

from pydantic import BaseModel

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

MINUTES_PER_DAY = 24 * 60


def minutes_of_day(value: time) -> int:
    """Minutes since midnight."""
    return value.hour * 60 + value.minute


class DayHours(BaseModel):
    """Opening hours for a single weekday."""

    open: time = time(0, 0)
    close: time = time(0, 0)
    closed: bool = False

    @property
    def open_minutes(self) -> int:
        return minutes_of_day(self.open)

    @property
    def close_minutes(self) -> int:
        # Closing at 00:00 means end of day
        if self.close == time(0, 0):
            return MINUTES_PER_DAY
        return minutes_of_day(self.close)


WorkingHours = Dict[str, DayHours]
