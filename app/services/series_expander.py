"""Expansion of a weekly recurrence into dated occurrences."""
from datetime import date, datetime, time, timedelta
from typing import List, NamedTuple


class SeriesOccurrence(NamedTuple):
    """One dated occurrence of a weekly recurrence."""

    date: date
    starts_at: datetime
    ends_at: datetime


def _window_on(day: date, start_time: time, end_time: time):
    starts_at = datetime.combine(day, start_time)
    ends_at = datetime.combine(day, end_time)
    # Ending at 00:00 means midnight at the end of the day
    if end_time == time(0, 0):
        ends_at += timedelta(days=1)
    return starts_at, ends_at


def expand_series(
    start_date: date,
    end_date: date,
    day_of_week: int,
    start_time: time,
    end_time: time,
) -> List[SeriesOccurrence]:
    """
    Expand a weekly recurrence into its occurrences.

    Every calendar date from ``start_date`` to ``end_date`` inclusive whose
    weekday (0 = Monday) equals ``day_of_week`` yields one occurrence.
    An empty list is returned when the range is empty or holds no such day.
    """
    occurrences = []
    current = start_date
    while current <= end_date:
        if current.weekday() == day_of_week:
            starts_at, ends_at = _window_on(current, start_time, end_time)
            occurrences.append(SeriesOccurrence(current, starts_at, ends_at))
        current += timedelta(days=1)
    return occurrences


def count_occurrences(
    start_date: date,
    end_date: date,
    day_of_week: int,
    start_time: time,
    end_time: time,
) -> int:
    """Number of bookings a series request would create."""
    return len(expand_series(start_date, end_date, day_of_week, start_time, end_time))
