"""
Time-range helpers for scheduling.

Appointment timestamps are naive wall-clock datetimes in the business
timezone. Availability and course slots use zero-padded "HH:MM" strings,
which compare correctly as text within a single day.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from decimal import Decimal
import re
from typing import Iterator, Optional, Union
from zoneinfo import ZoneInfo

from ..core.constants import TIME_OF_DAY_FORMAT

HHMM_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
_SECONDS_PER_HOUR = Decimal(3600)


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """
    True if [a_start, a_end) and [b_start, b_end) intersect.

    Covers "starts during", "contains" and "ends during" in one predicate.
    Touching edges (a_end == b_start) do not overlap.
    """
    return a_start < b_end and b_start < a_end


def duration_hours(start: datetime, end: datetime) -> Decimal:
    """Length of [start, end) in hours; fractional values allowed."""
    delta = end - start
    seconds = Decimal(delta.days * 86400 + delta.seconds) + Decimal(delta.microseconds) / Decimal(
        1_000_000
    )
    return seconds / _SECONDS_PER_HOUR


def time_of_day(value: Union[datetime, time]) -> str:
    """Always return HH:MM format"""
    return value.strftime(TIME_OF_DAY_FORMAT)


def day_of_week(value: Union[datetime, date]) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return value.isoweekday() % 7


def is_hhmm(value: str) -> bool:
    return bool(HHMM_PATTERN.match(value or ""))


def parse_hhmm(value: str) -> time:
    """Parse a zero-padded "HH:MM" string."""
    if not is_hhmm(value):
        raise ValueError(f"Invalid time format: {value}. Expected HH:MM format.")
    hour, minute = value.split(":")
    return time(int(hour), int(minute))


def combine(day: date, hhmm: str) -> datetime:
    """Build a naive datetime from a calendar date and an "HH:MM" string."""
    return datetime.combine(day, parse_hhmm(hhmm))


def daterange(first: date, last: date) -> Iterator[date]:
    """Yield every calendar day from first to last, inclusive."""
    current = first
    while current <= last:
        yield current
        current += timedelta(days=1)


def spans_midnight(start: datetime, end: datetime) -> bool:
    """
    True when the interval does not fit inside start's calendar day.

    An end of exactly 00:00 on the following day still spans midnight,
    since "24:00" is not a valid time-of-day string.
    """
    return end.date() != start.date()


def to_business_time(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Normalize a datetime to naive wall-clock time in the business timezone.

    Naive values are assumed to already be business-local and pass through.
    """
    if value.tzinfo is None:
        return value
    if tz_name is None:
        from ..core.config import settings

        tz_name = settings.business_timezone
    return value.astimezone(ZoneInfo(tz_name)).replace(tzinfo=None)


def business_now(tz_name: Optional[str] = None) -> datetime:
    """Current naive wall-clock time in the business timezone."""
    if tz_name is None:
        from ..core.config import settings

        tz_name = settings.business_timezone
    return datetime.now(ZoneInfo(tz_name)).replace(tzinfo=None)


def localize(value: datetime, tz_name: Optional[str] = None) -> datetime:
    """Attach the business timezone to a naive wall-clock datetime."""
    if value.tzinfo is not None:
        return value
    if tz_name is None:
        from ..core.config import settings

        tz_name = settings.business_timezone
    return value.replace(tzinfo=ZoneInfo(tz_name))
