"""
Rotation frequency and period boundary calculations.

A rotation frequency is either chosen symbolically or inferred from a date
pattern by formatting a reference instant and the same instant pushed
forward by one minute, one hour, twelve hours, one day, seven days and one
month. The first step that changes the formatted output is the frequency.

Weeks start on Sunday, matching the ``ww`` token of date patterns.
"""

from calendar import monthrange
from collections import namedtuple
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional, Union

from .date_pattern import format_datetime
from .exceptions import InvalidPatternError


class RotationFrequency(Enum):
    """How often the active log file is rotated."""

    MINUTELY = "minutely"
    HOURLY = "hourly"
    HALF_DAILY = "half_daily"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


CANONICAL_PATTERNS = {
    RotationFrequency.MINUTELY: ".yyyy-MM-dd-hh-mm",
    RotationFrequency.HOURLY: ".yyyy-MM-dd-hh",
    RotationFrequency.HALF_DAILY: ".yyyy-MM-dd-a",
    RotationFrequency.DAILY: ".yyyy-MM-dd",
    RotationFrequency.WEEKLY: ".yyyy-ww",
    RotationFrequency.MONTHLY: ".yyyy-MM",
}

REFERENCE_TIME = datetime(1999, 1, 1, 0, 0)

RolloverSchedule = namedtuple("RolloverSchedule", ["current_period", "next_rollover"])


def add_months(value: datetime, months: int) -> datetime:
    """Move a datetime by whole calendar months, clamping the day to the month length."""
    years, month_index = divmod(value.month - 1 + months, 12)
    year = value.year + years
    month = month_index + 1
    day = min(value.day, monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


# Probe order matters: the finest granularity that changes the output wins
_PROBES = (
    (RotationFrequency.MINUTELY, lambda t: t + timedelta(minutes=1)),
    (RotationFrequency.HOURLY, lambda t: t + timedelta(hours=1)),
    (RotationFrequency.HALF_DAILY, lambda t: t + timedelta(hours=12)),
    (RotationFrequency.DAILY, lambda t: t + timedelta(days=1)),
    (RotationFrequency.WEEKLY, lambda t: t + timedelta(days=7)),
    (RotationFrequency.MONTHLY, lambda t: add_months(t, 1)),
)


def infer_frequency(
    pattern: str,
    formatter: Callable[[datetime, str], str] = format_datetime,
    reference: datetime = REFERENCE_TIME,
) -> RotationFrequency:
    """
    Infer the rotation frequency described by a date pattern.

    Args:
        pattern: Date pattern, e.g. ".yyyy-MM-dd"
        formatter: Function formatting a datetime with the pattern
        reference: Instant the probes start from

    Returns:
        The finest RotationFrequency whose step changes the formatted output

    Raises:
        InvalidPatternError: If no step changes the output
    """
    if not pattern:
        raise InvalidPatternError(pattern)

    start = formatter(reference, pattern)
    for frequency, advance in _PROBES:
        if formatter(advance(reference), pattern) != start:
            return frequency
    raise InvalidPatternError(pattern)


def period_start(timestamp: datetime, frequency: RotationFrequency) -> datetime:
    """
    Truncate a timestamp to the start of the period containing it.

    Args:
        timestamp: Any datetime, naive or aware
        frequency: Rotation frequency

    Returns:
        Start of the period, with the same tzinfo as the timestamp
    """
    if frequency is RotationFrequency.MINUTELY:
        return timestamp.replace(second=0, microsecond=0, fold=0)
    if frequency is RotationFrequency.HOURLY:
        return timestamp.replace(minute=0, second=0, microsecond=0, fold=0)
    if frequency is RotationFrequency.HALF_DAILY:
        hour = 12 if timestamp.hour >= 12 else 0
        return timestamp.replace(hour=hour, minute=0, second=0, microsecond=0, fold=0)

    midnight = timestamp.replace(hour=0, minute=0, second=0, microsecond=0, fold=0)
    if frequency is RotationFrequency.DAILY:
        return midnight
    if frequency is RotationFrequency.WEEKLY:
        # weekday() is 0 for Monday; shift so Sunday is day 0
        days_since_sunday = (timestamp.weekday() + 1) % 7
        return midnight - timedelta(days=days_since_sunday)
    if frequency is RotationFrequency.MONTHLY:
        return midnight.replace(day=1)
    raise ValueError(f"Unknown rotation frequency: {frequency!r}")


def next_period_start(timestamp: datetime, frequency: RotationFrequency) -> datetime:
    """
    Get the start of the period following the one containing a timestamp.

    Day-based steps use wall-clock arithmetic, so an aware timestamp keeps its
    local midnight across daylight saving changes.
    """
    start = period_start(timestamp, frequency)
    if frequency is RotationFrequency.MINUTELY:
        return start + timedelta(minutes=1)
    if frequency is RotationFrequency.HOURLY:
        return start + timedelta(hours=1)
    if frequency is RotationFrequency.HALF_DAILY:
        return start + timedelta(hours=12)
    if frequency is RotationFrequency.DAILY:
        return start + timedelta(days=1)
    if frequency is RotationFrequency.WEEKLY:
        return start + timedelta(days=7)
    return add_months(start, 1)


def compute_schedule(
    now: datetime, frequency: RotationFrequency, file_time: Optional[datetime] = None
) -> RolloverSchedule:
    """
    Build the rollover schedule for a moment in time.

    Args:
        now: Current time; the next rollover is the period after it
        frequency: Rotation frequency
        file_time: Time the active file belongs to, defaults to now

    Returns:
        RolloverSchedule(current_period, next_rollover)
    """
    if file_time is None:
        file_time = now
    return RolloverSchedule(period_start(file_time, frequency), next_period_start(now, frequency))


def resolve_date_pattern(value: Union[str, RotationFrequency]) -> Union[str, RotationFrequency]:
    """
    Map a configured date pattern to a RotationFrequency when it names one.

    Symbolic names ("daily", "Weekly", "half-daily") become enum members,
    anything else is returned unchanged as a custom pattern.
    """
    if isinstance(value, RotationFrequency):
        return value
    name = str(value).strip().lower().replace("-", "_")
    for frequency in RotationFrequency:
        if name == frequency.value:
            return frequency
    return value
