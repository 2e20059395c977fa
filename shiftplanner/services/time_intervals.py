"""
Time Interval Utilities

Minute-of-day arithmetic shared by the coverage resolver, the conflict checker
and the timeline builder. Times travel through the planner as "HH:MM" strings
and are converted to integer minutes (0-1440) for every comparison.

Intervals are half-open: [start, end). Two intervals that only touch at an
endpoint do not overlap, so back-to-back shifts are legal.
"""
import re
from dataclasses import dataclass
from typing import List, Optional

from shiftplanner.error_handlers.exceptions import InvalidTimeFormatException


MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r'([0-9]{2}):([0-9]{2})')


@dataclass(frozen=True)
class TimeInterval:
    """Half-open minute-of-day interval. Crossing midnight is not representable."""
    start_minute: int
    end_minute: int

    def __post_init__(self):
        if not (0 <= self.start_minute < self.end_minute <= MINUTES_PER_DAY):
            raise InvalidTimeFormatException(
                f"Invalid interval {self.start_minute}-{self.end_minute}: "
                f"start must precede end within a single day",
                details={'start_minute': self.start_minute, 'end_minute': self.end_minute}
            )

    @property
    def duration(self) -> int:
        return self.end_minute - self.start_minute

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minute)

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


def to_minutes(time_str, strict: bool = True) -> int:
    """
    Convert an "HH:MM" string to minutes since midnight.

    Args:
        time_str: Time string, hours 00-23 and minutes 00-59
        strict: Raise on malformed input. Lenient mode returns 0 instead and is
                only meant for display paths.

    Returns:
        Minutes since midnight

    Raises:
        InvalidTimeFormatException: In strict mode, when the value is missing
            or does not match HH:MM

    Examples:
        >>> to_minutes('09:30')
        570
        >>> to_minutes('9h', strict=False)
        0
    """
    match = _TIME_PATTERN.fullmatch(time_str) if isinstance(time_str, str) else None
    if match:
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours <= 23 and minutes <= 59:
            return hours * 60 + minutes

    if not strict:
        return 0

    raise InvalidTimeFormatException(
        f"Invalid time {time_str!r}, expected HH:MM",
        details={'value': time_str if isinstance(time_str, str) else repr(time_str)}
    )


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM". 1440 renders as "24:00"."""
    if not 0 <= minutes <= MINUTES_PER_DAY:
        raise ValueError(f"Minute value out of range: {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def parse_interval(start_time: str, end_time: str) -> TimeInterval:
    """
    Strictly parse a pair of "HH:MM" strings into a TimeInterval.

    "24:00" is accepted as an end value so that a closing time of midnight can
    be expressed. Zero-length and wrap-around intervals are rejected.

    Raises:
        InvalidTimeFormatException: On malformed times or end <= start
    """
    start = to_minutes(start_time)
    end = MINUTES_PER_DAY if end_time == '24:00' else to_minutes(end_time)

    if end <= start:
        raise InvalidTimeFormatException(
            f"Interval {start_time}-{end_time} does not run forward "
            f"(intervals crossing midnight are not supported)",
            details={'start_time': start_time, 'end_time': end_time}
        )

    return TimeInterval(start, end)


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True when the intervals share at least one minute. Touching is not overlapping."""
    return a.start_minute < b.end_minute and a.end_minute > b.start_minute


def clip(interval: TimeInterval, bounds: TimeInterval) -> Optional[TimeInterval]:
    """Intersect ``interval`` with ``bounds``; None when they are disjoint."""
    if not overlaps(interval, bounds):
        return None
    return TimeInterval(
        max(interval.start_minute, bounds.start_minute),
        min(interval.end_minute, bounds.end_minute)
    )


def outside_parts(interval: TimeInterval, bounds: Optional[TimeInterval]) -> List[TimeInterval]:
    """
    Parts of ``interval`` lying before and after ``bounds``, in time order.

    With no bounds (a closed day) the whole interval is outside.
    clip() and outside_parts() together always reconstruct ``interval``.
    """
    if bounds is None:
        return [interval]

    parts = []
    if interval.start_minute < bounds.start_minute:
        parts.append(TimeInterval(
            interval.start_minute,
            min(interval.end_minute, bounds.start_minute)
        ))
    if interval.end_minute > bounds.end_minute:
        parts.append(TimeInterval(
            max(interval.start_minute, bounds.end_minute),
            interval.end_minute
        ))
    return parts
