"""
Date-interval primitives shared by discount periods and delivery windows.

All intervals are CLOSED at day granularity: ``[start, end]`` includes both
boundary days. Datetimes are normalized to their calendar date before any
comparison, so a period ending "today" covers all of today.

Two closed intervals overlap iff ``s1 <= e2 and s2 <= e1``; touching
boundaries therefore overlap.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from supply_kernel.exceptions import InvalidIntervalError


def as_day(value: date | datetime) -> date:
    """Normalize a date or datetime to its calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


@dataclass(frozen=True, slots=True)
class DateInterval:
    """A closed day range ``[start, end]``."""

    start: date
    end: date

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_day(self.start))
        object.__setattr__(self, "end", as_day(self.end))
        if self.end < self.start:
            raise InvalidIntervalError(str(self.start), str(self.end))

    @property
    def days(self) -> int:
        """Number of days covered, both ends included."""
        return (self.end - self.start).days + 1

    def contains(self, day: date | datetime) -> bool:
        d = as_day(day)
        return self.start <= d <= self.end

    def overlaps(self, other: DateInterval) -> bool:
        return intervals_overlap(self.start, self.end, other.start, other.end)

    def intersection(self, other: DateInterval) -> DateInterval | None:
        if not self.overlaps(other):
            return None
        return DateInterval(max(self.start, other.start), min(self.end, other.end))

    def shifted(self, days: int) -> DateInterval:
        delta = timedelta(days=days)
        return DateInterval(self.start + delta, self.end + delta)


def intervals_overlap(
    s1: date | datetime,
    e1: date | datetime,
    s2: date | datetime,
    e2: date | datetime,
) -> bool:
    """Closed-interval overlap test at day granularity."""
    return as_day(s1) <= as_day(e2) and as_day(s2) <= as_day(e1)


def validate_strictly_after(
    start: date | datetime,
    end: date | datetime | None,
) -> InvalidIntervalError | None:
    """
    Return an InvalidIntervalError unless ``end`` is strictly after ``start``.

    ``end=None`` is valid (optional upper bound, e.g. no expected delivery
    date yet).
    """
    if end is None:
        return None
    if as_day(end) <= as_day(start):
        return InvalidIntervalError(str(as_day(start)), str(as_day(end)))
    return None
