"""
supply_engines.periods -- Discount-period conflict detection and live status.

Responsibility:
    Decide whether a candidate date range collides with existing scheduled
    periods, and derive a period's status from the current date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Depends only on the interval primitives in supply_kernel.domain.

Invariants enforced:
    - Intervals are closed at day granularity: ``[s1, e1]`` and ``[s2, e2]``
      conflict iff ``s1 <= e2 and s2 <= e1``. Touching boundaries conflict.
    - Status is a pure function of (now, start, end). It is never stored.
    - The conflict check is advisory. It is not atomic with period
      creation; two concurrent creations may both pass.

Failure modes:
    - PeriodConflictError in ``Outcome.error`` for the first conflicting
      period in input order.
    - InvalidIntervalError in ``Outcome.error`` when the candidate itself
      has end before start.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date, datetime
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from supply_engines.tracer import traced_engine
from supply_kernel.domain.intervals import DateInterval, as_day
from supply_kernel.domain.outcome import Outcome
from supply_kernel.exceptions import InvalidIntervalError, PeriodConflictError
from supply_kernel.logging_config import get_logger

logger = get_logger("engines.periods")


class PeriodStatus(str, Enum):
    """Live status of a scheduled period."""

    NOT_STARTED = "not-started"
    ACTIVE = "active"
    ENDED = "ended"


@runtime_checkable
class ScheduledPeriod(Protocol):
    id: Any
    start_date: date
    end_date: date


def period_status(
    now: date | datetime,
    start: date | datetime,
    end: date | datetime,
) -> PeriodStatus:
    """
    Status of ``[start, end]`` on the day of ``now``.

    ``now < start`` is not started, ``now > end`` is ended, anything else is
    active. A period ending today is active for all of today.
    """
    today = as_day(now)
    if today < as_day(start):
        return PeriodStatus.NOT_STARTED
    if today > as_day(end):
        return PeriodStatus.ENDED
    return PeriodStatus.ACTIVE


class PeriodStatusCalculator:
    """Derives period status; re-evaluated on every read."""

    def status(
        self,
        now: date | datetime,
        start: date | datetime,
        end: date | datetime,
    ) -> PeriodStatus:
        return period_status(now, start, end)

    def status_of(self, now: date | datetime, period: ScheduledPeriod) -> PeriodStatus:
        return period_status(now, period.start_date, period.end_date)

    def filter(
        self,
        now: date | datetime,
        periods: Iterable[ScheduledPeriod],
        status: PeriodStatus,
    ) -> list[ScheduledPeriod]:
        """Periods whose derived status on ``now`` equals ``status``."""
        return [p for p in periods if self.status_of(now, p) == status]


class PeriodConflictDetector:
    """Closed-interval overlap check of a candidate against existing periods."""

    @traced_engine(
        "period_conflict", "1.0", fingerprint_fields=("start", "end", "exclude_id"),
    )
    def check(
        self,
        start: date | datetime,
        end: date | datetime,
        existing: Iterable[ScheduledPeriod],
        exclude_id: Any = None,
    ) -> Outcome[None]:
        """
        Return success, or the first conflicting period as a
        PeriodConflictError carrying the overlapping day range.

        ``exclude_id`` skips one period (the period being edited).
        """
        try:
            candidate = DateInterval(start, end)
        except InvalidIntervalError as exc:
            return Outcome.failure(exc)

        for period in existing:
            if exclude_id is not None and str(period.id) == str(exclude_id):
                continue
            other = DateInterval(period.start_date, period.end_date)
            overlap = candidate.intersection(other)
            if overlap is None:
                continue
            logger.info(
                "period_conflict_detected",
                extra={
                    "candidate_start": candidate.start,
                    "candidate_end": candidate.end,
                    "existing_period_id": str(period.id),
                    "overlap_days": overlap.days,
                },
            )
            return Outcome.failure(
                PeriodConflictError(
                    existing_period_id=str(period.id),
                    existing_start=str(other.start),
                    existing_end=str(other.end),
                    overlap_start=str(overlap.start),
                    overlap_end=str(overlap.end),
                )
            )
        return Outcome.success(None)

    def find_conflicts(
        self,
        start: date | datetime,
        end: date | datetime,
        existing: Iterable[ScheduledPeriod],
        exclude_id: Any = None,
    ) -> list[ScheduledPeriod]:
        """Every period overlapping ``[start, end]``, in input order."""
        candidate = DateInterval(start, end)
        return [
            p for p in existing
            if not (exclude_id is not None and str(p.id) == str(exclude_id))
            and candidate.overlaps(DateInterval(p.start_date, p.end_date))
        ]
