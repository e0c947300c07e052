"""
Tests for period conflict detection and live period status.

Validates:
- Status boundaries: day before start, start day, end day, day after end
- Touching boundaries conflict; adjacent days do not
- First conflict in input order is reported with the overlapping range
- A period can be excluded from its own check
"""

from dataclasses import dataclass
from datetime import date, datetime, timezone
from uuid import UUID, uuid4

import pytest

from supply_engines.periods import (
    PeriodConflictDetector,
    PeriodStatus,
    PeriodStatusCalculator,
    ScheduledPeriod,
    period_status,
)
from supply_kernel.exceptions import InvalidIntervalError, PeriodConflictError


@dataclass(frozen=True)
class _Period:
    id: UUID
    start_date: date
    end_date: date


def _period(start: date, end: date) -> _Period:
    return _Period(uuid4(), start, end)


START = date(2024, 3, 10)
END = date(2024, 3, 20)


class TestPeriodStatus:

    @pytest.mark.parametrize(
        "today,expected",
        [
            (date(2024, 3, 9), PeriodStatus.NOT_STARTED),
            (START, PeriodStatus.ACTIVE),
            (date(2024, 3, 15), PeriodStatus.ACTIVE),
            (END, PeriodStatus.ACTIVE),
            (date(2024, 3, 21), PeriodStatus.ENDED),
        ],
    )
    def test_boundaries(self, today, expected):
        assert period_status(today, START, END) == expected

    def test_end_day_active_until_midnight(self):
        late = datetime(2024, 3, 20, 23, 59, 59, tzinfo=timezone.utc)
        assert PeriodStatusCalculator().status(late, START, END) == PeriodStatus.ACTIVE

    def test_status_values(self):
        assert PeriodStatus.NOT_STARTED.value == "not-started"
        assert PeriodStatus("ended") is PeriodStatus.ENDED

    def test_filter(self):
        calc = PeriodStatusCalculator()
        past = _period(date(2024, 1, 1), date(2024, 1, 31))
        current = _period(START, END)
        future = _period(date(2024, 5, 1), date(2024, 5, 31))
        periods = [past, current, future]

        assert calc.filter(date(2024, 3, 15), periods, PeriodStatus.ACTIVE) == [current]
        assert calc.filter(date(2024, 3, 15), periods, PeriodStatus.ENDED) == [past]
        assert isinstance(current, ScheduledPeriod)


class TestPeriodConflictDetector:

    @pytest.fixture
    def detector(self):
        return PeriodConflictDetector()

    def test_no_existing_periods(self, detector):
        assert detector.check(START, END, []).ok

    def test_touching_boundary_conflicts(self, detector):
        existing = _period(date(2024, 3, 1), START)
        outcome = detector.check(START, END, [existing])

        assert isinstance(outcome.error, PeriodConflictError)
        assert outcome.error.existing_period_id == str(existing.id)
        assert outcome.error.overlap_start == "2024-03-10"
        assert outcome.error.overlap_end == "2024-03-10"

    def test_adjacent_periods_do_not_conflict(self, detector):
        before = _period(date(2024, 3, 1), date(2024, 3, 9))
        after = _period(date(2024, 3, 21), date(2024, 3, 31))
        assert detector.check(START, END, [before, after]).ok

    def test_first_conflict_in_input_order(self, detector):
        first = _period(date(2024, 3, 18), date(2024, 3, 25))
        second = _period(date(2024, 3, 1), date(2024, 3, 12))
        outcome = detector.check(START, END, [first, second])
        assert outcome.error.existing_period_id == str(first.id)

    def test_contained_period_conflicts(self, detector):
        inner = _period(date(2024, 3, 12), date(2024, 3, 14))
        outcome = detector.check(START, END, [inner])
        assert outcome.error.overlap_start == "2024-03-12"
        assert outcome.error.overlap_end == "2024-03-14"

    def test_exclude_id_skips_period(self, detector):
        own = _period(START, END)
        assert detector.check(date(2024, 3, 12), date(2024, 3, 25), [own], exclude_id=own.id).ok

    def test_invalid_candidate(self, detector):
        outcome = detector.check(END, START, [])
        assert isinstance(outcome.error, InvalidIntervalError)

    def test_find_conflicts_returns_all(self, detector):
        a = _period(date(2024, 3, 1), date(2024, 3, 10))
        b = _period(date(2024, 3, 11), date(2024, 3, 12))
        c = _period(date(2024, 4, 1), date(2024, 4, 2))
        assert detector.find_conflicts(START, END, [a, b, c]) == [a, b]

    def test_conflict_logged(self, detector, captured_logs):
        detector.check(START, END, [_period(START, END)])
        events = [r["message"] for r in captured_logs()]
        assert "period_conflict_detected" in events
