"""
Module: supply_engines
Responsibility:
    Package entrypoint that re-exports the pure decision engines. This is
    the canonical import surface for supply_modules.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import supply_kernel (domain, exceptions, logging).
    MUST NOT import supply_modules.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The current date is passed in by the caller.
    - Decimal-only arithmetic for money.
    - Determinism: identical inputs always produce identical outputs.
    - Errors are returned as Outcome values, never raised.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``supply_engines.tracer``), emitting SUPPLY_ENGINE_TRACE log records.
"""

from supply_engines.periods import (
    PeriodConflictDetector,
    PeriodStatus,
    PeriodStatusCalculator,
    ScheduledPeriod,
    period_status,
)
from supply_engines.reconciliation import (
    LineReconciliation,
    ReceiptReconciler,
    ReconciliationResult,
    recommend_status,
)
from supply_engines.state_machine import GuardExecutor, StateMachine, context_value
from supply_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "PeriodConflictDetector",
    "PeriodStatus",
    "PeriodStatusCalculator",
    "ScheduledPeriod",
    "period_status",
    "LineReconciliation",
    "ReceiptReconciler",
    "ReconciliationResult",
    "recommend_status",
    "GuardExecutor",
    "StateMachine",
    "context_value",
    "compute_input_fingerprint",
    "traced_engine",
]
