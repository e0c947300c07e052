"""
Pure domain layer.

Value objects and in-memory collections with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (use an injected Clock)
- I/O
"""

from supply_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from supply_kernel.domain.intervals import (
    DateInterval,
    as_day,
    intervals_overlap,
    validate_strictly_after,
)
from supply_kernel.domain.line_items import (
    GoodsReceiptLineItem,
    LineItemDraft,
    LineItemSet,
    OrderLineItem,
    ReceiptCondition,
    VariantKey,
)
from supply_kernel.domain.outcome import Outcome
from supply_kernel.domain.values import round_money, to_price, to_quantity
from supply_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "DateInterval",
    "as_day",
    "intervals_overlap",
    "validate_strictly_after",
    "GoodsReceiptLineItem",
    "LineItemDraft",
    "LineItemSet",
    "OrderLineItem",
    "ReceiptCondition",
    "VariantKey",
    "Outcome",
    "round_money",
    "to_price",
    "to_quantity",
    "Guard",
    "Transition",
    "Workflow",
]
