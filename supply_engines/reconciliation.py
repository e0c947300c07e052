"""
supply_engines.reconciliation -- Cumulative receipt reconciliation.

Responsibility:
    Compare what was ordered on a purchase order with everything received
    against it so far, line by line, and recommend the order's next status.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Imports only supply_kernel.domain and supply_kernel.exceptions.

Invariants enforced:
    - Cumulative: received quantities are summed over the complete receipt
      history passed in, never over the latest receipt alone. The caller
      must pass the full history (including the receipt being recorded).
    - Every receipt line must reference a VariantKey on the order.
    - Over-receipt is allowed and reported as a QuantityExceededWarning per
      line. It never fails the call.
    - The order's LineItemSet and the receipt sets are never mutated.
    - Money is exact Decimal; nothing is rounded here.

Failure modes:
    - ForeignLineItemError in ``Outcome.error`` when any receipt line's key
      is absent from the order. No partial result is returned.

Usage:
    reconciler = ReceiptReconciler()
    outcome = reconciler.reconcile(order_lines, [receipt_1_lines, receipt_2_lines])
    if outcome.ok:
        outcome.value.recommended_status   # "completed" / "partially_received" / None
        outcome.warnings                   # QuantityExceededWarning values
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from supply_engines.tracer import traced_engine
from supply_kernel.domain.line_items import (
    GoodsReceiptLineItem,
    LineItemSet,
    OrderLineItem,
    ReceiptCondition,
    VariantKey,
)
from supply_kernel.domain.outcome import Outcome
from supply_kernel.domain.values import ZERO
from supply_kernel.exceptions import ForeignLineItemError, QuantityExceededWarning
from supply_kernel.logging_config import get_logger

logger = get_logger("engines.reconciliation")

RECOMMEND_COMPLETED = "completed"
RECOMMEND_PARTIALLY_RECEIVED = "partially_received"


@dataclass(frozen=True)
class LineReconciliation:
    """Reconciled position of one ordered line."""

    key: VariantKey
    ordered_quantity: int
    received_quantity: int
    unit_price: Decimal
    received_value: Decimal
    rejected_quantity: int = 0
    price_variance: Decimal = ZERO

    @property
    def outstanding_quantity(self) -> int:
        return max(self.ordered_quantity - self.received_quantity, 0)

    @property
    def excess_quantity(self) -> int:
        return max(self.received_quantity - self.ordered_quantity, 0)

    @property
    def is_fulfilled(self) -> bool:
        return self.received_quantity >= self.ordered_quantity

    @property
    def has_receipts(self) -> bool:
        return self.received_quantity > 0

    @property
    def ordered_value(self) -> Decimal:
        return self.ordered_quantity * self.unit_price


@dataclass(frozen=True)
class ReconciliationResult:
    """Order-level reconciliation over the full receipt history."""

    lines: tuple[LineReconciliation, ...]
    receipt_count: int
    recommended_status: str | None

    @property
    def ordered_total(self) -> Decimal:
        return sum((line.ordered_value for line in self.lines), ZERO)

    @property
    def received_total(self) -> Decimal:
        return sum((line.received_value for line in self.lines), ZERO)

    @property
    def ordered_quantity(self) -> int:
        return sum(line.ordered_quantity for line in self.lines)

    @property
    def received_quantity(self) -> int:
        return sum(line.received_quantity for line in self.lines)

    @property
    def is_complete(self) -> bool:
        return all(line.is_fulfilled for line in self.lines)

    @property
    def outstanding_lines(self) -> tuple[LineReconciliation, ...]:
        return tuple(line for line in self.lines if not line.is_fulfilled)

    def line(self, key: VariantKey) -> LineReconciliation | None:
        for candidate in self.lines:
            if candidate.key == key:
                return candidate
        return None


class ReceiptReconciler:
    """
    Stateless reconciler of ordered lines against receipt history.

    Price variance per line is ``received value - received quantity x
    ordered unit price``: positive when the supplier charged more than the
    order price on what was delivered.
    """

    @traced_engine(
        "receipt_reconciler", "1.0", fingerprint_fields=("ordered", "receipts"),
    )
    def reconcile(
        self,
        ordered: LineItemSet[OrderLineItem],
        receipts: Sequence[LineItemSet[GoodsReceiptLineItem]],
    ) -> Outcome[ReconciliationResult]:
        received_qty: dict[VariantKey, int] = {key: 0 for key in ordered.keys()}
        received_val: dict[VariantKey, Decimal] = {key: ZERO for key in ordered.keys()}
        rejected_qty: dict[VariantKey, int] = {key: 0 for key in ordered.keys()}

        for index, receipt in enumerate(receipts):
            for line in receipt:
                if line.key not in received_qty:
                    logger.warning(
                        "receipt_foreign_line_item",
                        extra={"variant": str(line.key), "receipt_index": index},
                    )
                    return Outcome.failure(ForeignLineItemError(line.key, index))
                received_qty[line.key] += line.quantity
                received_val[line.key] += line.quantity * line.unit_price
                if line.condition != ReceiptCondition.GOOD:
                    rejected_qty[line.key] += line.quantity

        lines: list[LineReconciliation] = []
        warnings: list[QuantityExceededWarning] = []
        for item in ordered:
            qty = received_qty[item.key]
            lines.append(
                LineReconciliation(
                    key=item.key,
                    ordered_quantity=item.quantity,
                    received_quantity=qty,
                    unit_price=item.unit_price,
                    received_value=received_val[item.key],
                    rejected_quantity=rejected_qty[item.key],
                    price_variance=received_val[item.key] - qty * item.unit_price,
                )
            )
            if qty > item.quantity:
                warnings.append(
                    QuantityExceededWarning(item.key, item.quantity, qty),
                )

        result = ReconciliationResult(
            lines=tuple(lines),
            receipt_count=len(receipts),
            recommended_status=recommend_status(lines),
        )

        logger.info(
            "receipt_reconciled",
            extra={
                "line_count": len(lines),
                "receipt_count": len(receipts),
                "ordered_quantity": result.ordered_quantity,
                "received_quantity": result.received_quantity,
                "recommended_status": result.recommended_status,
                "warning_count": len(warnings),
            },
        )
        return Outcome.success(result, warnings=tuple(warnings))


def recommend_status(lines: Sequence[LineReconciliation]) -> str | None:
    """``completed`` if every line is fulfilled, ``partially_received`` if any
    line has received quantity, otherwise no recommendation."""
    if not lines:
        return None
    if all(line.is_fulfilled for line in lines):
        return RECOMMEND_COMPLETED
    if any(line.has_receipts for line in lines):
        return RECOMMEND_PARTIALLY_RECEIVED
    return None
