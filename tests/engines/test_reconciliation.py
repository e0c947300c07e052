"""
Tests for the cumulative receipt reconciler.

Validates:
- Cumulative received quantities across the whole history
- completed / partially_received / no recommendation
- Over-receipt is a warning, never an error
- Foreign lines fail the call with no partial result
- Price variance and rejected quantity per line
- Inputs are never mutated
"""

from decimal import Decimal

import pytest

from supply_engines.reconciliation import (
    RECOMMEND_COMPLETED,
    RECOMMEND_PARTIALLY_RECEIVED,
    ReceiptReconciler,
    recommend_status,
)
from supply_kernel.domain.line_items import (
    GoodsReceiptLineItem,
    LineItemSet,
    OrderLineItem,
    VariantKey,
)
from supply_kernel.exceptions import ForeignLineItemError, QuantityExceededWarning

RED_M = VariantKey("TSHIRT", "RED", "M")
BLUE_L = VariantKey("TSHIRT", "BLUE", "L")


def _order(*items: OrderLineItem) -> LineItemSet:
    return LineItemSet.from_items(items).unwrap()


def _receipt(*items: GoodsReceiptLineItem) -> LineItemSet:
    return LineItemSet.from_items(items).unwrap()


@pytest.fixture
def reconciler():
    return ReceiptReconciler()


@pytest.fixture
def ordered():
    return _order(
        OrderLineItem(RED_M, 10, Decimal("25.00")),
        OrderLineItem(BLUE_L, 4, Decimal("27.50")),
    )


class TestReceiptReconciler:

    def test_single_full_receipt_completes(self, reconciler, ordered):
        outcome = reconciler.reconcile(ordered, [_receipt(
            GoodsReceiptLineItem(RED_M, 10, Decimal("25.00")),
            GoodsReceiptLineItem(BLUE_L, 4, Decimal("27.50")),
        )])

        result = outcome.unwrap()
        assert result.recommended_status == RECOMMEND_COMPLETED
        assert result.is_complete
        assert result.ordered_total == Decimal("360.00")
        assert result.received_total == Decimal("360.00")
        assert result.receipt_count == 1
        assert not outcome.warnings

    def test_partial_receipt(self, reconciler, ordered):
        outcome = reconciler.reconcile(ordered, [_receipt(
            GoodsReceiptLineItem(RED_M, 6, Decimal("25.00")),
        )])

        result = outcome.unwrap()
        assert result.recommended_status == RECOMMEND_PARTIALLY_RECEIVED
        assert result.line(RED_M).outstanding_quantity == 4
        assert result.line(BLUE_L).received_quantity == 0
        assert [line.key for line in result.outstanding_lines] == [RED_M, BLUE_L]

    def test_receipts_are_cumulative(self, reconciler, ordered):
        first = _receipt(GoodsReceiptLineItem(RED_M, 6, Decimal("25.00")))
        second = _receipt(
            GoodsReceiptLineItem(RED_M, 4, Decimal("25.00")),
            GoodsReceiptLineItem(BLUE_L, 4, Decimal("27.50")),
        )

        result = reconciler.reconcile(ordered, [first, second]).unwrap()

        assert result.line(RED_M).received_quantity == 10
        assert result.recommended_status == RECOMMEND_COMPLETED

    def test_zero_quantity_receipt_gives_no_recommendation(self, reconciler, ordered):
        result = reconciler.reconcile(ordered, [_receipt(
            GoodsReceiptLineItem(RED_M, 0, Decimal("25.00")),
        )]).unwrap()
        assert result.recommended_status is None

    def test_no_receipts(self, reconciler, ordered):
        result = reconciler.reconcile(ordered, []).unwrap()
        assert result.recommended_status is None
        assert result.received_quantity == 0

    def test_over_receipt_is_warning(self, reconciler, ordered):
        outcome = reconciler.reconcile(ordered, [_receipt(
            GoodsReceiptLineItem(RED_M, 12, Decimal("25.00")),
            GoodsReceiptLineItem(BLUE_L, 4, Decimal("27.50")),
        )])

        assert outcome.ok
        assert outcome.value.recommended_status == RECOMMEND_COMPLETED
        assert len(outcome.warnings) == 1
        warning = outcome.warnings[0]
        assert isinstance(warning, QuantityExceededWarning)
        assert warning.key == RED_M
        assert warning.excess_quantity == 2
        assert outcome.value.line(RED_M).excess_quantity == 2

    def test_foreign_line_fails(self, reconciler, ordered):
        stranger = VariantKey("HOODIE", "BLACK", "M")
        outcome = reconciler.reconcile(ordered, [
            _receipt(GoodsReceiptLineItem(RED_M, 1, Decimal("25.00"))),
            _receipt(GoodsReceiptLineItem(stranger, 1, Decimal("60.00"))),
        ])

        assert outcome.value is None
        assert isinstance(outcome.error, ForeignLineItemError)
        assert outcome.error.key == stranger
        assert outcome.error.receipt_index == 1

    def test_price_variance_and_rejected_quantity(self, reconciler, ordered):
        result = reconciler.reconcile(ordered, [_receipt(
            GoodsReceiptLineItem(RED_M, 4, Decimal("26.00")),
            GoodsReceiptLineItem(BLUE_L, 2, Decimal("27.50"), condition="damaged"),
        )]).unwrap()

        red = result.line(RED_M)
        assert red.received_value == Decimal("104.00")
        assert red.price_variance == Decimal("4.00")
        assert result.line(BLUE_L).rejected_quantity == 2
        assert result.line(BLUE_L).price_variance == Decimal("0")

    def test_inputs_not_mutated(self, reconciler, ordered):
        receipt = _receipt(GoodsReceiptLineItem(RED_M, 3, Decimal("25.00")))
        ordered_before = LineItemSet.from_items(ordered.items()).unwrap()
        receipt_before = LineItemSet.from_items(receipt.items()).unwrap()

        reconciler.reconcile(ordered, [receipt])

        assert ordered == ordered_before
        assert receipt == receipt_before

    def test_trace_emitted(self, reconciler, ordered, captured_logs):
        reconciler.reconcile(ordered, [])
        traces = [r for r in captured_logs() if r["message"] == "SUPPLY_ENGINE_TRACE"]
        assert traces[-1]["engine_name"] == "receipt_reconciler"
        assert len(traces[-1]["input_fingerprint"]) == 16
        assert traces[-1]["outcome_code"] is None


class TestRecommendStatus:

    def test_empty_order_has_no_recommendation(self):
        assert recommend_status([]) is None
