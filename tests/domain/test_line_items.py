"""
Tests for VariantKey, order/receipt line items, drafts and LineItemSet.

Validates:
- VariantKey structural equality and id normalization
- Quantity and price rules at construction
- Duplicate rejection leaves the set unchanged
- replace() re-validates uniqueness and keeps position
- total() is exact and insertion-order invariant
- LineItemDraft product change clears color and size
"""

from decimal import Decimal

import pytest

from supply_kernel.domain.line_items import (
    GoodsReceiptLineItem,
    LineItemDraft,
    LineItemSet,
    OrderLineItem,
    ReceiptCondition,
    VariantKey,
)
from supply_kernel.exceptions import (
    DuplicateVariantError,
    IncompleteVariantError,
    InvalidPriceError,
    InvalidQuantityError,
)


class TestVariantKey:
    """Canonical identity of a (product, color, size) combination."""

    def test_structural_equality(self):
        assert VariantKey("P1", "RED", "M") == VariantKey("P1", "RED", "M")
        assert hash(VariantKey("P1", "RED", "M")) == hash(VariantKey("P1", "RED", "M"))

    def test_each_component_matters(self):
        base = VariantKey("P1", "RED", "M")
        assert base != VariantKey("P2", "RED", "M")
        assert base != VariantKey("P1", "BLUE", "M")
        assert base != VariantKey("P1", "RED", "L")

    def test_ids_normalized_to_str(self):
        assert VariantKey(1, 2, 3) == VariantKey("1", "2", "3")
        assert VariantKey(" P1 ", "RED", "M") == VariantKey("P1", "RED", "M")

    @pytest.mark.parametrize("missing", [None, "", "   "])
    def test_blank_component_rejected(self, missing):
        with pytest.raises(ValueError):
            VariantKey("P1", missing, "M")

    def test_str(self):
        assert str(VariantKey("P1", "RED", "M")) == "P1/RED/M"


class TestOrderLineItem:

    def test_line_total(self):
        item = OrderLineItem.of("P1", "RED", "M", 3, "19.99")
        assert item.unit_price == Decimal("19.99")
        assert item.line_total == Decimal("59.97")

    @pytest.mark.parametrize("quantity", [0, -1, "1.5", True, 2.0])
    def test_bad_quantity_rejected(self, quantity):
        with pytest.raises(InvalidQuantityError):
            OrderLineItem.of("P1", "RED", "M", quantity, "1.00")

    def test_integral_decimal_quantity_accepted(self):
        item = OrderLineItem.of("P1", "RED", "M", Decimal("5.000"), "1.00")
        assert item.quantity == 5

    @pytest.mark.parametrize("price", ["-0.01", 1.5, "abc", None])
    def test_bad_price_rejected(self, price):
        with pytest.raises(InvalidPriceError):
            OrderLineItem.of("P1", "RED", "M", 1, price)

    def test_zero_price_allowed(self):
        assert OrderLineItem.of("P1", "RED", "M", 1, 0).line_total == Decimal("0")


class TestGoodsReceiptLineItem:

    def test_zero_quantity_allowed(self):
        item = GoodsReceiptLineItem.of("P1", "RED", "M", 0, "10.00")
        assert item.quantity == 0
        assert item.received_value == Decimal("0")

    def test_negative_quantity_rejected(self):
        with pytest.raises(InvalidQuantityError):
            GoodsReceiptLineItem.of("P1", "RED", "M", -2, "10.00")

    def test_condition_coerced(self):
        item = GoodsReceiptLineItem.of("P1", "RED", "M", 1, "10.00", condition="damaged")
        assert item.condition is ReceiptCondition.DAMAGED

    def test_unknown_condition_rejected(self):
        with pytest.raises(ValueError):
            GoodsReceiptLineItem.of("P1", "RED", "M", 1, "10.00", condition="lost")


class TestLineItemSet:
    """Ordered, duplicate-free collection of lines."""

    def test_add_keeps_arrival_order(self):
        lines = LineItemSet()
        a = OrderLineItem.of("P1", "RED", "M", 1, "1.00")
        b = OrderLineItem.of("P1", "BLUE", "M", 1, "1.00")
        assert lines.add(a).ok
        assert lines.add(b).ok
        assert lines.keys() == (a.key, b.key)
        assert len(lines) == 2
        assert a.key in lines

    def test_duplicate_rejected_and_set_unchanged(self):
        lines = LineItemSet()
        lines.add(OrderLineItem.of("P1", "RED", "M", 2, "5.00"))
        before = lines.items()

        outcome = lines.add(OrderLineItem.of("P1", "RED", "M", 9, "1.00"))

        assert not outcome.ok
        assert isinstance(outcome.error, DuplicateVariantError)
        assert outcome.error.key == VariantKey("P1", "RED", "M")
        assert lines.items() == before
        assert lines.get(VariantKey("P1", "RED", "M")).quantity == 2

    def test_replace_same_key_updates_in_place(self):
        lines = LineItemSet.from_items([
            OrderLineItem.of("P1", "RED", "M", 1, "1.00"),
            OrderLineItem.of("P1", "BLUE", "M", 1, "1.00"),
        ]).unwrap()

        outcome = lines.replace(
            VariantKey("P1", "RED", "M"), OrderLineItem.of("P1", "RED", "M", 7, "1.00"),
        )

        assert outcome.ok
        assert lines.items()[0].quantity == 7

    def test_replace_to_new_key_keeps_position(self):
        lines = LineItemSet.from_items([
            OrderLineItem.of("P1", "RED", "M", 1, "1.00"),
            OrderLineItem.of("P1", "BLUE", "M", 1, "1.00"),
        ]).unwrap()

        lines.replace(VariantKey("P1", "RED", "M"), OrderLineItem.of("P1", "RED", "L", 1, "1.00"))

        assert lines.keys() == (VariantKey("P1", "RED", "L"), VariantKey("P1", "BLUE", "M"))

    def test_replace_into_existing_key_rejected(self):
        lines = LineItemSet.from_items([
            OrderLineItem.of("P1", "RED", "M", 1, "1.00"),
            OrderLineItem.of("P1", "BLUE", "M", 1, "1.00"),
        ]).unwrap()
        before = lines.items()

        outcome = lines.replace(
            VariantKey("P1", "RED", "M"), OrderLineItem.of("P1", "BLUE", "M", 3, "1.00"),
        )

        assert outcome.error_code == "DUPLICATE_VARIANT"
        assert lines.items() == before

    def test_remove_and_get(self):
        lines = LineItemSet.from_items([OrderLineItem.of("P1", "RED", "M", 1, "1.00")]).unwrap()
        removed = lines.remove(VariantKey("P1", "RED", "M"))
        assert removed is not None
        assert lines.remove(VariantKey("P1", "RED", "M")) is None
        assert not lines

    def test_from_items_rejects_first_duplicate(self):
        outcome = LineItemSet.from_items([
            OrderLineItem.of("P1", "RED", "M", 1, "1.00"),
            OrderLineItem.of("P1", "RED", "M", 2, "1.00"),
        ])
        assert isinstance(outcome.error, DuplicateVariantError)

    def test_total_is_exact(self):
        lines = LineItemSet.from_items([
            OrderLineItem.of("P1", "RED", "M", 3, "0.10"),
            OrderLineItem.of("P1", "BLUE", "M", 7, "0.20"),
        ]).unwrap()
        assert lines.total() == Decimal("1.70")
        assert lines.total_quantity() == 10

    def test_total_independent_of_order(self):
        items = [
            OrderLineItem.of("P1", "RED", "M", 3, "19.99"),
            OrderLineItem.of("P2", "RED", "M", 1, "0.01"),
            OrderLineItem.of("P3", "RED", "M", 11, "7.77"),
        ]
        forward = LineItemSet.from_items(items).unwrap()
        backward = LineItemSet.from_items(list(reversed(items))).unwrap()
        assert forward.total() == backward.total()

    def test_empty_total(self):
        assert LineItemSet().total() == Decimal("0")


class TestLineItemDraft:

    def test_change_product_clears_color_and_size(self):
        draft = LineItemDraft("P1", "RED", "M", 2, "10.00")
        draft.change_product("P2", unit_price="12.00")
        assert draft.color_id is None
        assert draft.size_id is None
        assert draft.unit_price == "12.00"
        assert not draft.is_complete

    def test_same_product_keeps_selection(self):
        draft = LineItemDraft("P1", "RED", "M")
        draft.change_product("P1")
        assert draft.color_id == "RED"

    def test_incomplete_draft_rejected(self):
        outcome = LineItemDraft("P1", color_id="RED").to_line_item()
        assert isinstance(outcome.error, IncompleteVariantError)
        assert outcome.error.missing == ("size",)

    def test_missing_product_reported(self):
        outcome = LineItemDraft(None, "RED", "M").to_line_item()
        assert outcome.error.missing == ("product",)

    def test_bad_quantity_returned_as_value(self):
        outcome = LineItemDraft("P1", "RED", "M", quantity=0).to_line_item()
        assert isinstance(outcome.error, InvalidQuantityError)

    def test_complete_draft_round_trip(self):
        item = LineItemDraft("P1", "RED", "M", 2, "10.00").to_line_item().unwrap()
        assert LineItemDraft.from_line_item(item).to_line_item().unwrap() == item
