"""
Typed Exception Hierarchy for the Supply Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers render field-specific messages and decide whether to retry, surface
or log. They must never parse message strings to do that, so:

  1. Every error has a TYPED class (catch or match by type, not message)
  2. Every class has a CODE attribute (machine-readable, API-safe)
  3. Every instance carries structured DATA (not just a message string)

Most of these classes are not raised across the public API. Engines and
services return them inside an ``Outcome`` (see
``supply_kernel.domain.outcome``). They are still ``Exception`` subclasses
so value-object constructors can raise them and ``Outcome.unwrap()`` can
re-raise them.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SupplyKernelError (base)
    |
    +-- LineItemError
    |   +-- DuplicateVariantError
    |   +-- IncompleteVariantError
    |   +-- InvalidQuantityError
    |   +-- InvalidPriceError
    |   +-- InvalidConditionError
    |
    +-- ReconciliationError
    |   +-- ForeignLineItemError
    |   +-- QuantityExceededWarning        (warning value, never blocking)
    |
    +-- OrderError
    |   +-- InvalidTransitionError
    |   +-- OrderNotFoundError
    |   +-- OrderNotEditableError
    |   +-- ReceiptNotAllowedError
    |
    +-- ReferenceDataError
    |   +-- UnknownSupplierError
    |   +-- UnknownProductError
    |
    +-- PeriodError
    |   +-- InvalidIntervalError
    |   +-- PeriodConflictError
    |   +-- PeriodNotFoundError
    |   +-- InvalidDiscountError
    |
    +-- ImmutabilityError
        +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                   | When produced
----------------|------------------------|-----------------------------------------
Line item       | DUPLICATE_VARIANT      | Same product+color+size listed twice
                | INCOMPLETE_VARIANT     | Draft line missing color or size
                | INVALID_QUANTITY       | Negative / non-integer quantity
                | INVALID_PRICE          | Negative / non-decimal price
                | INVALID_CONDITION      | Unknown receipt condition
----------------|------------------------|-----------------------------------------
Reconciliation  | FOREIGN_LINE_ITEM      | Receipt line not on the source order
                | QUANTITY_EXCEEDED      | Cumulative receipts above ordered (warning)
----------------|------------------------|-----------------------------------------
Order           | INVALID_TRANSITION     | Status change not in the transition table
                | ORDER_NOT_FOUND        | Order id does not exist
                | ORDER_NOT_EDITABLE     | Line edit on an order that left draft
                | RECEIPT_NOT_ALLOWED    | Receipt against an order not yet confirmed
----------------|------------------------|-----------------------------------------
Reference data  | UNKNOWN_SUPPLIER       | Supplier id not registered
                | UNKNOWN_PRODUCT        | Product id not registered
----------------|------------------------|-----------------------------------------
Period          | INVALID_INTERVAL       | end <= start, or start in the past
                | PERIOD_CONFLICT        | Candidate overlaps an existing period
                | PERIOD_NOT_FOUND       | Period id does not exist
                | INVALID_DISCOUNT       | Percent out of range, bad description
----------------|------------------------|-----------------------------------------
Immutability    | IMMUTABILITY_VIOLATION | Update/delete of a recorded receipt
"""

from __future__ import annotations

from typing import Any


class SupplyKernelError(Exception):
    """
    Base exception for all supply kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "SUPPLY_KERNEL_ERROR"

    def to_dict(self) -> dict[str, Any]:
        """Structured representation for API payloads and logs."""
        data: dict[str, Any] = {"code": self.code, "message": str(self)}
        for key, val in vars(self).items():
            if not key.startswith("_"):
                data[key] = val
        return data


# Line item exceptions


class LineItemError(SupplyKernelError):
    """Base exception for line-item errors."""

    code: str = "LINE_ITEM_ERROR"


class DuplicateVariantError(LineItemError):
    """A VariantKey is already present in the line item set."""

    code: str = "DUPLICATE_VARIANT"

    def __init__(self, key: Any):
        self.key = key
        super().__init__(f"Variant {key} is already listed")


class IncompleteVariantError(LineItemError):
    """A draft line cannot become a line item without color and size."""

    code: str = "INCOMPLETE_VARIANT"

    def __init__(self, product_id: Any, missing: tuple[str, ...]):
        self.product_id = product_id
        self.missing = missing
        super().__init__(
            f"Line for product {product_id} is missing: {', '.join(missing)}"
        )


class InvalidQuantityError(LineItemError):
    """Quantity is negative, zero where not allowed, or not an integer."""

    code: str = "INVALID_QUANTITY"

    def __init__(self, quantity: Any, reason: str):
        self.quantity = quantity
        self.reason = reason
        super().__init__(f"Invalid quantity {quantity!r}: {reason}")


class InvalidPriceError(LineItemError):
    """Unit price is negative or not representable as Decimal."""

    code: str = "INVALID_PRICE"

    def __init__(self, price: Any, reason: str):
        self.price = price
        self.reason = reason
        super().__init__(f"Invalid unit price {price!r}: {reason}")


class InvalidConditionError(LineItemError):
    """Receipt line condition is not one of the known conditions."""

    code: str = "INVALID_CONDITION"

    def __init__(self, condition: Any, allowed: tuple[str, ...]):
        self.condition = condition
        self.allowed = allowed
        super().__init__(
            f"Unknown receipt condition {condition!r}; expected one of {', '.join(allowed)}"
        )


# Reconciliation exceptions


class ReconciliationError(SupplyKernelError):
    """Base exception for receipt reconciliation errors."""

    code: str = "RECONCILIATION_ERROR"


class ForeignLineItemError(ReconciliationError):
    """A receipt line references a variant that is not on the source order."""

    code: str = "FOREIGN_LINE_ITEM"

    def __init__(self, key: Any, receipt_index: int):
        self.key = key
        self.receipt_index = receipt_index
        super().__init__(
            f"Receipt #{receipt_index} lists variant {key} "
            "which is not on the purchase order"
        )


class QuantityExceededWarning(ReconciliationError):
    """
    Cumulative received quantity is above the ordered quantity.

    Non-fatal: suppliers occasionally over-ship. Carried in
    ``Outcome.warnings``, never in ``Outcome.error``.
    """

    code: str = "QUANTITY_EXCEEDED"

    def __init__(self, key: Any, ordered_quantity: int, received_quantity: int):
        self.key = key
        self.ordered_quantity = ordered_quantity
        self.received_quantity = received_quantity
        self.excess_quantity = received_quantity - ordered_quantity
        super().__init__(
            f"Variant {key} received {received_quantity} "
            f"against {ordered_quantity} ordered"
        )


# Order exceptions


class OrderError(SupplyKernelError):
    """Base exception for purchase order errors."""

    code: str = "ORDER_ERROR"


class InvalidTransitionError(OrderError):
    """Requested status change is not permitted from the current status."""

    code: str = "INVALID_TRANSITION"

    def __init__(
        self,
        current_state: str,
        requested_state: str,
        guard: str | None = None,
    ):
        self.current_state = current_state
        self.requested_state = requested_state
        self.guard = guard
        if guard:
            msg = (
                f"Cannot move from '{current_state}' to '{requested_state}': "
                f"guard '{guard}' not satisfied"
            )
        else:
            msg = f"No transition from '{current_state}' to '{requested_state}'"
        super().__init__(msg)


class OrderNotFoundError(OrderError):
    """Purchase order does not exist."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Purchase order not found: {order_id}")


class OrderNotEditableError(OrderError):
    """Line items can only be edited while the order is in draft."""

    code: str = "ORDER_NOT_EDITABLE"

    def __init__(self, order_id: str, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(
            f"Purchase order {order_id} is '{status}'; lines are locked"
        )


class ReceiptNotAllowedError(OrderError):
    """Goods can only be received against confirmed orders."""

    code: str = "RECEIPT_NOT_ALLOWED"

    def __init__(self, order_id: str, status: str):
        self.order_id = order_id
        self.status = status
        super().__init__(
            f"Cannot record a receipt against purchase order {order_id} "
            f"in status '{status}'"
        )


# Reference data exceptions


class ReferenceDataError(SupplyKernelError):
    """Base exception for reference data lookups."""

    code: str = "REFERENCE_DATA_ERROR"


class UnknownSupplierError(ReferenceDataError):
    """Supplier id is not registered."""

    code: str = "UNKNOWN_SUPPLIER"

    def __init__(self, supplier_id: str):
        self.supplier_id = supplier_id
        super().__init__(f"Unknown supplier: {supplier_id}")


class UnknownProductError(ReferenceDataError):
    """Product id is not registered."""

    code: str = "UNKNOWN_PRODUCT"

    def __init__(self, product_id: str):
        self.product_id = product_id
        super().__init__(f"Unknown product: {product_id}")


# Period exceptions


class PeriodError(SupplyKernelError):
    """Base exception for date-interval and discount-period errors."""

    code: str = "PERIOD_ERROR"


class InvalidIntervalError(PeriodError):
    """End date is not strictly after the start date (or start is in the past)."""

    code: str = "INVALID_INTERVAL"

    def __init__(self, start: str, end: str, reason: str = "end must be after start"):
        self.start = start
        self.end = end
        self.reason = reason
        super().__init__(f"Invalid interval {start} .. {end}: {reason}")


class PeriodConflictError(PeriodError):
    """
    Candidate period overlaps an existing one.

    Advisory: the check is not atomic with creation.
    """

    code: str = "PERIOD_CONFLICT"

    def __init__(
        self,
        existing_period_id: str,
        existing_start: str,
        existing_end: str,
        overlap_start: str,
        overlap_end: str,
    ):
        self.existing_period_id = existing_period_id
        self.existing_start = existing_start
        self.existing_end = existing_end
        self.overlap_start = overlap_start
        self.overlap_end = overlap_end
        super().__init__(
            f"Period overlaps existing period {existing_period_id} "
            f"({existing_start} to {existing_end}) "
            f"on {overlap_start} to {overlap_end}"
        )


class PeriodNotFoundError(PeriodError):
    """Discount period does not exist."""

    code: str = "PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Discount period not found: {period_id}")


class InvalidDiscountError(PeriodError):
    """Discount period content is invalid (percent, description, products)."""

    code: str = "INVALID_DISCOUNT"

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field} {value!r}: {reason}")


# Immutability exceptions


class ImmutabilityError(SupplyKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """
    Attempted to modify or delete an immutable record.

    Goods receipts are immutable once recorded; corrections need a new
    receipt.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
