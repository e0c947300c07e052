"""
Purchasing Domain Models.

The nouns of purchasing: suppliers, products, purchase orders, receipts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from supply_engines.reconciliation import ReconciliationResult
from supply_kernel.domain.line_items import GoodsReceiptLineItem, LineItemSet, OrderLineItem
from supply_kernel.domain.values import ZERO
from supply_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.models")


class OrderStatus(Enum):
    """Purchase order lifecycle states."""
    DRAFT = "draft"
    SENT = "sent"
    CONFIRMED = "confirmed"
    PARTIALLY_RECEIVED = "partially_received"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def code(self) -> int:
        return STATUS_CODES[self]

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)

    @classmethod
    def from_code(cls, code: int | str | None) -> OrderStatus:
        """Map a numeric status code to a status; unknown codes are draft."""
        try:
            return _STATUS_BY_CODE[int(code)]
        except (KeyError, TypeError, ValueError):
            logger.warning("order_status_code_unknown", extra={"code": code})
            return cls.DRAFT


STATUS_CODES: dict[OrderStatus, int] = {
    OrderStatus.DRAFT: 1,
    OrderStatus.SENT: 2,
    OrderStatus.CONFIRMED: 3,
    OrderStatus.PARTIALLY_RECEIVED: 4,
    OrderStatus.COMPLETED: 5,
    OrderStatus.CANCELLED: 6,
}

_STATUS_BY_CODE: dict[int, OrderStatus] = {v: k for k, v in STATUS_CODES.items()}

RECEIVABLE_STATUSES = (OrderStatus.CONFIRMED, OrderStatus.PARTIALLY_RECEIVED)


@dataclass(frozen=True)
class Product:
    """A product that can be ordered. Colors and sizes belong to the product."""
    id: str
    name: str
    unit_price: Decimal = ZERO
    color_ids: tuple[str, ...] = ()
    size_ids: tuple[str, ...] = ()

    def offers(self, color_id: str, size_id: str) -> bool:
        """True if the color/size pair is available for this product.

        A product with no declared colors (or sizes) accepts any value.
        """
        color_ok = not self.color_ids or str(color_id) in self.color_ids
        size_ok = not self.size_ids or str(size_id) in self.size_ids
        return color_ok and size_ok


@dataclass(frozen=True)
class Supplier:
    """A supplier and the products it supplies."""
    id: str
    name: str
    contact_person: str | None = None
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    product_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class PurchaseOrder:
    """A purchase order with its lines in display order."""
    id: UUID
    supplier_id: str
    order_date: date
    status: OrderStatus = OrderStatus.DRAFT
    expected_delivery_date: date | None = None
    notes: str | None = None
    created_by: UUID | None = None
    lines: tuple[OrderLineItem, ...] = field(default_factory=tuple)

    @property
    def total_amount(self) -> Decimal:
        return sum((line.line_total for line in self.lines), ZERO)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    @property
    def is_editable(self) -> bool:
        return self.status == OrderStatus.DRAFT

    @property
    def can_receive(self) -> bool:
        return self.status in RECEIVABLE_STATUSES

    def line_set(self) -> LineItemSet[OrderLineItem]:
        # Persisted lines are unique per variant, so this cannot fail.
        return LineItemSet.from_items(self.lines).unwrap()


@dataclass(frozen=True)
class GoodsReceipt:
    """A recorded delivery against a purchase order. Never modified."""
    id: UUID
    order_id: UUID
    receipt_date: date
    received_by: str
    notes: str | None = None
    lines: tuple[GoodsReceiptLineItem, ...] = field(default_factory=tuple)

    @property
    def total_received_value(self) -> Decimal:
        return sum((line.received_value for line in self.lines), ZERO)

    @property
    def total_quantity(self) -> int:
        return sum(line.quantity for line in self.lines)

    def line_set(self) -> LineItemSet[GoodsReceiptLineItem]:
        return LineItemSet.from_items(self.lines).unwrap()


@dataclass(frozen=True)
class ReceiptRecorded:
    """Result of recording a receipt: the receipt, the order after any
    status change, and the reconciliation that decided it."""
    receipt: GoodsReceipt
    order: PurchaseOrder
    reconciliation: ReconciliationResult
    previous_status: OrderStatus

    @property
    def status_changed(self) -> bool:
        return self.order.status != self.previous_status


@dataclass(frozen=True)
class PurchaseOrderStats:
    """Dashboard counters over all purchase orders."""
    total_orders: int = 0
    draft_orders: int = 0
    pending_orders: int = 0
    completed_orders: int = 0
    cancelled_orders: int = 0
    total_value: Decimal = ZERO
    orders_this_month: int = 0


@dataclass(frozen=True)
class ReceiptStats:
    """Dashboard counters over goods receipts."""
    total_receipts: int = 0
    receipts_this_month: int = 0
    total_value: Decimal = ZERO
    orders_awaiting_receipt: int = 0
