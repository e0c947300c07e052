"""
Line items (``supply_kernel.domain.line_items``).

Responsibility
--------------
The (product, color, size) identity of a sellable unit, the order and
receipt lines that carry it, and the ordered collection that keeps those
lines unique.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects and an in-memory collection.
ZERO I/O.

Invariants enforced
-------------------
* ``VariantKey`` equality is structural over all three components; ids are
  normalized to ``str`` so ORM rows and form values compare equal.
* Within one ``LineItemSet`` every VariantKey is unique. A rejected
  ``add`` / ``replace`` leaves the set exactly as it was.
* Order lines have quantity > 0; receipt lines have quantity >= 0; all unit
  prices are Decimal >= 0. Violations raise at construction.
* ``LineItemSet.total()`` is an exact Decimal sum and does not depend on
  insertion order.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Generic, TypeVar

from supply_kernel.domain.outcome import Outcome
from supply_kernel.domain.values import ZERO, to_price, to_quantity
from supply_kernel.exceptions import (
    DuplicateVariantError,
    IncompleteVariantError,
    SupplyKernelError,
)
from supply_kernel.logging_config import get_logger

logger = get_logger("domain.line_items")


@dataclass(frozen=True, slots=True)
class VariantKey:
    """Canonical identity of a (product, color, size) combination."""

    product_id: str
    color_id: str
    size_id: str

    def __post_init__(self) -> None:
        for name in ("product_id", "color_id", "size_id"):
            raw = getattr(self, name)
            if raw is None or str(raw).strip() == "":
                raise ValueError(f"VariantKey.{name} is required")
            object.__setattr__(self, name, str(raw).strip())

    @classmethod
    def of(cls, product_id: Any, color_id: Any, size_id: Any) -> VariantKey:
        return cls(product_id, color_id, size_id)

    def __str__(self) -> str:
        return f"{self.product_id}/{self.color_id}/{self.size_id}"


class ReceiptCondition(str, Enum):
    """Physical condition recorded for a received line."""

    GOOD = "good"
    DAMAGED = "damaged"
    DEFECTIVE = "defective"


@dataclass(frozen=True, slots=True)
class OrderLineItem:
    """A line on a purchase order. Quantity must be > 0."""

    key: VariantKey
    quantity: int
    unit_price: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_quantity(self.quantity))
        object.__setattr__(self, "unit_price", to_price(self.unit_price))

    @classmethod
    def of(
        cls,
        product_id: Any,
        color_id: Any,
        size_id: Any,
        quantity: Any,
        unit_price: Any,
    ) -> OrderLineItem:
        return cls(VariantKey(product_id, color_id, size_id), quantity, unit_price)

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price


@dataclass(frozen=True, slots=True)
class GoodsReceiptLineItem:
    """A line on a goods receipt. Quantity may be 0 (nothing arrived)."""

    key: VariantKey
    quantity: int
    unit_price: Decimal
    condition: ReceiptCondition = ReceiptCondition.GOOD
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_quantity(self.quantity, allow_zero=True))
        object.__setattr__(self, "unit_price", to_price(self.unit_price))
        object.__setattr__(self, "condition", ReceiptCondition(self.condition))

    @classmethod
    def of(
        cls,
        product_id: Any,
        color_id: Any,
        size_id: Any,
        quantity: Any,
        unit_price: Any,
        condition: ReceiptCondition | str = ReceiptCondition.GOOD,
        notes: str | None = None,
    ) -> GoodsReceiptLineItem:
        return cls(
            VariantKey(product_id, color_id, size_id),
            quantity,
            unit_price,
            condition,
            notes,
        )

    @property
    def line_total(self) -> Decimal:
        return self.quantity * self.unit_price

    @property
    def received_value(self) -> Decimal:
        return self.line_total


@dataclass
class LineItemDraft:
    """
    An order line while it is being edited.

    Color and size sets belong to a product, so changing the product clears
    both selections. The caller must re-validate uniqueness (via
    ``LineItemSet.replace``) once the draft is complete again.
    """

    product_id: str
    color_id: str | None = None
    size_id: str | None = None
    quantity: Any = 1
    unit_price: Any = ZERO

    def change_product(self, product_id: str, unit_price: Any | None = None) -> None:
        if str(product_id) == str(self.product_id):
            return
        self.product_id = product_id
        self.color_id = None
        self.size_id = None
        if unit_price is not None:
            self.unit_price = unit_price

    @property
    def is_complete(self) -> bool:
        return self.color_id not in (None, "") and self.size_id not in (None, "")

    def to_line_item(self) -> Outcome[OrderLineItem]:
        """Build the order line, or explain why the draft is not ready."""
        missing = tuple(
            name for name, val in (
                ("product", self.product_id),
                ("color", self.color_id),
                ("size", self.size_id),
            )
            if val is None or str(val).strip() == ""
        )
        if missing:
            return Outcome.failure(IncompleteVariantError(self.product_id, missing))
        try:
            item = OrderLineItem.of(
                self.product_id, self.color_id, self.size_id,
                self.quantity, self.unit_price,
            )
        except SupplyKernelError as exc:
            return Outcome.failure(exc)
        return Outcome.success(item)

    @classmethod
    def from_line_item(cls, item: OrderLineItem) -> LineItemDraft:
        return cls(
            product_id=item.key.product_id,
            color_id=item.key.color_id,
            size_id=item.key.size_id,
            quantity=item.quantity,
            unit_price=item.unit_price,
        )


ItemT = TypeVar("ItemT", OrderLineItem, GoodsReceiptLineItem)


class LineItemSet(Generic[ItemT]):
    """
    Ordered collection of lines keyed by VariantKey.

    Contract:
        Insertion order is kept for display only. Duplicate keys are
        rejected as ``DuplicateVariantError`` values; the set is never
        partially updated.
    """

    def __init__(self) -> None:
        self._items: dict[VariantKey, ItemT] = {}

    @classmethod
    def from_items(cls, items: Iterable[ItemT]) -> Outcome[LineItemSet[ItemT]]:
        """Build a set from ``items``; the first duplicate fails the build."""
        built: LineItemSet[ItemT] = cls()
        for item in items:
            added = built.add(item)
            if not added.ok:
                return Outcome.failure(added.error)
        return Outcome.success(built)

    def add(self, item: ItemT) -> Outcome[ItemT]:
        if item.key in self._items:
            logger.info(
                "line_item_duplicate_rejected",
                extra={"variant": str(item.key), "line_count": len(self._items)},
            )
            return Outcome.failure(DuplicateVariantError(item.key))
        self._items[item.key] = item
        return Outcome.success(item)

    def replace(self, old_key: VariantKey, item: ItemT) -> Outcome[ItemT]:
        """Swap the line at ``old_key`` for ``item`` in the same position."""
        if old_key not in self._items:
            return self.add(item)
        if item.key != old_key and item.key in self._items:
            logger.info(
                "line_item_duplicate_rejected",
                extra={"variant": str(item.key), "replacing": str(old_key)},
            )
            return Outcome.failure(DuplicateVariantError(item.key))
        self._items = {
            (item.key if k == old_key else k): (item if k == old_key else v)
            for k, v in self._items.items()
        }
        return Outcome.success(item)

    def remove(self, key: VariantKey) -> ItemT | None:
        return self._items.pop(key, None)

    def get(self, key: VariantKey) -> ItemT | None:
        return self._items.get(key)

    def keys(self) -> tuple[VariantKey, ...]:
        return tuple(self._items)

    def items(self) -> tuple[ItemT, ...]:
        return tuple(self._items.values())

    def total(self) -> Decimal:
        return sum((i.quantity * i.unit_price for i in self._items.values()), ZERO)

    def total_quantity(self) -> int:
        return sum(i.quantity for i in self._items.values())

    def __iter__(self) -> Iterator[ItemT]:
        return iter(tuple(self._items.values()))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __bool__(self) -> bool:
        return bool(self._items)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LineItemSet):
            return NotImplemented
        return list(self._items.items()) == list(other._items.items())

    def __repr__(self) -> str:
        return f"<LineItemSet {len(self._items)} lines total={self.total()}>"
