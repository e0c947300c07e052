"""
Discount Domain Models.

Scheduled discount periods and the per-product percentages they carry.
A period's status (not started / active / ended) is never stored; it is
derived from the current date on every read.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from uuid import UUID

from supply_engines.periods import PeriodStatus, period_status
from supply_kernel.domain.values import round_money, to_price
from supply_kernel.exceptions import InvalidDiscountError
from supply_kernel.logging_config import get_logger

logger = get_logger("modules.discounts.models")

HUNDRED = Decimal("100")


def to_percent(value: Any, minimum: Decimal | int = 1, maximum: Decimal | int = 99) -> Decimal:
    """Coerce a discount percent and check it lies in ``[minimum, maximum]``.

    Raises:
        InvalidDiscountError: non-numeric, float, or out of range.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidDiscountError("discount_percent", value, "must be an integer or Decimal")
    try:
        percent = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidDiscountError("discount_percent", value, "not a number") from None
    if not percent.is_finite() or percent < Decimal(minimum) or percent > Decimal(maximum):
        raise InvalidDiscountError(
            "discount_percent", value, f"must be between {minimum} and {maximum}",
        )
    return percent


def discounted_price(original_price: Any, discount_percent: Any) -> Decimal:
    """``original x (1 - percent / 100)`` rounded half-up to 2 places."""
    price = to_price(original_price)
    percent = Decimal(str(discount_percent))
    return round_money(price * (HUNDRED - percent) / HUNDRED, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class DiscountPeriodItem:
    """One product's discount within a period."""
    product_id: str
    discount_percent: Decimal

    def price_for(self, original_price: Any) -> Decimal:
        return discounted_price(original_price, self.discount_percent)


@dataclass(frozen=True)
class DiscountPeriod:
    """A scheduled promotional window ``[start_date, end_date]``."""
    id: UUID
    start_date: date
    end_date: date
    description: str
    items: tuple[DiscountPeriodItem, ...] = field(default_factory=tuple)
    created_by: UUID | None = None

    def status_on(self, now: date | datetime) -> PeriodStatus:
        return period_status(now, self.start_date, self.end_date)

    def item_for(self, product_id: str) -> DiscountPeriodItem | None:
        for item in self.items:
            if item.product_id == str(product_id):
                return item
        return None

    @property
    def product_ids(self) -> tuple[str, ...]:
        return tuple(item.product_id for item in self.items)

    @property
    def days(self) -> int:
        return (self.end_date - self.start_date).days + 1
