"""
Discounts Module.

Scheduled promotional periods:
- Date validation and overlap detection against existing periods
- Per-product discount percentages
- Live status derived from today's date, never stored
"""

from supply_modules.discounts.config import DiscountConfig
from supply_modules.discounts.models import (
    DiscountPeriod,
    DiscountPeriodItem,
    discounted_price,
    to_percent,
)
from supply_modules.discounts.service import DiscountService

__all__ = [
    "DiscountConfig",
    "DiscountPeriod",
    "DiscountPeriodItem",
    "discounted_price",
    "to_percent",
    "DiscountService",
]
