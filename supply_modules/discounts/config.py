"""
Discount Configuration Schema.

Defines the structure and defaults for discount-period settings.
Actual values are loaded from the YAML configuration at runtime.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from supply_kernel.logging_config import get_logger

logger = get_logger("modules.discounts.config")


@dataclass(frozen=True)
class DiscountConfig:
    """
    Configuration schema for the discounts module.

    Override at instantiation:

        config = DiscountConfig(allow_past_start=True)
    """

    min_percent: Decimal = Decimal("1")
    max_percent: Decimal = Decimal("99")
    # Applied to items created without an explicit percent.
    default_percent: Decimal = Decimal("10")
    min_description_length: int = 10
    max_description_length: int = 500
    # Periods normally cannot start before today.
    allow_past_start: bool = False

    def __post_init__(self):
        if self.min_percent > self.max_percent:
            raise ValueError(
                f"min_percent ({self.min_percent}) exceeds max_percent ({self.max_percent})"
            )
        if not self.min_percent <= self.default_percent <= self.max_percent:
            raise ValueError(
                f"default_percent ({self.default_percent}) outside "
                f"[{self.min_percent}, {self.max_percent}]"
            )
        logger.info(
            "discount_config_initialized",
            extra={
                "min_percent": self.min_percent,
                "max_percent": self.max_percent,
                "min_description_length": self.min_description_length,
                "allow_past_start": self.allow_past_start,
            },
        )

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard defaults."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from a dictionary (e.g., a YAML section)."""
        logger.info(
            "discount_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        for key in ("min_percent", "max_percent", "default_percent"):
            if key in data:
                data[key] = Decimal(str(data[key]))
        return cls(**data)
