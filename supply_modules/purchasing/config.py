"""
Purchasing Configuration Schema.

Defines the structure and defaults for purchasing settings.
Actual values are loaded from the YAML configuration at runtime
(see ``supply_config``).
"""

from dataclasses import dataclass
from typing import Self

from supply_kernel.logging_config import get_logger

logger = get_logger("modules.purchasing.config")


@dataclass(frozen=True)
class PurchasingConfig:
    """
    Configuration schema for the purchasing module.

    Override at instantiation:

        config = PurchasingConfig(require_known_supplier=False)
    """

    # Orders cannot be created or sent for suppliers that are not registered.
    require_known_supplier: bool = True
    # Line products must be registered (and offer the chosen color/size).
    require_known_products: bool = False
    # Over-receipt is reported as a warning. When False it fails the receipt.
    allow_over_receipt: bool = True
    # Statuses counted as "pending" on the dashboard.
    pending_statuses: tuple[str, ...] = ("sent", "confirmed")

    def __post_init__(self):
        logger.info(
            "purchasing_config_initialized",
            extra={
                "require_known_supplier": self.require_known_supplier,
                "require_known_products": self.require_known_products,
                "allow_over_receipt": self.allow_over_receipt,
                "pending_statuses": list(self.pending_statuses),
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
            "purchasing_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        if "pending_statuses" in data:
            data["pending_statuses"] = tuple(str(s) for s in data["pending_statuses"])
        return cls(**data)
