"""
supply_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the way to obtain configuration at runtime through
    ``get_active_config()``. Services receive the module sections
    (``PurchasingConfig``, ``DiscountConfig``) by constructor injection;
    they never read files themselves.

Failure modes:
    - ``FileNotFoundError`` -- the requested file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``ValueError`` / ``TypeError`` -- a section has out-of-range values
      or unknown keys.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``SUPPLY_CONFIG_TRACE`` log entry with the source path and checksum.
"""

from __future__ import annotations

from pathlib import Path

from supply_config.loader import (
    SupplyConfig,
    compute_checksum,
    load_config,
    load_yaml_file,
    parse_config,
)
from supply_kernel.logging_config import get_logger

_logger = get_logger("config")

# Shipped defaults
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> SupplyConfig:
    """
    Load the active configuration.

    Args:
        path: YAML file to load. Defaults to the shipped ``sets/default.yaml``.

    Raises:
        FileNotFoundError: If the file does not exist.
        yaml.YAMLError: If the file is malformed.
    """
    source = Path(path) if path is not None else DEFAULT_CONFIG_PATH
    config = load_config(source)
    _logger.info(
        "SUPPLY_CONFIG_TRACE",
        extra={
            "trace_type": "SUPPLY_CONFIG_TRACE",
            "source": str(source),
            "checksum": config.checksum,
            "allow_over_receipt": config.purchasing.allow_over_receipt,
            "allow_past_start": config.discounts.allow_past_start,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "SupplyConfig",
    "compute_checksum",
    "get_active_config",
    "load_config",
    "load_yaml_file",
    "parse_config",
]
