"""
Configuration Loader (``supply_config.loader``).

Responsibility
--------------
Load the YAML configuration document and parse its sections into the
frozen module configuration dataclasses. The public entry point for
runtime config is ``supply_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass.
* Unknown keys inside a section are rejected (``TypeError`` from the
  dataclass constructor); no silent defaults for misspelled settings.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Out-of-range values  -> ``ValueError`` from the section dataclass.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from supply_modules.discounts.config import DiscountConfig
from supply_modules.purchasing.config import PurchasingConfig


@dataclass(frozen=True)
class SupplyConfig:
    """The complete runtime configuration, one section per module."""

    purchasing: PurchasingConfig = field(default_factory=PurchasingConfig.with_defaults)
    discounts: DiscountConfig = field(default_factory=DiscountConfig.with_defaults)
    checksum: str = ""


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration root must be a mapping, got {type(data).__name__}")
    return data


def parse_config(data: dict[str, Any]) -> SupplyConfig:
    """Build a SupplyConfig from a parsed document. Missing sections use defaults."""
    purchasing = data.get("purchasing") or {}
    discounts = data.get("discounts") or {}
    return SupplyConfig(
        purchasing=PurchasingConfig.from_dict(purchasing),
        discounts=DiscountConfig.from_dict(discounts),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> SupplyConfig:
    return parse_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
