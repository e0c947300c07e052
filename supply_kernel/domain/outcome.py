"""
Outcome -- typed result values for validation and decisions.

Responsibility:
    Carry either a value or a typed ``SupplyKernelError`` back to the caller,
    together with any non-fatal warnings. Engines and services never throw
    validation failures across their public API; they return an Outcome and
    the calling layer decides whether to retry, surface or log.

Architecture position:
    Kernel > Domain -- pure value object, zero I/O.

Invariants enforced:
    * Exactly one of ``value`` / ``error`` is meaningful: a failed outcome
      never carries a value.
    * Warnings never block: a successful outcome may carry warnings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from supply_kernel.exceptions import SupplyKernelError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a single core operation.

    Contract: frozen. ``error is None`` means success.
    Guarantees: ``unwrap()`` returns the value or raises the carried error.
    """

    value: T | None = None
    error: SupplyKernelError | None = None
    warnings: tuple[SupplyKernelError, ...] = ()

    def __post_init__(self) -> None:
        if self.error is not None and self.value is not None:
            raise ValueError("A failed Outcome cannot carry a value")

    @classmethod
    def success(
        cls,
        value: T | None = None,
        warnings: tuple[SupplyKernelError, ...] = (),
    ) -> Outcome[T]:
        return cls(value=value, warnings=tuple(warnings))

    @classmethod
    def failure(
        cls,
        error: SupplyKernelError,
        warnings: tuple[SupplyKernelError, ...] = (),
    ) -> Outcome[T]:
        return cls(error=error, warnings=tuple(warnings))

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_code(self) -> str | None:
        return self.error.code if self.error is not None else None

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    def unwrap(self) -> T:
        """Return the value, or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
