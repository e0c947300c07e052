"""
Values -- quantity and price coercion for line items.

Responsibility:
    The single place where raw inputs (form values, ORM columns, YAML) become
    the integer quantities and Decimal prices the core computes with.

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Quantities are non-negative integers (optionally strictly positive).
      ``bool`` is not a quantity. Integral Decimals such as ``Decimal("5")``
      are accepted because Numeric columns come back that way.
    - Prices are Decimal >= 0. ``float`` is rejected so binary rounding
      never enters a monetary amount.
    - Nothing is clamped: out-of-range input raises, it is not corrected.

Failure modes:
    - InvalidQuantityError for negative, zero (when positive required),
      fractional or non-numeric quantities.
    - InvalidPriceError for negative, float, or non-numeric prices.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from supply_kernel.exceptions import InvalidPriceError, InvalidQuantityError

MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP
ZERO = Decimal("0")


def to_quantity(value: Any, *, allow_zero: bool = False) -> int:
    """Coerce ``value`` to a validated integer quantity.

    Raises:
        InvalidQuantityError: see module docstring.
    """
    if isinstance(value, bool):
        raise InvalidQuantityError(value, "must be an integer")

    if isinstance(value, int):
        qty = value
    elif isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise InvalidQuantityError(value, "must be an integer")
        qty = int(value)
    elif isinstance(value, str):
        try:
            parsed = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidQuantityError(value, "not a number") from None
        return to_quantity(parsed, allow_zero=allow_zero)
    else:
        raise InvalidQuantityError(value, "must be an integer")

    if qty < 0:
        raise InvalidQuantityError(value, "cannot be negative")
    if qty == 0 and not allow_zero:
        raise InvalidQuantityError(value, "must be greater than zero")
    return qty


def to_price(value: Any) -> Decimal:
    """Coerce ``value`` to a validated non-negative Decimal price.

    Raises:
        InvalidPriceError: see module docstring.
    """
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidPriceError(value, "must be a Decimal, int or numeric string")

    if isinstance(value, Decimal):
        price = value
    elif isinstance(value, (int, str)):
        try:
            price = Decimal(str(value).strip())
        except InvalidOperation:
            raise InvalidPriceError(value, "not a number") from None
    else:
        raise InvalidPriceError(value, "must be a Decimal, int or numeric string")

    if not price.is_finite():
        raise InvalidPriceError(value, "must be finite")
    if price < ZERO:
        raise InvalidPriceError(value, "cannot be negative")
    return price


def round_money(
    value: Decimal,
    decimal_places: int = MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value for display or persistence of derived figures.

    Totals are summed exactly and rounded once at the edge; never round
    per line before summing.
    """
    quantize_str = "0." + "0" * decimal_places if decimal_places > 0 else "1"
    return value.quantize(Decimal(quantize_str), rounding=rounding)
