"""
Integer minor-unit currency arithmetic.

Every amount inside the service is an int in minor currency units (cents).
Decimal major-unit amounts coming from the PMS are converted exactly once, at
the boundary, with round-half-up. Floats never take part in currency math.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Union

Number = Union[int, float, str, Decimal]

MINOR_UNITS_PER_MAJOR = 100


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_minor_units(amount: Number) -> int:
    """
    Convert a major-unit amount (e.g. 125.5 EUR) to integer minor units.

    Floats are routed through str() so 0.1-style binary noise never leaks
    into the rounding decision.

    Example:
        >>> to_minor_units(125.5)
        12550
        >>> to_minor_units("0.005")
        1
    """
    if isinstance(amount, float):
        amount = str(amount)
    return _round(Decimal(amount) * MINOR_UNITS_PER_MAJOR)


def from_minor_units(amount: int) -> Decimal:
    """Convert integer minor units back to a major-unit Decimal."""
    return Decimal(amount) / MINOR_UNITS_PER_MAJOR


def divide_minor_units(total: int, divisor: int) -> int:
    """Divide minor units, rounding half up."""
    if divisor == 0:
        raise ZeroDivisionError("divisor must be non-zero")
    return _round(Decimal(total) / Decimal(divisor))


def multiply_minor_units(amount: int, factor: Number) -> int:
    """Multiply minor units by a factor, rounding half up."""
    if isinstance(factor, float):
        factor = str(factor)
    return _round(Decimal(amount) * Decimal(factor))


def sum_minor_units(values: Iterable[int]) -> int:
    return sum(values, 0)


def percentage_of_minor_units(amount: int, percent: Number) -> int:
    """
    Percentage of a minor-unit amount, rounding half up.

    Example:
        >>> percentage_of_minor_units(50000, 10)
        5000
        >>> percentage_of_minor_units(333, "12.5")
        42
    """
    if isinstance(percent, float):
        percent = str(percent)
    return _round(Decimal(amount) * Decimal(percent) / 100)
