"""Conversion between decimal currency amounts and integer minor units (cents)."""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

__all__ = ["MAX_MINOR_UNITS", "to_major_units", "to_minor_units"]

_CENTS_PER_UNIT = Decimal(100)
_ONE = Decimal(1)
_TWO_PLACES = Decimal("0.01")

# largest value an SQLite INTEGER column holds
MAX_MINOR_UNITS = 2**63 - 1

Amount = Union[int, float, Decimal]


def to_minor_units(amount: Amount) -> int:
    """Return *amount* expressed in cents, rounding half-cents up.

    Floats go through their shortest ``repr`` so ``1250.5`` is treated as the
    decimal ``1250.5`` and not as its binary approximation.
    """

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * _CENTS_PER_UNIT).quantize(_ONE, rounding=ROUND_HALF_UP))


def to_major_units(cents: int) -> float:
    """Return the decimal amount for *cents*, rounded to two places."""

    value = (Decimal(int(cents)) / _CENTS_PER_UNIT).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)
    return float(value)
