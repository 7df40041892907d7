"""
Fixed-point helpers for monetary and hour values.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


def quantize(value: Decimal | int | str) -> Decimal:
    """Round to two decimal places, half up."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)

# Largest magnitude a Numeric(10, 2) column holds
MAX_AMOUNT = Decimal("99999999.99")
