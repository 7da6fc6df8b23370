"""Decimal helpers for monetary arithmetic.

Amounts are persisted as floats on aggregates but every calculation runs on
``Decimal`` and is rounded half-up to the cent after each step.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value) -> Decimal:
    if value is None:
        return ZERO
    if isinstance(value, Decimal):
        return value
    # str() avoids binary float artefacts (33.33 -> 33.3299999...)
    return Decimal(str(value))


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def mul(a, b) -> Decimal:
    return round_money(to_decimal(a) * to_decimal(b))


def add(a, b) -> Decimal:
    return round_money(to_decimal(a) + to_decimal(b))


def div(a, b) -> Decimal:
    return round_money(to_decimal(a) / to_decimal(b))
