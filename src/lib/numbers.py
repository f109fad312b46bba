"""
Decimal helpers for displayed averages and percentages.

Averages are rounded half-up on the exact decimal quotient so 14/3 renders
as 4.67, never as a binary-float artifact.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

TWO_PLACES = Decimal("0.01")

Number = Union[int, Decimal]


def quantize2(value: Decimal) -> Decimal:
    """Round a Decimal half-up to two places."""
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def safe_average(total: Number, count: int) -> float:
    """Mean of `count` values summing to `total`; 0 when there are none."""
    if not count:
        return 0.0
    return float(quantize2(Decimal(total) / Decimal(count)))


def safe_percentage(part: int, whole: int) -> float:
    """`part / whole * 100` rounded to two places; 0 when `whole` is 0."""
    if not whole:
        return 0.0
    return float(quantize2(Decimal(part) * 100 / Decimal(whole)))
