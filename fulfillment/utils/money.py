"""Currency helpers.

Order amounts are kept in major units (naira) rounded to the kobo. The
payment provider reports integer minor units; ``to_minor_units`` is the only
place the two meet.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

MINOR_UNIT_MULTIPLIER = 100
_MINOR_UNIT = Decimal("0.01")

Amount = Union[Decimal, float, int, str]


def to_decimal(amount: Amount) -> Decimal:
    """Convert an amount to a Decimal without float artefacts."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def quantize(amount: Amount) -> Decimal:
    """Round an amount to the currency's minor unit."""
    return to_decimal(amount).quantize(_MINOR_UNIT, rounding=ROUND_HALF_UP)


def to_minor_units(amount: Amount) -> int:
    """Convert a major-unit amount to integer minor units (NGN -> kobo)."""
    return int((to_decimal(amount) * MINOR_UNIT_MULTIPLIER).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount: int) -> Decimal:
    """Convert integer minor units back to a major-unit Decimal."""
    return quantize(Decimal(amount) / MINOR_UNIT_MULTIPLIER)


def as_float(amount: Amount) -> float:
    """Round to the minor unit and return a float suitable for storage."""
    return float(quantize(amount))
