"""
Exact fixed-point money helpers.

All ledger arithmetic goes through ``Decimal`` with a scale of two places.
Binary floats are only accepted at the edges and converted via ``str`` so that
``0.1`` becomes ``Decimal("0.1")`` rather than its binary approximation.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Iterable, List, Union

from tripfund.core.exceptions import ValidationError

MINOR_UNIT = Decimal("0.01")
ZERO = Decimal("0.00")

Amount = Union[Decimal, int, float, str, None]


def to_decimal(value: Amount) -> Decimal:
    """Convert a stored or user-supplied amount to ``Decimal``."""
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValidationError(f"Invalid amount: {value!r}")
    if isinstance(value, (int, float, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as e:
            raise ValidationError(f"Invalid amount: {value!r}") from e
        if not result.is_finite():
            raise ValidationError(f"Invalid amount: {value!r}")
        return result
    raise ValidationError(f"Invalid amount: {value!r}")


def quantize(value: Amount) -> Decimal:
    """Round half-up to the currency minor unit."""
    return to_decimal(value).quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)


def add(a: Amount, b: Amount) -> Decimal:
    return to_decimal(a) + to_decimal(b)


def subtract(a: Amount, b: Amount) -> Decimal:
    return to_decimal(a) - to_decimal(b)


def total(values: Iterable[Amount]) -> Decimal:
    """Sum amounts exactly; an empty iterable sums to zero."""
    result = Decimal(0)
    for value in values:
        result += to_decimal(value)
    return result


def equals_within(a: Amount, b: Amount, tolerance: Amount = MINOR_UNIT) -> bool:
    """Compare two amounts allowing ``tolerance`` of drift (inclusive)."""
    return abs(to_decimal(a) - to_decimal(b)) <= to_decimal(tolerance)


def is_negligible(value: Amount) -> bool:
    """True when ``value`` is smaller than one minor unit in magnitude."""
    return abs(to_decimal(value)) < MINOR_UNIT


def split_evenly(amount: Amount, parts: int) -> List[Decimal]:
    """
    Split ``amount`` into ``parts`` shares of whole cents.

    The shares always sum to the quantized amount; leftover cents are handed
    out one by one starting from the first share.
    """
    if parts <= 0:
        raise ValidationError("Cannot split an amount into zero parts")
    cents = int(quantize(amount) / MINOR_UNIT)
    base, remainder = divmod(cents, parts)
    return [
        (Decimal(base + (1 if index < remainder else 0)) * MINOR_UNIT).quantize(MINOR_UNIT)
        for index in range(parts)
    ]


def format_amount(value: Amount) -> str:
    return f"{quantize(value):.2f}"
