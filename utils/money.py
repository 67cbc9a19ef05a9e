"""Cent-exact rounding helpers for monetary amounts."""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Union

CENT = Decimal("0.01")

Number = Union[int, float, str, Decimal]


def to_decimal(value: Number) -> Decimal:
    """Convert to Decimal via the shortest decimal representation of the value.

    Floats go through ``str`` so that ``5.005`` becomes ``Decimal('5.005')``
    rather than its binary expansion.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("booleans are not amounts")
    try:
        return Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValueError(f"not a number: {value!r}") from exc


def quantize_cents(value: Number) -> Decimal:
    """Round half away from zero to two decimal places."""
    amount = to_decimal(value)
    if not amount.is_finite():
        raise ValueError(f"not a finite amount: {value!r}")
    with localcontext() as ctx:
        # every integer digit plus the two cents must fit in the precision
        ctx.prec = max(ctx.prec, amount.adjusted() + 3)
        return amount.quantize(CENT, rounding=ROUND_HALF_UP)


def round_money(value: Number) -> float:
    return float(quantize_cents(value))
