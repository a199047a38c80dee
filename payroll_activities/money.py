"""Fixed-point money arithmetic.

Every amount is carried as an integer number of cents while it is being
computed and handed back as a two-decimal ``Decimal``. Each public operation
rounds to the cent exactly once (half-up), so rounding an already rounded
value is a no-op and summing rounded amounts never drifts.

Inputs may be ints, floats, strings or Decimals. ``None``, NaN, infinities and
anything unparseable count as zero: a malformed rate must not stop a payroll
run.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Iterable, Union

Number = Union[int, float, str, Decimal, None]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
_HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Exact decimal form of ``value``; non-finite or invalid input gives 0."""
    if value is None or isinstance(value, bool):
        return Decimal(0)
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal(0)
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return Decimal(0)
        # repr of a float is the shortest string that round-trips, so 10.01 stays 10.01
        return Decimal(repr(value))
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal(0)
    return parsed if parsed.is_finite() else Decimal(0)


def _product(*factors: Decimal) -> Decimal:
    # wide enough that the product is exact, so rounding happens only in _half_up
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, sum(len(factor.as_tuple().digits) for factor in factors))
        result = Decimal(1)
        for factor in factors:
            result *= factor
        return result


def _half_up(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_HALF_UP))


def to_cents(value: Number) -> int:
    return _half_up(_product(to_decimal(value), _HUNDRED))


def from_cents(cents: int) -> Decimal:
    # quantize needs room for every digit of very large amounts
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, len(str(abs(cents))) + 2)
        return Decimal(cents).scaleb(-2).quantize(CENT)


def round_money(value: Number) -> Decimal:
    return from_cents(to_cents(value))


def multiply(rate: Number, quantity: Number) -> Decimal:
    """``rate * quantity`` rounded to the cent once, e.g. 10.01 x 3 == 30.03."""
    return from_cents(_half_up(_product(to_decimal(rate), to_decimal(quantity), _HUNDRED)))


def percentage_of(base: Number, pct: Number) -> Decimal:
    return from_cents(_half_up(_product(to_decimal(base), to_decimal(pct))))


def total(amounts: Iterable[Number]) -> Decimal:
    return from_cents(sum(to_cents(amount) for amount in amounts))


def is_zero(value: Number) -> bool:
    return to_cents(value) == 0


def format_money(value: Number) -> str:
    return f"{round_money(value):.2f}"
