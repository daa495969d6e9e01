# arbledger/pricing.py
"""
Fixed-point arithmetic shared by the engine and the opportunity scan.

All monetary and percentage math uses decimal.Decimal inside a private
context so the caller's global decimal context never changes the result.
Minor-unit conversion truncates toward zero.
"""
from decimal import Decimal, InvalidOperation, localcontext
from typing import Tuple, Union

from .errors import InvalidInput

Number = Union[str, int, float, Decimal]

# Accepted magnitudes: 10^-30 <= |x| < 10^31 (or exactly zero). Keeps
# profit * minor_unit_scale far below the int/str conversion limit.
MAX_EXPONENT = 30
MIN_EXPONENT = -30

# Covers every product of two in-range amounts without rounding.
PRECISION = 80


def parse_amount(value: Number, field: str) -> Decimal:
    """
    Parses a non-negative finite number within the accepted magnitude.
    Raises InvalidInput for anything else (NaN, Infinity, negatives, garbage).
    """
    if isinstance(value, bool):
        raise InvalidInput(f"Invalid {field}: must be a valid number", field=field, value=str(value))
    try:
        if isinstance(value, float):
            parsed = Decimal(repr(value))
        else:
            parsed = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInput(f"Invalid {field}: must be a valid number", field=field, value=str(value))

    if not parsed.is_finite():
        raise InvalidInput(f"Invalid {field}: must be finite", field=field, value=str(value))
    if parsed < 0:
        raise InvalidInput(f"Invalid {field}: must not be negative", field=field, value=str(value))
    if parsed != 0 and not MIN_EXPONENT <= parsed.adjusted() <= MAX_EXPONENT:
        raise InvalidInput(f"Invalid {field}: magnitude out of range", field=field, value=str(value)[:40])
    return parsed


def spread(price_a: Decimal, price_b: Decimal) -> Tuple[Decimal, Decimal]:
    """
    Returns (price_diff, profit_percentage) where
    profit_percentage = |a - b| / min(a, b) * 100.
    A zero reference price is rejected instead of producing infinity.
    """
    low = min(price_a, price_b)
    if low == 0:
        raise InvalidInput("Invalid prices: the lower price must be greater than zero", field="price", value=str(low))

    try:
        with localcontext() as ctx:
            ctx.prec = PRECISION
            price_diff = abs(price_a - price_b)
            return price_diff, price_diff / low * 100
    except ArithmeticError as e:
        raise InvalidInput(f"Invalid prices: {type(e).__name__}", field="price")


def capture(price_diff: Decimal, ratio: Decimal) -> Decimal:
    try:
        with localcontext() as ctx:
            ctx.prec = PRECISION
            return price_diff * ratio
    except ArithmeticError as e:
        raise InvalidInput(f"Invalid profit: {type(e).__name__}", field="profit")


def to_minor_units(amount: Decimal, scale: int) -> int:
    """Converts a whole-unit amount to minor units, truncating toward zero."""
    try:
        with localcontext() as ctx:
            ctx.prec = PRECISION
            return int(amount * scale)
    except ArithmeticError as e:
        raise InvalidInput(f"Invalid amount: {type(e).__name__}", field="amount")
