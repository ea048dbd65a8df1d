from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_CEILING, ROUND_HALF_UP
from typing import Optional

TWOPLACES = Decimal("0.01")
FOURPLACES = Decimal("0.0001")
ZERO = Decimal("0")
ONE = Decimal("1")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def safe_d(val, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """
    Like ``d`` but never raises: returns ``default`` for None, booleans,
    unparseable text and non-finite values (NaN, Infinity).
    """
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, str):
        val = val.strip().replace(",", "")
        if not val:
            return default
    try:
        out = d(val)
    except (InvalidOperation, ValueError, TypeError):
        return default
    if not out.is_finite():
        return default
    return out


def money(amount) -> Decimal:
    """Quantize to 2 decimal places, half-up."""
    return d(amount).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def area4(amount) -> Decimal:
    """Quantize an area in square metres to 4 decimal places."""
    return d(amount).quantize(FOURPLACES, rounding=ROUND_HALF_UP)


def round_up_to_step(amount: Decimal, step: Decimal) -> Decimal:
    """Round upward to the next multiple of ``step`` (e.g. 1.2 kg -> 1.5 kg)."""
    multiples = (d(amount) / step).to_integral_value(rounding=ROUND_CEILING)
    return multiples * step
