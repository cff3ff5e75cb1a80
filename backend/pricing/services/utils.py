from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Optional

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0")
ONE = Decimal("1")
HUNDRED = Decimal("100")

# Upper bounds on operator input. Prices and fixed markups are per line in the
# buy currency; percentage markups are capped so sell stays within 11x cost.
MAX_AMOUNT = Decimal("1000000000000")
MAX_MARKUP_PCT = Decimal("1000")
MAX_RATE = Decimal("1000000")


def d(val) -> Decimal:
    """Coerce incoming values to Decimal safely."""
    if isinstance(val, Decimal):
        return val
    return Decimal(str(val))


def to_decimal(val, default: Optional[Decimal] = ZERO) -> Optional[Decimal]:
    """
    Lenient coercion used on operator input.

    Returns `default` for None, empty strings, non-numeric text and
    non-finite values instead of raising.
    """
    if val is None or isinstance(val, bool):
        return default
    if isinstance(val, str):
        val = val.strip().replace(",", ".")
        if not val:
            return default
    try:
        out = d(val)
    except (InvalidOperation, ValueError, TypeError):
        logger.warning("Could not coerce %r to a decimal; using %s", val, default)
        return default
    if not out.is_finite():
        logger.warning("Non-finite value %r replaced with %s", val, default)
        return default
    return out


def _quantize(amount, exp: Decimal) -> Decimal:
    value = d(amount)
    with localcontext() as ctx:
        # Widen precision so quantizing a large total cannot raise InvalidOperation
        ctx.prec = max(ctx.prec, value.adjusted() - exp.adjusted() + 2)
        return value.quantize(exp, rounding=ROUND_HALF_UP)


def q2(amount: Decimal) -> Decimal:
    """Round half-up to cents. Applied only where totals are stored."""
    return _quantize(amount, TWOPLACES)


def fmt_pct(value: Decimal) -> str:
    """Render a percentage with one decimal, e.g. 9.09 -> '9.1'."""
    return str(_quantize(value, Decimal("0.1")))
