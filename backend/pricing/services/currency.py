from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Mapping, Optional, Tuple

from .utils import MAX_RATE, ONE, ZERO, to_decimal

logger = logging.getLogger(__name__)


class CurrencyRateError(ValueError):
    """Raised when an operator sets a rate that cannot be used."""


class CurrencyTable:
    """
    Exchange-rate snapshot for one quote.

    Rates are "units of base currency per 1 unit of the currency", so the
    base currency always maps to 1. Lookups of unknown codes fall back to
    1 and report the miss instead of raising, because recomputation must
    never fail halfway through an edit.
    """

    def __init__(self, base_currency: str, rates: Optional[Mapping[str, object]] = None):
        self.base_currency = base_currency.upper()
        self._rates: Dict[str, Decimal] = {self.base_currency: ONE}
        for code, raw in (rates or {}).items():
            code = (code or "").strip().upper()
            if not code or code == self.base_currency:
                continue
            rate = to_decimal(raw, None)
            if rate is None or rate <= ZERO or rate > MAX_RATE:
                # Persisted junk is dropped; lookups will fall back and flag it
                logger.warning(f"Ignoring unusable rate {raw!r} for {code} in snapshot")
                continue
            self._rates[code] = rate

    def set_rate(self, code: str, rate) -> Decimal:
        code = (code or "").strip().upper()
        if not code:
            raise CurrencyRateError("Currency code is required")
        value = to_decimal(rate, None)
        if value is None or value <= ZERO:
            raise CurrencyRateError(f"Rate for {code} must be a positive number, got {rate!r}")
        if value > MAX_RATE:
            raise CurrencyRateError(f"Rate for {code} exceeds the maximum of {MAX_RATE}")
        if code == self.base_currency:
            if value != ONE:
                raise CurrencyRateError(f"Base currency {code} is fixed at 1")
            return ONE
        self._rates[code] = value
        return value

    def lookup(self, code: str) -> Tuple[Decimal, bool]:
        """Return `(rate, known)`; unknown codes resolve to 1."""
        rate = self._rates.get((code or "").upper())
        if rate is None:
            return ONE, False
        return rate, True

    def __eq__(self, other) -> bool:
        if not isinstance(other, CurrencyTable):
            return NotImplemented
        return self.base_currency == other.base_currency and self._rates == other._rates

    def __repr__(self) -> str:
        return f"CurrencyTable(base={self.base_currency!r}, rates={self.as_dict()!r})"

    def copy(self) -> "CurrencyTable":
        return CurrencyTable(self.base_currency, dict(self._rates))

    def as_dict(self) -> Dict[str, str]:
        return {code: str(self._rates[code]) for code in sorted(self._rates)}
