from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable, List

from ..dataclasses import FixedAmount, LineItem, Percent, Totals
from .currency import CurrencyTable
from .tax_policy import tax_rate_of
from .utils import HUNDRED, ONE, ZERO, q2, to_decimal

logger = logging.getLogger(__name__)


class _Accumulator:
    """Unrounded running sums in base currency."""

    def __init__(self):
        self.cost = ZERO
        self.sell = ZERO
        self.tax = ZERO
        self.unknown: List[str] = []
        self.warnings: List[str] = []

    def flag_unknown(self, code: str, where: str) -> None:
        code = (code or "").upper() or "<blank>"
        if code in self.unknown:
            return
        self.unknown.append(code)
        self.warnings.append(f"No exchange rate for {code} ({where}); rate 1 used")


def sell_price_base(cost_base: Decimal, markup, buy_rate: Decimal) -> Decimal:
    """Apply a markup to a cost already converted to base currency."""
    if isinstance(markup, Percent):
        return cost_base * (ONE + to_decimal(markup.value, ZERO) / HUNDRED)
    if isinstance(markup, FixedAmount):
        # The fixed amount is in buy currency and moves with the same rate as the cost
        return cost_base + to_decimal(markup.value, ZERO) * buy_rate
    raise TypeError(f"Unsupported markup {markup!r}")


def compute(items: Iterable[LineItem], rates: CurrencyTable, target_currency: str) -> Totals:
    """
    Price a list of line items into base and target-currency totals.

    Each line: cost = buy_price * rate(buy_currency); sell = cost with markup;
    tax = sell * rate(tax_rule). Sums are kept unrounded and every stored
    figure is rounded to cents once, at the end. Unknown currencies resolve
    to rate 1 and are reported in `warnings`/`unknown_currencies`.
    """
    acc = _Accumulator()

    for item in items:
        price = to_decimal(item.buy_price, None)
        if price is None or item.price_coerced:
            acc.warnings.append(f"Line {item.id}: buy price is not a number; treated as 0")
            price = ZERO

        buy_rate, known = rates.lookup(item.buy_currency)
        if not known:
            acc.flag_unknown(item.buy_currency, f"line {item.id}")

        cost_base = price * buy_rate
        sell_base = sell_price_base(cost_base, item.markup, buy_rate)
        tax_base = sell_base * tax_rate_of(item.tax_rule)

        acc.cost += cost_base
        acc.sell += sell_base
        acc.tax += tax_base

    target = (target_currency or rates.base_currency).upper()
    target_rate, known = rates.lookup(target)
    if not known:
        acc.flag_unknown(target, "target currency")

    margin = acc.sell - acc.cost
    with_tax = acc.sell + acc.tax
    margin_pct = (margin / acc.sell) * HUNDRED if acc.sell > ZERO else ZERO

    if acc.unknown:
        logger.warning(f"Currency fallback to 1 for {', '.join(acc.unknown)}")

    return Totals(
        total_cost_base=q2(acc.cost),
        total_sell_base=q2(acc.sell),
        total_margin_base=q2(margin),
        total_tax_base=q2(acc.tax),
        total_with_tax_base=q2(with_tax),
        total_sell_target=q2(acc.sell / target_rate),
        total_tax_target=q2(acc.tax / target_rate),
        total_with_tax_target=q2(with_tax / target_rate),
        margin_percent=q2(margin_pct),
        target_currency=target,
        unknown_currencies=acc.unknown,
        warnings=acc.warnings,
    )
