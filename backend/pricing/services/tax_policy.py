# pricing/services/tax_policy.py
from decimal import Decimal
from typing import Dict

from ..dataclasses import TaxRule

# Rule -> fraction of the sell price charged as tax.
TAX_RATES: Dict[TaxRule, Decimal] = {
    TaxRule.STD_20: Decimal("0.20"),
    TaxRule.ROAD_14: Decimal("0.14"),
    # Freight linked to an export is zero-rated (art. 92)
    TaxRule.EXPORT_0_ART92: Decimal("0"),
    TaxRule.EXPORT_0: Decimal("0"),
    # Disbursements (duty, port dues paid on behalf) are recharged without tax
    TaxRule.DISBURSEMENT: Decimal("0"),
    TaxRule.EXEMPT: Decimal("0"),
}


def tax_rate_of(rule: TaxRule) -> Decimal:
    """
    Fixed tax rate for a rule.

    The set of rules is closed, so a missing entry is a programming error
    rather than bad operator input.
    """
    return TAX_RATES[TaxRule(rule)]
