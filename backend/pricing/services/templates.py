from __future__ import annotations

from decimal import Decimal
from typing import Callable, Dict, List, Tuple

from ..dataclasses import LineItem, Percent, Section, TaxRule

# (section, description, buy price, buy currency, markup %)
TemplateRow = Tuple[Section, str, str, str, str]

PRICING_TEMPLATES: Dict[str, List[TemplateRow]] = {
    "IMPORT_STD": [
        (Section.ORIGIN, "EXW Charges (Pick up)", "150", "EUR", "20"),
        (Section.ORIGIN, "Export Customs Clearance", "65", "EUR", "20"),
        (Section.FREIGHT, "Ocean Freight (All In)", "1200", "USD", "15"),
        (Section.DESTINATION, "THC Destination", "1600", "MAD", "20"),
        (Section.DESTINATION, "Dossier Fee", "450", "MAD", "20"),
    ],
    "EXPORT_STD": [
        (Section.ORIGIN, "Trucking to Port", "1200", "MAD", "20"),
        (Section.ORIGIN, "Customs Clearance", "800", "MAD", "20"),
        (Section.FREIGHT, "Ocean Freight", "850", "USD", "20"),
        (Section.DESTINATION, "DTHC (Prepaid)", "120", "EUR", "20"),
    ],
}


def build_template(name: str, new_id: Callable[[], str]) -> List[LineItem]:
    """Expand a named preset into fresh line items (freight is zero-rated)."""
    key = (name or "").strip().upper()
    if key not in PRICING_TEMPLATES:
        raise ValueError(f"Unknown pricing template '{name}'")
    return [
        LineItem(
            id=new_id(),
            section=section,
            description=description,
            buy_price=Decimal(price),
            buy_currency=currency,
            markup=Percent(Decimal(markup)),
            tax_rule=TaxRule.EXPORT_0_ART92 if section is Section.FREIGHT else TaxRule.STD_20,
        )
        for section, description, price, currency, markup in PRICING_TEMPLATES[key]
    ]
