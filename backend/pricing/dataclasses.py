from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .services.utils import ZERO, to_decimal


class Section(str, Enum):
    ORIGIN = "ORIGIN"
    FREIGHT = "FREIGHT"
    DESTINATION = "DESTINATION"


class TaxRule(str, Enum):
    STD_20 = "STD_20"
    ROAD_14 = "ROAD_14"
    EXPORT_0_ART92 = "EXPORT_0_ART92"
    EXPORT_0 = "EXPORT_0"
    DISBURSEMENT = "DISBURSEMENT"
    EXEMPT = "EXEMPT"


class MarkupKind(str, Enum):
    PERCENT = "PERCENT"
    FIXED_AMOUNT = "FIXED_AMOUNT"


@dataclass(frozen=True)
class Percent:
    """Markup on cost, `value` is a percentage (20 means +20%)."""
    value: Decimal

    kind = MarkupKind.PERCENT


@dataclass(frozen=True)
class FixedAmount:
    """Absolute margin in the line's buy currency. May be negative (forced discount)."""
    value: Decimal

    kind = MarkupKind.FIXED_AMOUNT


Markup = Union[Percent, FixedAmount]

DEFAULT_MARKUP = Percent(Decimal("20"))
DEFAULT_TAX_RULE = TaxRule.STD_20


def markup_to_dict(markup: Markup) -> Dict[str, str]:
    return {"kind": markup.kind.value, "value": str(markup.value)}


def markup_from_dict(data: Dict[str, Any]) -> Markup:
    """
    Build a markup from `{"kind": ..., "value": ...}`.

    A non-numeric value is read as 0. An unknown kind raises ValueError.
    """
    kind = MarkupKind(str(data.get("kind", MarkupKind.PERCENT.value)).upper())
    value = to_decimal(data.get("value"), ZERO)
    if kind is MarkupKind.PERCENT:
        return Percent(value)
    return FixedAmount(value)


@dataclass(frozen=True)
class LineItem:
    id: str
    section: Section
    buy_price: Decimal = ZERO
    buy_currency: str = ""
    markup: Markup = DEFAULT_MARKUP
    tax_rule: TaxRule = DEFAULT_TAX_RULE
    description: str = ""
    validity_date: Optional[date] = None
    # Set when the operator typed something that is not a number; priced as 0
    price_coerced: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "section": self.section.value,
            "description": self.description,
            "buy_price": str(self.buy_price),
            "buy_currency": self.buy_currency,
            "markup": markup_to_dict(self.markup),
            "tax_rule": self.tax_rule.value,
            "validity_date": self.validity_date.isoformat() if self.validity_date else None,
            "price_coerced": self.price_coerced,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LineItem":
        validity = data.get("validity_date")
        if isinstance(validity, str) and validity:
            validity = date.fromisoformat(validity)
        return cls(
            id=str(data["id"]),
            section=Section(data.get("section", Section.ORIGIN.value)),
            description=data.get("description") or "",
            buy_price=to_decimal(data.get("buy_price"), ZERO),
            buy_currency=(data.get("buy_currency") or "").upper(),
            markup=markup_from_dict(data.get("markup") or {}),
            tax_rule=TaxRule(data.get("tax_rule", DEFAULT_TAX_RULE.value)),
            validity_date=validity or None,
            price_coerced=bool(data.get("price_coerced", False)),
        )


@dataclass(frozen=True)
class Totals:
    total_cost_base: Decimal = ZERO
    total_sell_base: Decimal = ZERO
    total_margin_base: Decimal = ZERO
    total_tax_base: Decimal = ZERO
    total_with_tax_base: Decimal = ZERO
    total_sell_target: Decimal = ZERO
    total_tax_target: Decimal = ZERO
    total_with_tax_target: Decimal = ZERO
    margin_percent: Decimal = ZERO
    target_currency: str = ""
    unknown_currencies: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "total_cost_base": str(self.total_cost_base),
            "total_sell_base": str(self.total_sell_base),
            "total_margin_base": str(self.total_margin_base),
            "total_tax_base": str(self.total_tax_base),
            "total_with_tax_base": str(self.total_with_tax_base),
            "total_sell_target": str(self.total_sell_target),
            "total_tax_target": str(self.total_tax_target),
            "total_with_tax_target": str(self.total_with_tax_target),
            "margin_percent": str(self.margin_percent),
            "target_currency": self.target_currency,
            "unknown_currencies": list(self.unknown_currencies),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class ApprovalTrigger:
    code: str
    message: str
    severity: str = "HIGH"

    def to_dict(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message, "severity": self.severity}


@dataclass(frozen=True)
class ApprovalState:
    requires_approval: bool = False
    reason: Optional[str] = None
    triggers: List[ApprovalTrigger] = field(default_factory=list)
    # Audit fields, written by workflow transitions only
    requested_by: Optional[str] = None
    requested_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    approved_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "requires_approval": self.requires_approval,
            "reason": self.reason,
            "triggers": [t.to_dict() for t in self.triggers],
            "requested_by": self.requested_by,
            "requested_at": self.requested_at.isoformat() if self.requested_at else None,
            "approved_by": self.approved_by,
            "approved_at": self.approved_at.isoformat() if self.approved_at else None,
            "rejection_reason": self.rejection_reason,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ApprovalState":
        def _ts(key: str) -> Optional[datetime]:
            raw = data.get(key)
            return datetime.fromisoformat(raw) if raw else None

        return cls(
            requires_approval=bool(data.get("requires_approval", False)),
            reason=data.get("reason"),
            triggers=[
                ApprovalTrigger(t["code"], t["message"], t.get("severity", "HIGH"))
                for t in data.get("triggers") or []
            ],
            requested_by=data.get("requested_by"),
            requested_at=_ts("requested_at"),
            approved_by=data.get("approved_by"),
            approved_at=_ts("approved_at"),
            rejection_reason=data.get("rejection_reason"),
        )
