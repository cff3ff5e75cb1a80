"""
QuoteAggregate: the single owner of a quote's pricing inputs and derived state.

Every mutator ends with a full repricing pass through the pricing
calculator and approval policy over all remaining lines. There is no
incremental update and no hidden trigger: totals and approval are always
consistent with the lines, rates and target currency held here.

The aggregate performs no I/O. Workflow transitions queue activity events
which the caller drains after a successful save.
"""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple
from uuid import uuid4

from pricing.dataclasses import (
    ApprovalState,
    FixedAmount,
    LineItem,
    Markup,
    MarkupKind,
    Percent,
    Section,
    TaxRule,
    Totals,
    markup_from_dict,
)
from pricing.services import approval_policy
from pricing.services.currency import CurrencyTable
from pricing.services.pricing_service import compute
from pricing.services.templates import build_template
from pricing.services.utils import MAX_AMOUNT, MAX_MARKUP_PCT, ZERO, to_decimal

from .errors import LineItemError, QuoteLockedError
from .workflow import EDITABLE_STATUSES, ActivityEvent, QuoteStatus, QuoteWorkflow, Transition

logger = logging.getLogger(__name__)

LINE_FIELDS = (
    "section",
    "description",
    "buy_price",
    "buy_currency",
    "markup",
    "markup_kind",
    "markup_value",
    "tax_rule",
    "validity_date",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_line_id() -> str:
    return uuid4().hex[:8]


def _parse_section(value) -> Section:
    try:
        return Section(str(value).upper())
    except ValueError:
        raise LineItemError(f"Unknown section '{value}'")


def _parse_tax_rule(value) -> TaxRule:
    try:
        return TaxRule(str(value).upper())
    except ValueError:
        raise LineItemError(f"Unknown tax rule '{value}'")


def _parse_date(value) -> Optional[date]:
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise LineItemError(f"Invalid validity date '{value}'")


def _parse_price(value) -> Tuple[Decimal, bool]:
    """Return `(price, coerced)`. Text that is not a number prices as 0 and is flagged."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return ZERO, False
    price = to_decimal(value, None)
    if price is None:
        return ZERO, True
    if price < ZERO:
        raise LineItemError(f"Buy price cannot be negative (got {value})")
    if price > MAX_AMOUNT:
        raise LineItemError(f"Buy price exceeds the maximum of {MAX_AMOUNT} (got {value})")
    return price, False


def _check_markup(markup: Markup) -> None:
    if isinstance(markup, Percent):
        limit = MAX_MARKUP_PCT
    else:
        limit = MAX_AMOUNT
    if abs(markup.value) > limit:
        raise LineItemError(f"Markup {markup.value} is outside the allowed range of +/-{limit}")


class QuoteAggregate:
    def __init__(
        self,
        base_currency: str,
        target_currency: Optional[str] = None,
        rates: Optional[Mapping[str, object]] = None,
        *,
        reference: str = "",
        client_name: str = "",
        id: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
        new_line_id: Optional[Callable[[], str]] = None,
    ):
        self.id = id
        self.reference = reference
        self.client_name = client_name
        self.rates = CurrencyTable(base_currency, rates)
        self.target_currency = (target_currency or base_currency).upper()
        self.status = QuoteStatus.DRAFT
        self.totals = Totals(target_currency=self.target_currency)
        self.approval = ApprovalState()
        self.has_expired_rates = False
        self._lines: List[LineItem] = []
        self._pending: List[ActivityEvent] = []
        self._clock = clock or _utcnow
        self._new_line_id = new_line_id or _new_line_id
        self.recompute()

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    @property
    def base_currency(self) -> str:
        return self.rates.base_currency

    @property
    def lines(self) -> Tuple[LineItem, ...]:
        return tuple(self._lines)

    @property
    def is_editable(self) -> bool:
        return self.status in EDITABLE_STATUSES

    @property
    def pending_activity(self) -> Tuple[ActivityEvent, ...]:
        return tuple(self._pending)

    def get_line(self, line_id: str) -> LineItem:
        for line in self._lines:
            if line.id == line_id:
                return line
        raise LineItemError(f"Line '{line_id}' not found")

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    def recompute(self) -> Totals:
        return self._reprice()

    def _reprice(self, lines: Optional[List[LineItem]] = None, rates: Optional[CurrencyTable] = None,
                 target_currency: Optional[str] = None) -> Totals:
        """Price candidate inputs and adopt them only once pricing has succeeded."""
        lines = list(self._lines if lines is None else lines)
        rates = self.rates if rates is None else rates
        target_currency = self.target_currency if target_currency is None else target_currency

        totals = compute(lines, rates, target_currency)
        policy = approval_policy.evaluate(totals)

        self._lines = lines
        self.rates = rates
        self.target_currency = target_currency
        self.totals = totals
        self.approval = replace(
            self.approval,
            requires_approval=policy.requires_approval,
            reason=policy.reason,
            triggers=policy.triggers,
        )
        self._refresh_expiry()
        return totals

    def _refresh_expiry(self) -> bool:
        today = self._clock().date()
        self.has_expired_rates = any(
            line.validity_date is not None and line.validity_date < today for line in self._lines
        )
        return self.has_expired_rates

    # ------------------------------------------------------------------
    # Pricing mutations (DRAFT / VALIDATION only)
    # ------------------------------------------------------------------

    def _ensure_editable(self) -> None:
        if not self.is_editable:
            raise QuoteLockedError(self.status.value)

    def add_line(self, section, **fields: Any) -> LineItem:
        self._ensure_editable()
        line = LineItem(
            id=self._new_line_id(),
            section=_parse_section(section),
            buy_currency=self.base_currency,
        )
        line = self._with_fields(line, fields)
        self._reprice(lines=self._lines + [line])
        return line

    def update_line(self, line_id: str, field: str, value: Any) -> LineItem:
        return self.update_line_fields(line_id, {field: value})

    def update_line_fields(self, line_id: str, changes: Mapping[str, Any]) -> LineItem:
        """Apply several field changes at once; nothing changes if one is invalid."""
        self._ensure_editable()
        current = self.get_line(line_id)
        updated = self._with_fields(current, changes)
        self._reprice(lines=[updated if line.id == line_id else line for line in self._lines])
        return updated

    def remove_line(self, line_id: str) -> None:
        self._ensure_editable()
        self.get_line(line_id)
        self._reprice(lines=[line for line in self._lines if line.id != line_id])

    def apply_template(self, name: str) -> List[LineItem]:
        self._ensure_editable()
        try:
            lines = build_template(name, self._new_line_id)
        except ValueError as e:
            raise LineItemError(str(e))
        self._reprice(lines=lines)
        return lines

    def set_rate(self, currency: str, rate) -> Decimal:
        self._ensure_editable()
        rates = self.rates.copy()
        value = rates.set_rate(currency, rate)
        self._reprice(rates=rates)
        return value

    def set_target_currency(self, currency: str) -> None:
        self._ensure_editable()
        code = (currency or "").strip().upper()
        if not code:
            raise LineItemError("Target currency is required")
        self._reprice(target_currency=code)

    def _with_fields(self, line: LineItem, changes: Mapping[str, Any]) -> LineItem:
        unknown = [f for f in changes if f not in LINE_FIELDS]
        if unknown:
            raise LineItemError(f"Unknown line field(s): {', '.join(sorted(unknown))}")

        updates: Dict[str, Any] = {}
        markup: Markup = line.markup
        for field, value in changes.items():
            if field == "section":
                updates["section"] = _parse_section(value)
            elif field == "description":
                updates["description"] = "" if value is None else str(value)
            elif field == "buy_price":
                updates["buy_price"], updates["price_coerced"] = _parse_price(value)
            elif field == "buy_currency":
                updates["buy_currency"] = (value or "").strip().upper()
            elif field == "markup":
                markup = self._parse_markup(value)
            elif field == "markup_kind":
                markup = self._parse_markup({"kind": value, "value": markup.value})
            elif field == "markup_value":
                markup = replace(markup, value=to_decimal(value, ZERO))
            elif field == "tax_rule":
                updates["tax_rule"] = _parse_tax_rule(value)
            elif field == "validity_date":
                updates["validity_date"] = _parse_date(value)
        _check_markup(markup)
        updates["markup"] = markup
        return replace(line, **updates)

    @staticmethod
    def _parse_markup(value) -> Markup:
        if isinstance(value, (Percent, FixedAmount)):
            return value
        if not isinstance(value, Mapping):
            raise LineItemError(f"Markup must be an object with kind and value, got {value!r}")
        try:
            return markup_from_dict(value)
        except ValueError:
            kinds = ", ".join(k.value for k in MarkupKind)
            raise LineItemError(f"Unknown markup kind '{value.get('kind')}' (expected one of {kinds})")

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def _apply(self, transition: Transition) -> ActivityEvent:
        self.status = transition.status
        self.approval = transition.approval
        self._pending.append(transition.activity)
        return transition.activity

    def attempt_submission(self, actor: Optional[str] = None) -> ActivityEvent:
        return self._apply(QuoteWorkflow.attempt_submission(
            self.status, self.approval, actor=actor, at=self._clock(),
            has_expired_rates=self._refresh_expiry(),
        ))

    def submit_for_approval(self, actor: Optional[str] = None) -> ActivityEvent:
        return self._apply(QuoteWorkflow.submit_for_approval(
            self.status, self.approval, actor=actor, at=self._clock(),
            has_expired_rates=self._refresh_expiry(),
        ))

    def approve(self, actor: Optional[str] = None, comment: Optional[str] = None) -> ActivityEvent:
        return self._apply(QuoteWorkflow.approve(
            self.status, self.approval, actor=actor, at=self._clock(), comment=comment,
            has_expired_rates=self._refresh_expiry(),
        ))

    def reject(self, reason: str, actor: Optional[str] = None) -> ActivityEvent:
        return self._apply(QuoteWorkflow.reject(
            self.status, self.approval, actor=actor, at=self._clock(), reason=reason,
        ))

    def mark_accepted(self, actor: Optional[str] = None) -> ActivityEvent:
        return self._apply(QuoteWorkflow.mark_accepted(
            self.status, self.approval, actor=actor, at=self._clock(),
        ))

    def mark_lost(self, reason: str, actor: Optional[str] = None) -> ActivityEvent:
        return self._apply(QuoteWorkflow.mark_lost(
            self.status, self.approval, actor=actor, at=self._clock(), reason=reason,
        ))

    def override_status(self, new_status, actor: Optional[str] = None) -> ActivityEvent:
        return self._apply(QuoteWorkflow.manual_status_override(
            self.status, self.approval, actor=actor, at=self._clock(), new_status=new_status,
        ))

    def drain_activity(self) -> List[ActivityEvent]:
        events, self._pending = self._pending, []
        return events

    # ------------------------------------------------------------------
    # Plain-record (de)serialization for the persistence collaborator
    # ------------------------------------------------------------------

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "reference": self.reference,
            "client_name": self.client_name,
            "status": self.status.value,
            "base_currency": self.base_currency,
            "target_currency": self.target_currency,
            "rates": self.rates.as_dict(),
            "lines": [line.to_dict() for line in self._lines],
            "approval": self.approval.to_dict(),
            "totals": self.totals.to_dict(),
            "has_expired_rates": self.has_expired_rates,
        }

    @classmethod
    def from_record(cls, record: Mapping[str, Any], *, clock: Optional[Callable[[], datetime]] = None,
                    new_line_id: Optional[Callable[[], str]] = None) -> "QuoteAggregate":
        agg = cls(
            record["base_currency"],
            record.get("target_currency"),
            record.get("rates") or {},
            reference=record.get("reference") or "",
            client_name=record.get("client_name") or "",
            id=record.get("id"),
            clock=clock,
            new_line_id=new_line_id,
        )
        agg._lines = [LineItem.from_dict(raw) for raw in record.get("lines") or []]
        agg.status = QuoteStatus(record.get("status") or QuoteStatus.DRAFT.value)
        agg.recompute()
        stored = record.get("approval")
        if stored:
            # Keep the persisted decision: an approved quote stays cleared after reload
            agg.approval = ApprovalState.from_dict(stored)
        return agg
