from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, List, Optional

from django.db import IntegrityError, transaction
from django.utils.timezone import now

from pricing.services.utils import ZERO

from .aggregate import QuoteAggregate
from .errors import QuoteValidationError
from .models import Quote
from .workflow import QuoteStatus

logger = logging.getLogger(__name__)

# Statuses in which the quote has been put in front of a manager or client
_COMMITTED_STATUSES = {QuoteStatus.VALIDATION, QuoteStatus.SENT, QuoteStatus.ACCEPTED}

# Totals rendered by the read model; all share the money columns' capacity
_MONEY_TOTALS = (
    "total_cost_base", "total_sell_base", "total_margin_base", "total_tax_base",
    "total_with_tax_base", "total_sell_target", "total_tax_target", "total_with_tax_target",
)


def _capacity(field_name: str) -> Decimal:
    field = Quote._meta.get_field(field_name)
    return Decimal(10) ** (field.max_digits - field.decimal_places)


def validate_for_save(aggregate: QuoteAggregate) -> List[str]:
    """Blocking problems that prevent a save. Empty list means valid."""
    errors: List[str] = []
    if not (aggregate.reference or "").strip():
        errors.append("Reference is required")
    if not (aggregate.client_name or "").strip():
        errors.append("Client name is required")
    if aggregate.status in _COMMITTED_STATUSES:
        if not aggregate.lines:
            errors.append("At least one line item is required")
        elif aggregate.totals.total_sell_base == ZERO:
            errors.append("Quote total is zero")
    money_limit = _capacity("total_sell_base")
    if any(abs(getattr(aggregate.totals, name)) >= money_limit for name in _MONEY_TOTALS):
        errors.append(f"Quote totals exceed the storable maximum of {money_limit}")
    if abs(aggregate.totals.margin_percent) >= _capacity("margin_percent"):
        errors.append(f"Margin {aggregate.totals.margin_percent}% cannot be stored")
    return errors


class QuoteRepository:
    """Loads and saves QuoteAggregates as `Quote` rows."""

    def __init__(self, clock: Optional[Callable] = None):
        self.clock = clock

    def load(self, quote_id: int, *, for_update: bool = False) -> QuoteAggregate:
        qs = Quote.objects.all()
        if for_update:
            qs = qs.select_for_update()
        row = qs.get(pk=quote_id)
        record = dict(row.payload or {})
        record.update(
            id=row.pk,
            reference=row.reference,
            client_name=row.client_name,
            status=row.status,
            base_currency=record.get("base_currency") or row.base_currency,
        )
        return QuoteAggregate.from_record(record, clock=self.clock)

    def save(self, aggregate: QuoteAggregate, *, created_by=None) -> int:
        errors = validate_for_save(aggregate)
        if errors:
            raise QuoteValidationError(errors)

        record = aggregate.to_record()
        record.pop("id", None)
        fields = dict(
            reference=aggregate.reference.strip(),
            client_name=aggregate.client_name.strip(),
            status=aggregate.status.value,
            base_currency=aggregate.base_currency,
            target_currency=aggregate.target_currency,
            total_sell_base=aggregate.totals.total_sell_base,
            total_with_tax_target=aggregate.totals.total_with_tax_target,
            margin_percent=aggregate.totals.margin_percent,
            requires_approval=aggregate.approval.requires_approval,
            payload=record,
        )

        try:
            with transaction.atomic():
                if aggregate.id is None:
                    row = Quote.objects.create(created_by=created_by, **fields)
                    quote_id = row.pk
                else:
                    updated = Quote.objects.filter(pk=aggregate.id).update(updated_at=now(), **fields)
                    if not updated:
                        raise Quote.DoesNotExist(f"Quote {aggregate.id} no longer exists")
                    quote_id = aggregate.id
        except IntegrityError:
            logger.warning(f"Duplicate quote reference {fields['reference']!r}")
            raise QuoteValidationError([f"Reference {fields['reference']} already exists"])

        aggregate.id = quote_id
        logger.info(f"Saved quote {quote_id} ({aggregate.status.value}, sell {aggregate.totals.total_sell_base} {aggregate.base_currency})")
        return quote_id
