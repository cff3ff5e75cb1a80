"""
Application service around the quote aggregate.

Each command runs load -> mutate -> recompute -> save as one critical
section: the row is locked with SELECT ... FOR UPDATE inside a transaction,
so two editors can never interleave edits on the same quote. Activity
events are appended only once the save has committed.
"""
from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, TypeVar

from django.conf import settings
from django.db import transaction

from .activity import DatabaseActivitySink
from .aggregate import QuoteAggregate
from .repository import QuoteRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def new_aggregate(reference: str, client_name: str, target_currency: Optional[str] = None) -> QuoteAggregate:
    """An empty DRAFT quote seeded with the configured rate snapshot."""
    return QuoteAggregate(
        settings.QUOTE_BASE_CURRENCY,
        target_currency or settings.QUOTE_DEFAULT_TARGET_CURRENCY,
        settings.QUOTE_DEFAULT_RATES,
        reference=reference,
        client_name=client_name,
    )


def _flush_activity(aggregate: QuoteAggregate, sink_factory) -> None:
    events = aggregate.drain_activity()
    if events:
        sink_factory(aggregate.id).append_events(events)


def create_quote(*, reference: str, client_name: str, target_currency: Optional[str] = None,
                 template: Optional[str] = None, user=None,
                 repository: Optional[QuoteRepository] = None,
                 sink_factory=DatabaseActivitySink) -> QuoteAggregate:
    repository = repository or QuoteRepository()
    aggregate = new_aggregate(reference, client_name, target_currency)
    if template:
        aggregate.apply_template(template)
    repository.save(aggregate, created_by=user)
    sink_factory(aggregate.id).append(
        f"Quote {aggregate.reference} created", "SYSTEM", "neutral",
        actor=getattr(user, "audit_name", None),
    )
    return aggregate


def execute(quote_id: int, command: Callable[[QuoteAggregate], T], *,
            repository: Optional[QuoteRepository] = None,
            sink_factory=DatabaseActivitySink) -> Tuple[QuoteAggregate, T]:
    """
    Run `command` against the locked aggregate and persist the result.

    Errors raised by the command or by the save propagate to the caller;
    the transaction rolls back and nothing is logged to the activity trail.
    """
    repository = repository or QuoteRepository()
    with transaction.atomic():
        aggregate = repository.load(quote_id, for_update=True)
        result = command(aggregate)
        repository.save(aggregate)
    _flush_activity(aggregate, sink_factory)
    return aggregate, result
