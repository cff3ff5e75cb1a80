from __future__ import annotations

import logging
from datetime import datetime
from typing import Iterable, Optional

from django.db import transaction
from django.utils.timezone import now

from .models import QuoteActivity
from .workflow import ActivityCategory, ActivityEvent, ActivityTone

logger = logging.getLogger(__name__)


class DatabaseActivitySink:
    """
    Append-only audit trail for one quote.

    Writing the trail is best-effort: a failure is logged and never undoes
    or blocks the transition that produced the entry.
    """

    def __init__(self, quote_id: int):
        self.quote_id = quote_id

    def append(self, text: str, category=ActivityCategory.NOTE, tone=ActivityTone.NEUTRAL, *,
               actor: Optional[str] = None, at: Optional[datetime] = None) -> Optional[QuoteActivity]:
        try:
            # Savepoint so a failed insert does not poison an enclosing transaction
            with transaction.atomic():
                return QuoteActivity.objects.create(
                    quote_id=self.quote_id,
                    text=text,
                    category=ActivityCategory(category).value,
                    tone=ActivityTone(tone).value,
                    actor=actor or "",
                    created_at=at or now(),
                )
        except Exception:
            logger.exception(f"Could not append activity to quote {self.quote_id}: {text!r}")
            return None

    def append_events(self, events: Iterable[ActivityEvent]) -> int:
        written = 0
        for event in events:
            if self.append(event.text, event.category, event.tone, actor=event.actor, at=event.at):
                written += 1
        return written
