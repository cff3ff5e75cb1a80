from __future__ import annotations

from decimal import Decimal
from typing import List

from ..dataclasses import ApprovalState, ApprovalTrigger, Totals
from .utils import ZERO, fmt_pct

# Fixed company policy, not configurable per quote.
MARGIN_THRESHOLD_PCT = Decimal("15.0")

MARGIN_LOW = "MARGIN_LOW"


def evaluate(totals: Totals) -> ApprovalState:
    """
    Decide whether manager sign-off is required before sending.

    An empty or zero-value quote never requires approval: there is no
    margin to judge. Otherwise a margin strictly below the threshold does.
    Only the derived fields are filled; audit fields stay empty.
    """
    triggers: List[ApprovalTrigger] = []
    if totals.total_sell_base > ZERO and totals.margin_percent < MARGIN_THRESHOLD_PCT:
        triggers.append(ApprovalTrigger(
            code=MARGIN_LOW,
            message=(
                f"Margin {fmt_pct(totals.margin_percent)}% is below "
                f"{MARGIN_THRESHOLD_PCT:.0f}% threshold"
            ),
            severity="HIGH",
        ))

    if not triggers:
        return ApprovalState(requires_approval=False, reason=None, triggers=[])
    return ApprovalState(
        requires_approval=True,
        reason=" | ".join(t.message for t in triggers),
        triggers=triggers,
    )
