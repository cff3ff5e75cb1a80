"""
Quote lifecycle state machine.

    DRAFT --attempt_submission--> SENT            (margin within policy)
    DRAFT --submit_for_approval--> VALIDATION     (margin below policy)
    VALIDATION --approve--> SENT
    VALIDATION --reject--> DRAFT                  (rejection is not a dead end)
    SENT --mark_accepted--> ACCEPTED
    DRAFT|VALIDATION|SENT --mark_lost--> REJECTED
    any --manual_status_override--> any           (operator correction)

Every function here is pure: it takes the current status and approval
state and returns a `Transition` (new status, new approval state and the
activity event to log) or raises a `WorkflowError`. Persisting the result
and writing the activity log belong to the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from pricing.dataclasses import ApprovalState

from .errors import (
    ApprovalNotRequiredError,
    ApprovalRequiredError,
    ExpiredRatesError,
    IllegalTransitionError,
    WorkflowError,
)

logger = logging.getLogger(__name__)


class QuoteStatus(str, Enum):
    DRAFT = "DRAFT"
    VALIDATION = "VALIDATION"
    SENT = "SENT"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


EDITABLE_STATUSES = frozenset({QuoteStatus.DRAFT, QuoteStatus.VALIDATION})


class ActivityCategory(str, Enum):
    NOTE = "NOTE"
    SYSTEM = "SYSTEM"
    EMAIL = "EMAIL"
    ALERT = "ALERT"
    APPROVAL = "APPROVAL"


class ActivityTone(str, Enum):
    SUCCESS = "success"
    NEUTRAL = "neutral"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class ActivityEvent:
    text: str
    category: ActivityCategory
    tone: ActivityTone
    at: datetime
    actor: Optional[str] = None


@dataclass(frozen=True)
class Transition:
    status: QuoteStatus
    approval: ApprovalState
    activity: ActivityEvent


def _require(event: str, status: QuoteStatus, *allowed: QuoteStatus) -> None:
    if status not in allowed:
        logger.info(f"Blocked '{event}' from {status.value}")
        raise IllegalTransitionError(event, status.value)


def _require_reason(event: str, status: QuoteStatus, reason: Optional[str]) -> str:
    reason = (reason or "").strip()
    if not reason:
        raise WorkflowError(event, status.value, f"A reason is required to {event.replace('_', ' ')}")
    return reason


class QuoteWorkflow:
    """Transition functions for the quote lifecycle."""

    @staticmethod
    def attempt_submission(status: QuoteStatus, approval: ApprovalState, *, actor: Optional[str],
                           at: datetime, has_expired_rates: bool = False) -> Transition:
        event = "attempt_submission"
        _require(event, status, QuoteStatus.DRAFT)
        if has_expired_rates:
            raise ExpiredRatesError(event, status.value)
        if approval.requires_approval:
            logger.info(f"Submission blocked pending approval: {approval.reason}")
            raise ApprovalRequiredError(event, status.value, approval.reason)
        return Transition(
            status=QuoteStatus.SENT,
            approval=approval,
            activity=ActivityEvent("Quote sent to client", ActivityCategory.SYSTEM,
                                   ActivityTone.SUCCESS, at, actor),
        )

    @staticmethod
    def submit_for_approval(status: QuoteStatus, approval: ApprovalState, *, actor: Optional[str],
                            at: datetime, has_expired_rates: bool = False) -> Transition:
        event = "submit_for_approval"
        _require(event, status, QuoteStatus.DRAFT)
        if has_expired_rates:
            raise ExpiredRatesError(event, status.value)
        if not approval.requires_approval:
            raise ApprovalNotRequiredError(event, status.value)
        reasons = ", ".join(t.message for t in approval.triggers) or approval.reason
        return Transition(
            status=QuoteStatus.VALIDATION,
            approval=replace(approval, requested_by=actor, requested_at=at),
            activity=ActivityEvent(f"Requested approval: {reasons}", ActivityCategory.APPROVAL,
                                   ActivityTone.WARNING, at, actor),
        )

    @staticmethod
    def approve(status: QuoteStatus, approval: ApprovalState, *, actor: Optional[str], at: datetime,
                comment: Optional[str] = None, has_expired_rates: bool = False) -> Transition:
        event = "approve"
        _require(event, status, QuoteStatus.VALIDATION)
        if has_expired_rates:
            raise ExpiredRatesError(event, status.value)
        text = "Manager approved quote."
        if comment:
            text = f"{text} Note: {comment}"
        return Transition(
            status=QuoteStatus.SENT,
            approval=replace(approval, requires_approval=False, approved_by=actor, approved_at=at),
            activity=ActivityEvent(text, ActivityCategory.APPROVAL, ActivityTone.SUCCESS, at, actor),
        )

    @staticmethod
    def reject(status: QuoteStatus, approval: ApprovalState, *, actor: Optional[str], at: datetime,
               reason: Optional[str]) -> Transition:
        event = "reject"
        _require(event, status, QuoteStatus.VALIDATION)
        reason = _require_reason(event, status, reason)
        return Transition(
            status=QuoteStatus.DRAFT,
            approval=replace(approval, rejection_reason=reason),
            activity=ActivityEvent(f"Approval rejected: {reason}", ActivityCategory.APPROVAL,
                                   ActivityTone.DESTRUCTIVE, at, actor),
        )

    @staticmethod
    def mark_accepted(status: QuoteStatus, approval: ApprovalState, *, actor: Optional[str],
                      at: datetime) -> Transition:
        _require("mark_accepted", status, QuoteStatus.SENT)
        return Transition(
            status=QuoteStatus.ACCEPTED,
            approval=approval,
            activity=ActivityEvent("Client accepted quote", ActivityCategory.SYSTEM,
                                   ActivityTone.SUCCESS, at, actor),
        )

    @staticmethod
    def mark_lost(status: QuoteStatus, approval: ApprovalState, *, actor: Optional[str], at: datetime,
                  reason: Optional[str]) -> Transition:
        event = "mark_lost"
        _require(event, status, QuoteStatus.DRAFT, QuoteStatus.VALIDATION, QuoteStatus.SENT)
        reason = _require_reason(event, status, reason)
        return Transition(
            status=QuoteStatus.REJECTED,
            approval=approval,
            activity=ActivityEvent(f"Quote marked as LOST/REJECTED. Reason: {reason}",
                                   ActivityCategory.SYSTEM, ActivityTone.DESTRUCTIVE, at, actor),
        )

    @staticmethod
    def manual_status_override(status: QuoteStatus, approval: ApprovalState, *, actor: Optional[str],
                               at: datetime, new_status) -> Transition:
        try:
            target = QuoteStatus(str(new_status).upper())
        except ValueError:
            raise IllegalTransitionError(
                "manual_status_override", status.value, f"Unknown status '{new_status}'"
            )
        return Transition(
            status=target,
            approval=approval,
            activity=ActivityEvent(f"Status manually changed to {target.value}",
                                   ActivityCategory.SYSTEM, ActivityTone.NEUTRAL, at, actor),
        )
