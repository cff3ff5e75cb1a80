from datetime import datetime, timezone

import pytest

from pricing.dataclasses import ApprovalState, ApprovalTrigger
from quotes.errors import (
    ApprovalNotRequiredError,
    ApprovalRequiredError,
    ExpiredRatesError,
    IllegalTransitionError,
    WorkflowError,
)
from quotes.workflow import ActivityCategory, ActivityTone, QuoteStatus, QuoteWorkflow

AT = datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc)
CLEAR = ApprovalState()
LOW_MARGIN = ApprovalState(
    requires_approval=True,
    reason="Margin 9.1% is below 15% threshold",
    triggers=[ApprovalTrigger("MARGIN_LOW", "Margin 9.1% is below 15% threshold")],
)


class TestSubmission:
    def test_clear_draft_is_sent(self):
        t = QuoteWorkflow.attempt_submission(QuoteStatus.DRAFT, CLEAR, actor="Sara (Sales)", at=AT)
        assert t.status is QuoteStatus.SENT
        assert t.activity.text == "Quote sent to client"
        assert t.activity.category is ActivityCategory.SYSTEM
        assert t.activity.tone is ActivityTone.SUCCESS
        assert t.activity.actor == "Sara (Sales)"

    def test_low_margin_blocks_sending(self):
        with pytest.raises(ApprovalRequiredError) as exc:
            QuoteWorkflow.attempt_submission(QuoteStatus.DRAFT, LOW_MARGIN, actor=None, at=AT)
        assert "9.1%" in str(exc.value)

    def test_expired_rates_block_sending(self):
        with pytest.raises(ExpiredRatesError):
            QuoteWorkflow.attempt_submission(QuoteStatus.DRAFT, CLEAR, actor=None, at=AT, has_expired_rates=True)

    @pytest.mark.parametrize("status", [QuoteStatus.VALIDATION, QuoteStatus.SENT, QuoteStatus.REJECTED])
    def test_only_drafts_can_be_submitted(self, status):
        with pytest.raises(IllegalTransitionError):
            QuoteWorkflow.attempt_submission(status, CLEAR, actor=None, at=AT)


class TestApprovalCycle:
    def test_request_approval_records_requester(self):
        t = QuoteWorkflow.submit_for_approval(QuoteStatus.DRAFT, LOW_MARGIN, actor="Sara (Sales)", at=AT)
        assert t.status is QuoteStatus.VALIDATION
        assert t.approval.requested_by == "Sara (Sales)"
        assert t.approval.requested_at == AT
        assert t.activity.text == "Requested approval: Margin 9.1% is below 15% threshold"
        assert t.activity.tone is ActivityTone.WARNING

    def test_request_approval_needs_a_trigger(self):
        with pytest.raises(ApprovalNotRequiredError):
            QuoteWorkflow.submit_for_approval(QuoteStatus.DRAFT, CLEAR, actor=None, at=AT)

    def test_approve_clears_and_sends(self):
        t = QuoteWorkflow.approve(QuoteStatus.VALIDATION, LOW_MARGIN, actor="Omar (Manager)", at=AT,
                                  comment="strategic client")
        assert t.status is QuoteStatus.SENT
        assert t.approval.requires_approval is False
        assert t.approval.approved_by == "Omar (Manager)"
        assert t.approval.approved_at == AT
        assert t.activity.text == "Manager approved quote. Note: strategic client"

    def test_approve_without_comment(self):
        t = QuoteWorkflow.approve(QuoteStatus.VALIDATION, LOW_MARGIN, actor="m", at=AT)
        assert t.activity.text == "Manager approved quote."

    def test_approve_blocked_by_expired_rates(self):
        with pytest.raises(ExpiredRatesError):
            QuoteWorkflow.approve(QuoteStatus.VALIDATION, LOW_MARGIN, actor="m", at=AT, has_expired_rates=True)

    def test_approve_outside_validation(self):
        with pytest.raises(IllegalTransitionError):
            QuoteWorkflow.approve(QuoteStatus.DRAFT, LOW_MARGIN, actor="m", at=AT)

    def test_reject_returns_to_draft(self):
        t = QuoteWorkflow.reject(QuoteStatus.VALIDATION, LOW_MARGIN, actor="m", at=AT, reason="raise the freight markup")
        assert t.status is QuoteStatus.DRAFT
        assert t.approval.rejection_reason == "raise the freight markup"
        assert t.approval.requires_approval is True
        assert t.activity.text == "Approval rejected: raise the freight markup"
        assert t.activity.tone is ActivityTone.DESTRUCTIVE

    def test_reject_requires_reason(self):
        with pytest.raises(WorkflowError):
            QuoteWorkflow.reject(QuoteStatus.VALIDATION, LOW_MARGIN, actor="m", at=AT, reason="   ")


class TestClosingEvents:
    def test_accept_sent_quote(self):
        t = QuoteWorkflow.mark_accepted(QuoteStatus.SENT, CLEAR, actor=None, at=AT)
        assert t.status is QuoteStatus.ACCEPTED

    def test_accept_requires_sent(self):
        with pytest.raises(IllegalTransitionError):
            QuoteWorkflow.mark_accepted(QuoteStatus.DRAFT, CLEAR, actor=None, at=AT)

    def test_mark_lost(self):
        t = QuoteWorkflow.mark_lost(QuoteStatus.SENT, CLEAR, actor=None, at=AT, reason="price")
        assert t.status is QuoteStatus.REJECTED
        assert t.activity.text == "Quote marked as LOST/REJECTED. Reason: price"

    def test_cannot_lose_an_accepted_quote(self):
        with pytest.raises(IllegalTransitionError):
            QuoteWorkflow.mark_lost(QuoteStatus.ACCEPTED, CLEAR, actor=None, at=AT, reason="price")

    def test_override_allows_any_target(self):
        t = QuoteWorkflow.manual_status_override(QuoteStatus.REJECTED, CLEAR, actor="admin", at=AT,
                                                 new_status="draft")
        assert t.status is QuoteStatus.DRAFT
        assert t.activity.text == "Status manually changed to DRAFT"
        assert t.activity.tone is ActivityTone.NEUTRAL

    def test_override_rejects_unknown_status(self):
        with pytest.raises(IllegalTransitionError):
            QuoteWorkflow.manual_status_override(QuoteStatus.DRAFT, CLEAR, actor=None, at=AT, new_status="ARCHIVED")
