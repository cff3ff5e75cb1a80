"""
Error types raised by the quote aggregate and workflow.

Guard failures are raised synchronously and leave the aggregate unchanged.
"""
from typing import List, Optional

from pricing.services.currency import CurrencyRateError  # noqa: F401  re-exported


class QuoteError(Exception):
    """Base exception for quote engine errors"""
    code = "quote_error"


class LineItemError(QuoteError):
    """Raised for an unknown line, field or value on a line item"""
    code = "invalid_line_item"


class QuoteLockedError(QuoteError):
    """Raised when pricing inputs are edited outside DRAFT/VALIDATION"""
    code = "quote_locked"

    def __init__(self, status: str):
        self.status = status
        super().__init__(f"Quote is {status}; pricing can only be edited in DRAFT or VALIDATION")


class WorkflowError(QuoteError):
    """Raised when a workflow event is not allowed from the current status"""
    code = "workflow_error"

    def __init__(self, event: str, status: str, message: Optional[str] = None):
        self.event = event
        self.status = status
        super().__init__(message or f"'{event}' is not allowed while quote is {status}")


class IllegalTransitionError(WorkflowError):
    code = "illegal_transition"


class ApprovalRequiredError(WorkflowError):
    code = "approval_required"

    def __init__(self, event: str, status: str, reason: Optional[str] = None):
        self.reason = reason
        msg = "Approval required before sending"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(event, status, msg)


class ApprovalNotRequiredError(WorkflowError):
    code = "approval_not_required"

    def __init__(self, event: str, status: str):
        super().__init__(event, status, "Margin is within policy; send the quote directly")


class ExpiredRatesError(WorkflowError):
    code = "expired_rates"

    def __init__(self, event: str, status: str):
        super().__init__(event, status, "Quote contains expired buy rates")


class QuoteValidationError(QuoteError):
    """Raised at the save boundary; `errors` lists every blocking problem"""
    code = "invalid_quote"

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
