# payments/services/exceptions.py

"""
PAYMENT ALLOCATION ERRORS

Centralized domain errors for the allocation engine.

http_status is consumed by the API layer only; services never branch on it.
"""


class AllocationError(Exception):
    """Base exception for all allocation failures."""

    code = "allocation_error"
    http_status = 400


class InvalidAmount(AllocationError):
    """Raised when payment_amount is not a positive integer (minor units)."""

    code = "invalid_amount"


class NoOutstandingObligations(AllocationError):
    """Raised when the payer has nothing eligible to allocate against."""

    code = "no_outstanding_obligations"


class ExcessPaymentNotAllowed(AllocationError):
    """Raised when a payment exceeds the eligible debt and excess is rejected."""

    code = "excess_payment_not_allowed"


class ObligationNotPayable(AllocationError):
    """Raised when a single obligation cannot take the requested payment."""

    code = "obligation_not_payable"


class PayerNotFound(AllocationError):
    code = "payer_not_found"
    http_status = 404


class InvalidPaymentAccount(AllocationError):
    """Raised when the payment-source account cannot be used for settlement."""

    code = "invalid_payment_account"


class ObligationNotFound(AllocationError):
    """Raised when an obligation vanished between lock and update."""

    code = "obligation_not_found"
    http_status = 404


class OverAllocation(AllocationError):
    """Raised when an update would push paid_amount above total_amount."""

    code = "over_allocation"
    http_status = 409


class LedgerPostingFailed(AllocationError):
    """Raised when the settlement could not be posted to the ledger."""

    code = "ledger_posting_failed"
    http_status = 409


class AllocationInProgress(AllocationError):
    """Raised when the payer's obligations stay locked past the lock timeout."""

    code = "allocation_in_progress"
    http_status = 409
