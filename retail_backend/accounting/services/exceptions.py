# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for the ledger side of payment posting.
Callers outside accounting should catch AccountingServiceError.
"""


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""


class AccountResolutionError(AccountingServiceError):
    """Raised when an expected account cannot be resolved."""


class JournalEntryCreationError(AccountingServiceError):
    """Raised when a journal entry cannot be created (unbalanced, empty, cross-chart)."""


class IdempotencyError(AccountingServiceError):
    """Raised when a journal entry already exists for the same reference."""


class BalanceServiceError(AccountingServiceError):
    """Raised on invalid balance queries."""
