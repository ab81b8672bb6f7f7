# accounting/services/balance_service.py

"""
BALANCE SERVICE (READ-ONLY)

Single-account balance, used to check the receivable / payable / cash side
of settlements. Only posted journals count.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from accounting.models.account import Account
from accounting.models.ledger import LedgerEntry
from accounting.services.exceptions import BalanceServiceError

TWOPLACES = Decimal("0.01")


def get_account_balance(account: Account) -> Decimal:
    """
    Debit-normal accounts (assets, expenses): debits - credits.
    Everything else: credits - debits.
    """
    if account is None:
        raise BalanceServiceError("Account is required")

    debit, credit = LedgerEntry.objects.posted().for_account(account).totals()
    balance = debit - credit if account.is_debit_normal else credit - debit
    return Decimal(balance).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
