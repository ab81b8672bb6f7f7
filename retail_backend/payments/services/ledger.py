# payments/services/ledger.py

"""
LEDGER POSTER

Collaborator contract for the one ledger movement each allocation run
produces, and the implementation backed by the accounting journal engine.

The orchestrator only ever sees LedgerPostingFailed; accounting errors are
translated here.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from accounting.services.account_resolver import payment_source_code
from accounting.services.exceptions import AccountingServiceError, AccountResolutionError
from accounting.services.posting import post_payment_to_ledger
from payments.services.exceptions import InvalidPaymentAccount, LedgerPostingFailed

logger = logging.getLogger("payments")


@dataclass(frozen=True)
class LedgerAccounts:
    """
    Account codes for one settlement movement.

    Customer payment:  debit = payment source, credit = accounts receivable
    Supplier payment:  debit = accounts payable, credit = payment source
    """

    debit_account_code: str
    credit_account_code: str


class LedgerPoster:
    def post(
        self,
        *,
        payer_id: str,
        amount: int,
        accounts: LedgerAccounts,
        reference_id: str,
        memo: str = "",
    ):
        """
        Records the movement and returns the created journal entry (or None
        when the implementation has nothing to link). Raises LedgerPostingFailed.
        """
        raise NotImplementedError


class JournalLedgerPoster(LedgerPoster):
    def post(
        self,
        *,
        payer_id: str,
        amount: int,
        accounts: LedgerAccounts,
        reference_id: str,
        memo: str = "",
    ):
        try:
            journal_entry = post_payment_to_ledger(
                allocation_id=reference_id,
                debit_account_code=accounts.debit_account_code,
                credit_account_code=accounts.credit_account_code,
                amount_minor=amount,
                description=memo or f"Payment allocation {reference_id}",
            )
        except AccountingServiceError as exc:
            logger.error(
                "Ledger posting failed",
                extra={
                    "payer_id": payer_id,
                    "reference_id": reference_id,
                    "amount": amount,
                    "debit_account": accounts.debit_account_code,
                    "credit_account": accounts.credit_account_code,
                    "error": str(exc),
                },
            )
            raise LedgerPostingFailed(str(exc)) from exc

        return journal_entry


def resolve_payment_source(*, payment_method: str | None, payment_account_code: str | None) -> str:
    """
    Account code the money moves through. Raises InvalidPaymentAccount.
    """
    try:
        return payment_source_code(
            payment_method=payment_method,
            account_code=payment_account_code,
        )
    except AccountResolutionError as exc:
        logger.error(
            "Payment account resolution failed",
            extra={
                "payment_method": payment_method,
                "payment_account_code": payment_account_code,
            },
        )
        raise InvalidPaymentAccount(str(exc)) from exc


def resolve_control_account(resolver) -> str:
    """
    Accounts Receivable / Accounts Payable code. A missing control account is
    a ledger setup problem, reported as LedgerPostingFailed.
    """
    try:
        return resolver()
    except AccountResolutionError as exc:
        raise LedgerPostingFailed(str(exc)) from exc
