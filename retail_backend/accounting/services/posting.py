# accounting/services/posting.py

"""
======================================================
PATH: accounting/services/posting.py
======================================================
POSTING ADAPTER

Build postings and call create_journal_entry (the engine).

This module should remain a thin adapter:
- It DOES NOT do workflows (services/orchestrators do).
- It DOES map business events -> accounting postings.
- It ALWAYS calls create_journal_entry (engine) for immutability + idempotency.

MONEY:
- Amounts arrive as integer minor units (cents).
- The ledger stores 2dp major units; conversion happens here and nowhere else.

POSTINGS:
- Credit sale:        Dr Accounts Receivable   Cr Sales Revenue
- Sale cancellation:  Dr Sales Revenue         Cr Accounts Receivable
- Purchase receipt:   Dr Inventory             Cr Accounts Payable
- Customer payment:   Dr Cash/Bank             Cr Accounts Receivable
- Supplier payment:   Dr Accounts Payable      Cr Cash/Bank
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal

from accounting.services.account_resolver import (
    accounts_payable_code,
    accounts_receivable_code,
    get_account_by_code,
    inventory_code,
    sales_revenue_code,
)
from accounting.services.exceptions import JournalEntryCreationError
from accounting.services.journal_entry_service import create_journal_entry

TWOPLACES = Decimal("0.01")
MINOR_UNITS_PER_MAJOR = 100

PAYMENT_ALLOCATION_REFERENCE_TYPE = "PAYMENT_ALLOCATION"
CREDIT_SALE_REFERENCE_TYPE = "SALE"
SALE_CANCELLATION_REFERENCE_TYPE = "SALE_CANCELLATION"
PURCHASE_RECEIPT_REFERENCE_TYPE = "PURCHASE_RECEIPT"


def minor_to_major(amount_minor: int) -> Decimal:
    if isinstance(amount_minor, bool) or not isinstance(amount_minor, int):
        raise JournalEntryCreationError(
            f"Ledger amounts must be integer minor units, got {amount_minor!r}"
        )
    return (Decimal(amount_minor) / MINOR_UNITS_PER_MAJOR).quantize(
        TWOPLACES, rounding=ROUND_HALF_UP
    )


def _post_two_line(
    *,
    reference_type: str,
    reference_id: str,
    debit_account_code: str,
    credit_account_code: str,
    amount_minor: int,
    description: str,
    posted_at: datetime | None = None,
):
    amt = minor_to_major(amount_minor)
    if amt <= Decimal("0.00"):
        raise JournalEntryCreationError("Posting amount must be > 0")

    debit_account = get_account_by_code(debit_account_code)
    credit_account = get_account_by_code(credit_account_code)

    if debit_account.pk == credit_account.pk:
        raise JournalEntryCreationError(
            f"Debit and credit accounts must differ (both {debit_account.code})"
        )

    postings = [
        {"account": debit_account, "debit": amt, "credit": Decimal("0.00")},
        {"account": credit_account, "debit": Decimal("0.00"), "credit": amt},
    ]

    return create_journal_entry(
        description=description,
        postings=postings,
        reference_type=reference_type,
        reference_id=str(reference_id),
        posted_at=posted_at,
    )


# ============================================================
# OBLIGATIONS (DEBT CREATED)
# ============================================================


def post_credit_sale_to_ledger(
    *,
    sale_id,
    invoice_no: str,
    amount_minor: int,
    posted_at: datetime | None = None,
):
    return _post_two_line(
        reference_type=CREDIT_SALE_REFERENCE_TYPE,
        reference_id=sale_id,
        debit_account_code=accounts_receivable_code(),
        credit_account_code=sales_revenue_code(),
        amount_minor=amount_minor,
        description=f"Credit Sale {invoice_no}",
        posted_at=posted_at,
    )


def post_credit_sale_reversal_to_ledger(
    *,
    sale_id,
    invoice_no: str,
    amount_minor: int,
    posted_at: datetime | None = None,
):
    return _post_two_line(
        reference_type=SALE_CANCELLATION_REFERENCE_TYPE,
        reference_id=sale_id,
        debit_account_code=sales_revenue_code(),
        credit_account_code=accounts_receivable_code(),
        amount_minor=amount_minor,
        description=f"Sale Cancelled {invoice_no}",
        posted_at=posted_at,
    )


def post_purchase_receipt_to_ledger(
    *,
    invoice_id,
    invoice_number: str,
    amount_minor: int,
    posted_at: datetime | None = None,
):
    return _post_two_line(
        reference_type=PURCHASE_RECEIPT_REFERENCE_TYPE,
        reference_id=invoice_id,
        debit_account_code=inventory_code(),
        credit_account_code=accounts_payable_code(),
        amount_minor=amount_minor,
        description=f"Purchase Receipt {invoice_number}",
        posted_at=posted_at,
    )


# ============================================================
# PAYMENTS (DEBT SETTLED)
# ============================================================


def post_payment_to_ledger(
    *,
    allocation_id: str,
    debit_account_code: str,
    credit_account_code: str,
    amount_minor: int,
    description: str,
    posted_at: datetime | None = None,
):
    """
    One balanced two-line journal entry per allocation run.

    The run id is the idempotency key: a retried run can never post twice.
    """
    return _post_two_line(
        reference_type=PAYMENT_ALLOCATION_REFERENCE_TYPE,
        reference_id=allocation_id,
        debit_account_code=debit_account_code,
        credit_account_code=credit_account_code,
        amount_minor=amount_minor,
        description=description,
        posted_at=posted_at,
    )
