# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create JournalEntry
- Create LedgerEntry
- Enforce debit == credit
- Enforce idempotency via reference (prevents double-posting)

Everything else (customer receipts, supplier payments) must pass through here.
"""

from __future__ import annotations

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.utils import timezone

from accounting.models.journal import JournalEntry, make_reference
from accounting.models.ledger import LedgerEntry
from accounting.services.exceptions import (
    IdempotencyError,
    JournalEntryCreationError,
)

TWOPLACES = Decimal("0.01")
MIN_LINE_AMOUNT = Decimal("0.01")


def _money(value) -> Decimal:
    if value is None or value == "":
        return Decimal("0.00")

    if isinstance(value, Decimal):
        amt = value
    else:
        try:
            amt = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError) as exc:
            raise JournalEntryCreationError(f"Invalid money value: {value!r}") from exc

    return amt.quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _as_aware_dt(dt: datetime | None) -> datetime:
    if dt is None:
        return timezone.now()
    if timezone.is_naive(dt):
        return timezone.make_aware(dt, timezone.get_current_timezone())
    return dt


def _normalize_posting(line) -> dict:
    if not isinstance(line, dict):
        raise JournalEntryCreationError("Each posting must be an object/dict")

    account = line.get("account")
    if account is None:
        raise JournalEntryCreationError("Posting missing account")

    if not getattr(account, "is_active", True):
        raise JournalEntryCreationError(
            f"Account {getattr(account, 'code', 'UNKNOWN')} is inactive"
        )

    debit = _money(line.get("debit"))
    credit = _money(line.get("credit"))

    if debit < 0 or credit < 0:
        raise JournalEntryCreationError("Debit or credit cannot be negative")
    if debit > 0 and credit > 0:
        raise JournalEntryCreationError("A posting cannot have both debit and credit")
    if debit == 0 and credit == 0:
        raise JournalEntryCreationError("A posting must have either debit or credit")

    amount = debit or credit
    if amount < MIN_LINE_AMOUNT:
        raise JournalEntryCreationError(f"Posting amount too small: {amount}")

    return {"account": account, "debit": debit, "credit": credit}


def _assert_single_chart(postings: list[dict]) -> None:
    chart_id = getattr(postings[0]["account"], "chart_id", None)
    if chart_id is None:
        raise JournalEntryCreationError("Posting accounts must belong to a chart")

    for line in postings[1:]:
        if getattr(line["account"], "chart_id", None) != chart_id:
            raise JournalEntryCreationError(
                "All postings must belong to the same chart. Cross-chart journal entries are not allowed."
            )


def get_journal_entry_by_reference(reference_type: str, reference_id) -> JournalEntry | None:
    return JournalEntry.objects.for_reference(reference_type, reference_id).first()


@transaction.atomic
def create_journal_entry(
    *,
    description: str,
    postings: list,
    reference_type: str | None = None,
    reference_id: str | None = None,
    posted_at: datetime | None = None,
) -> JournalEntry:
    if not postings:
        raise JournalEntryCreationError(
            "Journal entry must contain at least one posting"
        )

    description = (description or "").strip()
    if not description:
        raise JournalEntryCreationError("Journal entry description is required")

    reference = make_reference(reference_type, reference_id)
    normalized = [_normalize_posting(line) for line in postings]

    total_debits = sum((p["debit"] for p in normalized), Decimal("0.00"))
    total_credits = sum((p["credit"] for p in normalized), Decimal("0.00"))

    if total_debits != total_credits:
        raise JournalEntryCreationError(
            f"Journal entry not balanced: debits={total_debits} credits={total_credits}"
        )

    _assert_single_chart(normalized)

    if reference and JournalEntry.objects.filter(reference=reference).exists():
        raise IdempotencyError(
            f"Journal entry already exists for reference {reference}"
        )

    try:
        # Savepoint so a unique-reference race doesn't poison the caller's transaction
        with transaction.atomic():
            journal_entry = JournalEntry.objects.create(
                description=description,
                reference=reference,
                posted_at=_as_aware_dt(posted_at),
                is_posted=True,
            )
    except IntegrityError as exc:
        if reference and JournalEntry.objects.filter(reference=reference).exists():
            raise IdempotencyError(
                f"Journal entry already exists for reference {reference}"
            ) from exc
        raise JournalEntryCreationError(
            f"Failed to create journal entry: {exc}"
        ) from exc

    LedgerEntry.objects.bulk_create(
        [
            LedgerEntry(
                journal_entry=journal_entry,
                account=line["account"],
                entry_type=LedgerEntry.DEBIT if line["debit"] > 0 else LedgerEntry.CREDIT,
                amount=line["debit"] or line["credit"],
            )
            for line in normalized
        ]
    )
    return journal_entry
