# purchases/services/receiving_service.py

"""
======================================================
PATH: purchases/services/receiving_service.py
======================================================
PURCHASE RECEIVING SERVICE

Receiving turns a DRAFT invoice into a payable obligation:
1) Lock invoice
2) Validate status + total
3) Post ledger FIRST (Dr Inventory / Cr Accounts Payable, idempotent)
4) Mark invoice RECEIVED

Idempotency rule:
- Receiving an already RECEIVED invoice returns its state unchanged.
- If the ledger posting already exists (IdempotencyError), we load the
  existing JournalEntry by reference and continue.
"""

from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from accounting.services.exceptions import (
    AccountResolutionError,
    IdempotencyError,
    JournalEntryCreationError,
)
from accounting.services.journal_entry_service import get_journal_entry_by_reference
from accounting.services.posting import (
    PURCHASE_RECEIPT_REFERENCE_TYPE,
    post_purchase_receipt_to_ledger,
)
from purchases.models import PurchaseInvoice

logger = logging.getLogger(__name__)


class PurchaseReceivingError(ValueError):
    pass


def _lock_invoice(invoice_id) -> PurchaseInvoice:
    try:
        return PurchaseInvoice.objects.select_for_update().get(id=invoice_id)
    except PurchaseInvoice.DoesNotExist as exc:
        raise PurchaseReceivingError("Purchase invoice not found") from exc


def _state(invoice: PurchaseInvoice, journal_entry=None) -> dict:
    return {
        "invoice_id": str(invoice.id),
        "status": invoice.status,
        "total_amount": invoice.total_amount,
        "journal_entry_id": getattr(journal_entry, "id", None),
    }


@transaction.atomic
def receive_purchase_invoice(*, invoice_id, user=None) -> dict:
    invoice = _lock_invoice(invoice_id)

    if invoice.status == PurchaseInvoice.STATUS_RECEIVED:
        je = get_journal_entry_by_reference(PURCHASE_RECEIPT_REFERENCE_TYPE, invoice.id)
        return _state(invoice, je)

    if invoice.status != PurchaseInvoice.STATUS_DRAFT:
        raise PurchaseReceivingError("Only DRAFT invoices can be received")

    if int(invoice.total_amount) <= 0:
        raise PurchaseReceivingError("Invoice total must be > 0")

    try:
        je = post_purchase_receipt_to_ledger(
            invoice_id=invoice.id,
            invoice_number=invoice.invoice_number,
            amount_minor=int(invoice.total_amount),
        )
    except IdempotencyError:
        je = get_journal_entry_by_reference(PURCHASE_RECEIPT_REFERENCE_TYPE, invoice.id)
    except (AccountResolutionError, JournalEntryCreationError) as exc:
        logger.error(
            "Purchase receipt posting failed",
            extra={"invoice_id": str(invoice.id), "error": str(exc)},
        )
        raise PurchaseReceivingError(str(exc)) from exc

    invoice.status = PurchaseInvoice.STATUS_RECEIVED
    invoice.received_at = timezone.now()
    invoice.received_by = user if getattr(user, "is_authenticated", False) else None
    invoice.save(update_fields=["status", "received_at", "received_by"])

    logger.info(
        "Purchase invoice received",
        extra={
            "invoice_id": str(invoice.id),
            "invoice_number": invoice.invoice_number,
            "total_amount": invoice.total_amount,
        },
    )
    return _state(invoice, je)


@transaction.atomic
def cancel_purchase_invoice(*, invoice_id) -> dict:
    invoice = _lock_invoice(invoice_id)

    if invoice.status == PurchaseInvoice.STATUS_CANCELLED:
        return _state(invoice)
    if invoice.status != PurchaseInvoice.STATUS_DRAFT:
        raise PurchaseReceivingError("Only DRAFT invoices can be cancelled")

    invoice.status = PurchaseInvoice.STATUS_CANCELLED
    invoice.save(update_fields=["status"])
    return _state(invoice)
