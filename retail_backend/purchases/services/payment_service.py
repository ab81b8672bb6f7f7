# purchases/services/payment_service.py

"""
SUPPLIER PAYMENT SERVICE

Business pays a supplier: one lump payment spread across the supplier's
received invoices, or one invoice paid directly.

Ledger:
- Debit:  Accounts Payable
- Credit: payment source (Cash / Bank / explicit asset account)
"""

import logging

from django.core.exceptions import ValidationError

from accounting.services.account_resolver import accounts_payable_code
from audit.services.audit_service import AuditRecorder
from payments.domain import DIRECTION_SUPPLIER, AllocationResult, PaymentAllocationRequest
from payments.services.allocation_calculator import validate_payment_amount
from payments.services.allocation_orchestrator import (
    AllocationOrchestrator,
    allocation_settings,
)
from payments.services.credit_tracking import ModelSettlementTracker
from payments.services.exceptions import PayerNotFound
from payments.services.ledger import (
    JournalLedgerPoster,
    LedgerAccounts,
    resolve_control_account,
    resolve_payment_source,
)
from purchases.models import Supplier
from purchases.services.obligations import SupplierInvoiceRepository

logger = logging.getLogger("payments")

SUPPLIER_PAYMENT_EVENT = "supplier.payment.allocated"


def build_supplier_orchestrator(**overrides) -> AllocationOrchestrator:
    options = {
        "repository": SupplierInvoiceRepository(),
        "ledger_poster": JournalLedgerPoster(),
        "audit_recorder": AuditRecorder(DIRECTION_SUPPLIER),
        "credit_tracker": ModelSettlementTracker(Supplier),
        "direction": DIRECTION_SUPPLIER,
        "event_type": SUPPLIER_PAYMENT_EVENT,
        "ledger_memo": "Supplier Payment",
    }
    options.update(overrides)
    return AllocationOrchestrator(**options)


def get_supplier(supplier_id) -> Supplier:
    try:
        return Supplier.objects.get(id=supplier_id)
    except (Supplier.DoesNotExist, ValidationError, ValueError) as exc:
        logger.error(
            "Supplier not found during payment",
            extra={"supplier_id": str(supplier_id)},
        )
        raise PayerNotFound(f"Supplier {supplier_id} not found") from exc


def _ledger_accounts(*, payment_method, payment_account_code) -> tuple[LedgerAccounts, str]:
    source_code = resolve_payment_source(
        payment_method=payment_method,
        payment_account_code=payment_account_code,
    )
    payable_code = resolve_control_account(accounts_payable_code)
    return (
        LedgerAccounts(debit_account_code=payable_code, credit_account_code=source_code),
        source_code,
    )


def allocate_supplier_payment(
    *,
    supplier_id,
    payment_amount: int,
    invoice_ids=None,
    payment_method: str | None = None,
    payment_account_code: str | None = None,
    reference: str = "",
    created_by=None,
    orchestrator: AllocationOrchestrator | None = None,
) -> AllocationResult:
    supplier = get_supplier(supplier_id)
    payment_amount = validate_payment_amount(payment_amount)
    payment_method = (payment_method or allocation_settings()["DEFAULT_PAYMENT_METHOD"]).strip().lower()

    logger.info(
        "Initiating supplier payment",
        extra={
            "supplier_id": str(supplier.id),
            "payment_amount": payment_amount,
            "payment_method": payment_method,
            "selected_invoices": len(invoice_ids or ()),
        },
    )

    ledger_accounts, source_code = _ledger_accounts(
        payment_method=payment_method,
        payment_account_code=payment_account_code,
    )

    orchestrator = orchestrator or build_supplier_orchestrator()
    return orchestrator.allocate(
        PaymentAllocationRequest(
            payer_id=str(supplier.id),
            payment_amount=payment_amount,
            selected_obligation_ids=invoice_ids or None,
        ),
        ledger_accounts=ledger_accounts,
        payment_method=payment_method,
        payment_account_code=source_code,
        reference=reference,
        created_by=created_by,
    )


def pay_supplier_invoice(
    *,
    invoice_id,
    payment_amount: int | None = None,
    payment_method: str | None = None,
    payment_account_code: str | None = None,
    reference: str = "",
    created_by=None,
    orchestrator: AllocationOrchestrator | None = None,
) -> AllocationResult:
    if payment_amount is not None:
        payment_amount = validate_payment_amount(payment_amount)

    payment_method = (payment_method or allocation_settings()["DEFAULT_PAYMENT_METHOD"]).strip().lower()

    ledger_accounts, source_code = _ledger_accounts(
        payment_method=payment_method,
        payment_account_code=payment_account_code,
    )

    orchestrator = orchestrator or build_supplier_orchestrator()
    return orchestrator.pay_single(
        invoice_id,
        payment_amount=payment_amount,
        ledger_accounts=ledger_accounts,
        payment_method=payment_method,
        payment_account_code=source_code,
        reference=reference,
        created_by=created_by,
    )


def get_supplier_outstanding(supplier_id) -> dict:
    supplier = get_supplier(supplier_id)
    obligations = SupplierInvoiceRepository().list_outstanding_for_payer(supplier.id)
    return {
        "payer_id": str(supplier.id),
        "payer_name": supplier.name,
        "obligations": obligations,
        "remaining_balance": sum(o.outstanding_amount for o in obligations),
    }
