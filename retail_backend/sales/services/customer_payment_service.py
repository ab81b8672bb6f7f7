# sales/services/customer_payment_service.py

"""
======================================================
PATH: sales/services/customer_payment_service.py
======================================================
CUSTOMER PAYMENT SERVICE

Customer pays down their unpaid orders (lump sum or one order directly).

Ledger:
- Debit:  payment source (Cash / Bank / explicit asset account)
- Credit: Accounts Receivable

All allocation semantics live in payments.services.allocation_orchestrator.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError

from accounting.services.account_resolver import accounts_receivable_code
from audit.services.audit_service import AuditRecorder
from customers.models import Customer
from payments.domain import DIRECTION_CUSTOMER, AllocationResult, PaymentAllocationRequest
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
from sales.services.obligations import CustomerOrderRepository

logger = logging.getLogger("payments")

CUSTOMER_PAYMENT_EVENT = "customer.payment.allocated"


def build_customer_orchestrator(**overrides) -> AllocationOrchestrator:
    options = {
        "repository": CustomerOrderRepository(),
        "ledger_poster": JournalLedgerPoster(),
        "audit_recorder": AuditRecorder(DIRECTION_CUSTOMER),
        "credit_tracker": ModelSettlementTracker(Customer),
        "direction": DIRECTION_CUSTOMER,
        "event_type": CUSTOMER_PAYMENT_EVENT,
        "ledger_memo": "Customer Payment",
    }
    options.update(overrides)
    return AllocationOrchestrator(**options)


def get_customer(customer_id) -> Customer:
    try:
        return Customer.objects.get(pk=customer_id)
    except (Customer.DoesNotExist, ValidationError, ValueError) as exc:
        logger.error("Customer not found during payment", extra={"customer_id": str(customer_id)})
        raise PayerNotFound(f"Customer {customer_id} not found") from exc


def _ledger_accounts(*, payment_method, payment_account_code) -> tuple[LedgerAccounts, str]:
    source_code = resolve_payment_source(
        payment_method=payment_method,
        payment_account_code=payment_account_code,
    )
    receivable_code = resolve_control_account(accounts_receivable_code)
    return (
        LedgerAccounts(debit_account_code=source_code, credit_account_code=receivable_code),
        source_code,
    )


def allocate_customer_payment(
    *,
    customer_id,
    payment_amount: int,
    order_ids=None,
    payment_method: str | None = None,
    payment_account_code: str | None = None,
    reference: str = "",
    created_by=None,
    orchestrator: AllocationOrchestrator | None = None,
) -> AllocationResult:
    """
    Distribute one lump payment across the customer's unpaid orders,
    oldest first (restricted to order_ids when given).
    """
    customer = get_customer(customer_id)
    payment_amount = validate_payment_amount(payment_amount)
    payment_method = (payment_method or allocation_settings()["DEFAULT_PAYMENT_METHOD"]).strip().lower()

    logger.info(
        "Initiating customer payment allocation",
        extra={
            "customer_id": str(customer.pk),
            "payment_amount": payment_amount,
            "payment_method": payment_method,
            "selected_orders": len(order_ids or ()),
        },
    )

    ledger_accounts, source_code = _ledger_accounts(
        payment_method=payment_method,
        payment_account_code=payment_account_code,
    )

    orchestrator = orchestrator or build_customer_orchestrator()
    return orchestrator.allocate(
        PaymentAllocationRequest(
            payer_id=str(customer.pk),
            payment_amount=payment_amount,
            selected_obligation_ids=order_ids or None,
        ),
        ledger_accounts=ledger_accounts,
        payment_method=payment_method,
        payment_account_code=source_code,
        reference=reference,
        created_by=created_by,
    )


def pay_customer_order(
    *,
    sale_id,
    payment_amount: int | None = None,
    payment_method: str | None = None,
    payment_account_code: str | None = None,
    reference: str = "",
    created_by=None,
    orchestrator: AllocationOrchestrator | None = None,
) -> AllocationResult:
    """
    Pay one order directly; defaults to its full outstanding amount.
    """
    if payment_amount is not None:
        payment_amount = validate_payment_amount(payment_amount)

    payment_method = (payment_method or allocation_settings()["DEFAULT_PAYMENT_METHOD"]).strip().lower()

    ledger_accounts, source_code = _ledger_accounts(
        payment_method=payment_method,
        payment_account_code=payment_account_code,
    )

    orchestrator = orchestrator or build_customer_orchestrator()
    return orchestrator.pay_single(
        sale_id,
        payment_amount=payment_amount,
        ledger_accounts=ledger_accounts,
        payment_method=payment_method,
        payment_account_code=source_code,
        reference=reference,
        created_by=created_by,
    )


def get_customer_outstanding(customer_id) -> dict:
    customer = get_customer(customer_id)
    obligations = CustomerOrderRepository().list_outstanding_for_payer(customer.pk)
    return {
        "payer_id": str(customer.pk),
        "payer_name": customer.name,
        "obligations": obligations,
        "remaining_balance": sum(o.outstanding_amount for o in obligations),
    }
