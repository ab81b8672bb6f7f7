# sales/services/sale_service.py

import logging

from django.db import transaction

from accounting.services.posting import (
    post_credit_sale_reversal_to_ledger,
    post_credit_sale_to_ledger,
)
from customers.models import Customer
from sales.models import Sale

logger = logging.getLogger(__name__)


class SaleNotCancellable(Exception):
    pass


@transaction.atomic
def record_credit_sale(
    *,
    customer: Customer,
    total_amount: int,
    user=None,
    invoice_no: str = "",
    created_at=None,
) -> Sale:
    """
    CORE SALES DOMAIN SERVICE

    Records a completed sale on the customer's account and posts
    Dr Accounts Receivable / Cr Sales Revenue in the same transaction.

    GUARANTEES:
    - Fully atomic: no sale without its ledger entry
    - Idempotent ledger posting (reference = sale id)
    """
    if isinstance(total_amount, bool) or not isinstance(total_amount, int) or total_amount <= 0:
        raise ValueError("total_amount must be a positive integer in minor units")

    sale_kwargs = {
        "customer": customer,
        "user": user if getattr(user, "is_authenticated", False) else None,
        "invoice_no": (invoice_no or "").strip(),
        "total_amount": total_amount,
        "status": Sale.STATUS_COMPLETED,
    }
    if created_at is not None:
        sale_kwargs["created_at"] = created_at

    sale = Sale.objects.create(**sale_kwargs)

    post_credit_sale_to_ledger(
        sale_id=sale.id,
        invoice_no=sale.invoice_no,
        amount_minor=sale.total_amount,
        posted_at=sale.completed_at,
    )

    logger.info(
        "Credit sale recorded",
        extra={
            "sale_id": str(sale.id),
            "invoice_no": sale.invoice_no,
            "customer_id": str(customer.pk),
            "total_amount": sale.total_amount,
        },
    )
    return sale


@transaction.atomic
def cancel_sale(*, sale_id) -> Sale:
    sale = Sale.objects.select_for_update().get(pk=sale_id)

    if sale.status == Sale.STATUS_CANCELLED:
        return sale
    if sale.paid_amount > 0:
        raise SaleNotCancellable(
            f"{sale.invoice_no} has payments applied and cannot be cancelled."
        )

    sale.status = Sale.STATUS_CANCELLED
    sale.save(update_fields=["status"])

    post_credit_sale_reversal_to_ledger(
        sale_id=sale.id,
        invoice_no=sale.invoice_no,
        amount_minor=sale.total_amount,
    )

    logger.info(
        "Sale cancelled",
        extra={"sale_id": str(sale.id), "invoice_no": sale.invoice_no},
    )
    return sale
