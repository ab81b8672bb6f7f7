# sales/tests/test_sale_service.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.services.balance_service import get_account_balance
from accounting.services.chart_seed import seed_retail_chart
from customers.models import Customer
from payments.domain import STATUS_PARTIAL, STATUS_PENDING
from sales.models import Sale
from sales.services.customer_payment_service import allocate_customer_payment
from sales.services.sale_service import SaleNotCancellable, cancel_sale, record_credit_sale


class CreditSaleTests(TestCase):
    """
    Credit sales create the customer's obligations.

    GUARANTEES:
    - Every credit sale is posted (Dr Accounts Receivable / Cr Sales Revenue)
    - total_amount never changes; paid_amount never decreases
    - Paid sales cannot be cancelled
    """

    def setUp(self):
        self.chart, _, _ = seed_retail_chart()
        self.customer = Customer.objects.create(name="Chidi Mart")
        self.receivable = Account.objects.get(chart=self.chart, code="1100")
        self.revenue = Account.objects.get(chart=self.chart, code="4000")

    def test_record_credit_sale_posts_receivable(self):
        sale = record_credit_sale(customer=self.customer, total_amount=2500)

        self.assertTrue(sale.invoice_no.startswith("INV"))
        self.assertEqual(sale.status, Sale.STATUS_COMPLETED)
        self.assertEqual(sale.payment_status, STATUS_PENDING)
        self.assertIsNotNone(sale.completed_at)

        self.assertTrue(JournalEntry.objects.filter(reference=f"SALE:{sale.id}").exists())
        self.assertEqual(get_account_balance(self.receivable), Decimal("25.00"))
        self.assertEqual(get_account_balance(self.revenue), Decimal("25.00"))

    def test_total_must_be_positive_integer(self):
        for bad in (0, -10, Decimal("10.00"), "10"):
            with self.subTest(total=bad):
                with self.assertRaises(ValueError):
                    record_credit_sale(customer=self.customer, total_amount=bad)
        self.assertFalse(Sale.objects.exists())

    def test_total_amount_is_immutable(self):
        sale = record_credit_sale(customer=self.customer, total_amount=1000)

        sale.total_amount = 900
        with self.assertRaises(ValidationError):
            sale.save()

    def test_paid_amount_never_decreases_or_exceeds_total(self):
        sale = record_credit_sale(customer=self.customer, total_amount=1000)
        allocate_customer_payment(customer_id=self.customer.id, payment_amount=400)
        sale.refresh_from_db()
        self.assertEqual(sale.payment_status, STATUS_PARTIAL)

        sale.paid_amount = 100
        with self.assertRaises(ValidationError):
            sale.save(update_fields=["paid_amount"])

        sale.refresh_from_db()
        sale.paid_amount = 1001
        with self.assertRaises(ValidationError):
            sale.save(update_fields=["paid_amount"])

    def test_cancel_unpaid_sale_reverses_posting(self):
        sale = record_credit_sale(customer=self.customer, total_amount=700)

        cancelled = cancel_sale(sale_id=sale.id)

        self.assertEqual(cancelled.status, Sale.STATUS_CANCELLED)
        self.assertTrue(
            JournalEntry.objects.filter(reference=f"SALE_CANCELLATION:{sale.id}").exists()
        )
        self.assertEqual(get_account_balance(self.receivable), Decimal("0.00"))

        # Cancelling twice is a no-op
        cancel_sale(sale_id=sale.id)
        self.assertEqual(
            JournalEntry.objects.of_type("SALE_CANCELLATION").count(), 1
        )

    def test_paid_sale_cannot_be_cancelled(self):
        sale = record_credit_sale(customer=self.customer, total_amount=700)
        allocate_customer_payment(customer_id=self.customer.id, payment_amount=100)

        with self.assertRaises(SaleNotCancellable):
            cancel_sale(sale_id=sale.id)

    def test_cancelled_sale_cannot_be_reopened(self):
        sale = record_credit_sale(customer=self.customer, total_amount=700)
        cancel_sale(sale_id=sale.id)
        sale.refresh_from_db()

        sale.status = Sale.STATUS_COMPLETED
        with self.assertRaises(ValidationError):
            sale.save(update_fields=["status"])
