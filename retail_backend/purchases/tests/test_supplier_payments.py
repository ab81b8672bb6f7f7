# purchases/tests/test_supplier_payments.py

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APIClient

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.services.balance_service import get_account_balance
from accounting.services.chart_seed import seed_retail_chart
from audit.models import AuditEvent
from payments.domain import STATUS_PAID, STATUS_PARTIAL, STATUS_PENDING
from payments.services.exceptions import (
    InvalidAmount,
    NoOutstandingObligations,
    ObligationNotFound,
    PayerNotFound,
)
from purchases.models import PurchaseInvoice, Supplier
from purchases.services.payment_service import (
    SUPPLIER_PAYMENT_EVENT,
    allocate_supplier_payment,
    get_supplier_outstanding,
    pay_supplier_invoice,
)
from purchases.services.receiving_service import (
    PurchaseReceivingError,
    cancel_purchase_invoice,
    receive_purchase_invoice,
)

User = get_user_model()


def _invoice(supplier, number, total, days_ago):
    return PurchaseInvoice.objects.create(
        supplier=supplier,
        invoice_number=number,
        total_amount=total,
        created_at=timezone.now() - timedelta(days=days_ago),
    )


class PurchaseReceivingTests(TestCase):
    """
    Receiving turns a DRAFT invoice into a payable obligation.
    """

    def setUp(self):
        self.chart, _, _ = seed_retail_chart()
        self.supplier = Supplier.objects.create(name="Prime Distributors")
        self.payable = Account.objects.get(chart=self.chart, code="2000")
        self.inventory = Account.objects.get(chart=self.chart, code="1200")

    def test_receive_posts_payable_once(self):
        invoice = _invoice(self.supplier, "P-1", 4000, 1)

        state = receive_purchase_invoice(invoice_id=invoice.id)
        again = receive_purchase_invoice(invoice_id=invoice.id)

        invoice.refresh_from_db()
        self.assertEqual(invoice.status, PurchaseInvoice.STATUS_RECEIVED)
        self.assertIsNotNone(invoice.received_at)
        self.assertEqual(state["journal_entry_id"], again["journal_entry_id"])
        self.assertEqual(
            JournalEntry.objects.filter(reference=f"PURCHASE_RECEIPT:{invoice.id}").count(), 1
        )
        self.assertEqual(get_account_balance(self.payable), Decimal("40.00"))
        self.assertEqual(get_account_balance(self.inventory), Decimal("40.00"))

    def test_cancel_only_from_draft(self):
        draft = _invoice(self.supplier, "P-2", 100, 1)
        received = _invoice(self.supplier, "P-3", 100, 1)
        receive_purchase_invoice(invoice_id=received.id)

        self.assertEqual(
            cancel_purchase_invoice(invoice_id=draft.id)["status"],
            PurchaseInvoice.STATUS_CANCELLED,
        )
        with self.assertRaises(PurchaseReceivingError):
            cancel_purchase_invoice(invoice_id=received.id)
        with self.assertRaises(PurchaseReceivingError):
            receive_purchase_invoice(invoice_id=draft.id)

    def test_unknown_invoice(self):
        with self.assertRaises(PurchaseReceivingError):
            receive_purchase_invoice(invoice_id="00000000-0000-0000-0000-000000000000")


class SupplierPaymentAllocationTests(TestCase):
    """
    Business pays a supplier across its received invoices.

    GUARANTEES:
    - Only RECEIVED invoices are debt
    - Oldest invoice settled first
    - Dr Accounts Payable / Cr payment source
    """

    def setUp(self):
        self.chart, _, _ = seed_retail_chart()
        self.user = User.objects.create_user(username="buyer", password="pass")
        self.supplier = Supplier.objects.create(name="Lagos Wholesale")

        self.oldest = _invoice(self.supplier, "S-1", 1000, 3)
        self.middle = _invoice(self.supplier, "S-2", 500, 2)
        self.draft = _invoice(self.supplier, "S-3", 9000, 4)
        for invoice in (self.oldest, self.middle):
            receive_purchase_invoice(invoice_id=invoice.id)

        self.cash = Account.objects.get(chart=self.chart, code="1000")
        self.payable = Account.objects.get(chart=self.chart, code="2000")

    def test_payment_settles_received_invoices_oldest_first(self):
        result = allocate_supplier_payment(
            supplier_id=self.supplier.id,
            payment_amount=1200,
            created_by=self.user,
        )

        for invoice in (self.oldest, self.middle, self.draft):
            invoice.refresh_from_db()

        self.assertEqual(self.oldest.payment_status, STATUS_PAID)
        self.assertEqual(self.middle.paid_amount, 200)
        self.assertEqual(self.middle.payment_status, STATUS_PARTIAL)
        self.assertEqual(self.draft.paid_amount, 0)
        self.assertEqual(self.draft.payment_status, STATUS_PENDING)

        self.assertEqual(
            [o.reference for o in result.outcomes],
            ["S-1", "S-2"],
        )
        self.assertEqual(result.remaining_balance, 300)

        # 15.00 received on credit, 12.00 paid out of cash
        self.assertEqual(get_account_balance(self.payable), Decimal("3.00"))
        self.assertEqual(get_account_balance(self.cash), Decimal("-12.00"))

        event = AuditEvent.objects.get()
        self.assertEqual(event.event_type, SUPPLIER_PAYMENT_EVENT)
        self.assertEqual(event.entity_type, "supplier")

        self.supplier.refresh_from_db()
        self.assertEqual(self.supplier.total_settled, 1200)

    def test_selected_invoice_only(self):
        result = allocate_supplier_payment(
            supplier_id=self.supplier.id,
            payment_amount=100,
            invoice_ids=[self.middle.id],
        )

        self.oldest.refresh_from_db()
        self.assertEqual(self.oldest.paid_amount, 0)
        self.assertEqual([o.obligation_id for o in result.outcomes], [str(self.middle.id)])

    def test_draft_invoice_is_not_payable(self):
        with self.assertRaises(ObligationNotFound):
            pay_supplier_invoice(invoice_id=self.draft.id)

    def test_invalid_amount_on_paid_invoice(self):
        pay_supplier_invoice(invoice_id=self.middle.id)

        with self.assertRaises(InvalidAmount):
            pay_supplier_invoice(invoice_id=self.middle.id, payment_amount=0)

    def test_pay_single_invoice(self):
        result = pay_supplier_invoice(invoice_id=self.middle.id, payment_method="bank")

        self.middle.refresh_from_db()
        self.assertEqual(self.middle.payment_status, STATUS_PAID)
        self.assertEqual(result.total_allocated, 500)
        self.assertEqual(result.remaining_balance, 1000)

    def test_supplier_without_debt(self):
        other = Supplier.objects.create(name="Quiet Supplier")

        with self.assertRaises(NoOutstandingObligations):
            allocate_supplier_payment(supplier_id=other.id, payment_amount=100)

    def test_unknown_supplier(self):
        with self.assertRaises(PayerNotFound):
            allocate_supplier_payment(supplier_id="bogus", payment_amount=100)

    def test_outstanding_summary(self):
        summary = get_supplier_outstanding(self.supplier.id)

        self.assertEqual(summary["remaining_balance"], 1500)
        self.assertEqual([o.reference for o in summary["obligations"]], ["S-1", "S-2"])


class PurchaseInvoiceAPITests(TestCase):
    def setUp(self):
        seed_retail_chart()
        self.client = APIClient()
        self.user = User.objects.create_user(username="storekeeper", password="pass")
        self.client.force_authenticate(self.user)

        self.supplier = Supplier.objects.create(name="Delta Supplies")

    def test_create_receive_and_list_invoice(self):
        response = self.client.post(
            reverse("purchase-invoices"),
            {
                "supplier_id": str(self.supplier.id),
                "invoice_number": " DS-001 ",
                "total_amount": 2500,
            },
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        invoice_id = response.json()["id"]
        self.assertEqual(response.json()["invoice_number"], "DS-001")
        self.assertEqual(response.json()["status"], PurchaseInvoice.STATUS_DRAFT)

        response = self.client.post(reverse("purchase-invoice-receive", args=[invoice_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["status"], PurchaseInvoice.STATUS_RECEIVED)

        response = self.client.get(reverse("purchase-invoices"), {"supplier": str(self.supplier.id)})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json()["results"][0]["outstanding_amount"], 2500)

    def test_duplicate_invoice_number_rejected(self):
        payload = {
            "supplier_id": str(self.supplier.id),
            "invoice_number": "DS-002",
            "total_amount": 100,
        }
        self.client.post(reverse("purchase-invoices"), payload, format="json")
        response = self.client.post(reverse("purchase-invoices"), payload, format="json")

        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(PurchaseInvoice.objects.count(), 1)

    def test_create_supplier(self):
        response = self.client.post(
            reverse("purchase-suppliers"),
            {"name": "New Vendor", "phone": "0800"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.json()["total_settled"], 0)
