# customers/tests/test_customers.py

from django.core.exceptions import ValidationError
from django.test import TestCase

from customers.models import Customer
from payments.services.credit_tracking import ModelSettlementTracker
from payments.services.exceptions import PayerNotFound


class CustomerSettlementTrackingTests(TestCase):
    def setUp(self):
        self.customer = Customer.objects.create(name="  Eko Pharmacy  ")
        self.tracker = ModelSettlementTracker(Customer)

    def test_name_is_trimmed_and_required(self):
        self.assertEqual(self.customer.name, "Eko Pharmacy")
        with self.assertRaises(ValidationError):
            Customer.objects.create(name="   ")

    def test_record_accumulates(self):
        self.tracker.record(self.customer.pk, 250)
        self.tracker.record(self.customer.pk, 100)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_settled, 350)
        self.assertEqual(self.customer.last_settlement_amount, 100)
        self.assertIsNotNone(self.customer.last_settlement_at)

    def test_zero_settlement_is_ignored(self):
        self.tracker.record(self.customer.pk, 0)

        self.customer.refresh_from_db()
        self.assertIsNone(self.customer.last_settlement_at)

    def test_unknown_payer(self):
        with self.assertRaises(PayerNotFound):
            self.tracker.record("00000000-0000-0000-0000-000000000000", 10)
