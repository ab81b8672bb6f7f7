# payments/tests/test_lock_timeout.py

from __future__ import annotations

import threading
from unittest import skipUnless

from django.db import OperationalError, connection, transaction
from django.test import SimpleTestCase, TransactionTestCase

from accounting.models.journal import JournalEntry
from accounting.services.chart_seed import seed_retail_chart
from customers.models import Customer
from payments.models import PaymentAllocation
from payments.services.allocation_orchestrator import (
    LOCK_NOT_AVAILABLE,
    is_lock_not_available,
)
from payments.services.exceptions import AllocationInProgress
from sales.models import Sale
from sales.services.customer_payment_service import (
    allocate_customer_payment,
    build_customer_orchestrator,
)
from sales.services.obligations import CustomerOrderRepository
from sales.services.sale_service import record_credit_sale

CONNECTION_FAILURE = "08006"


class _DriverError(Exception):
    def __init__(self, sqlstate):
        super().__init__(f"driver error {sqlstate}")
        self.sqlstate = sqlstate


def _operational_error(sqlstate=None) -> OperationalError:
    exc = OperationalError("database error")
    if sqlstate is not None:
        exc.__cause__ = _DriverError(sqlstate)
    return exc


class LockErrorClassificationTests(SimpleTestCase):
    """
    Only an expired lock wait counts as a concurrent payment in progress.
    """

    def test_lock_not_available(self):
        self.assertTrue(is_lock_not_available(_operational_error(LOCK_NOT_AVAILABLE)))

    def test_other_operational_failures(self):
        self.assertFalse(is_lock_not_available(_operational_error(CONNECTION_FAILURE)))
        self.assertFalse(is_lock_not_available(_operational_error()))


class BrokenConnectionRepository(CustomerOrderRepository):
    def lock_outstanding_for_payer(self, payer_id):
        raise _operational_error(CONNECTION_FAILURE)


@skipUnless(connection.vendor == "postgresql", "lock_timeout is PostgreSQL-only")
class LockTimeoutTests(TransactionTestCase):
    """
    A payment that cannot get the payer's rows within LOCK_TIMEOUT_MS.

    GUARANTEES:
    - The caller gets AllocationInProgress instead of waiting forever
    - Nothing is settled, posted or recorded
    - Other database failures are not reported as a lock conflict
    """

    def setUp(self):
        seed_retail_chart()
        self.customer = Customer.objects.create(name="Locked Out Ltd")
        self.sale = record_credit_sale(customer=self.customer, total_amount=1000)

    def _hold_customer_rows(self, locked, release):
        try:
            with transaction.atomic():
                list(Sale.objects.select_for_update().filter(customer=self.customer))
                locked.set()
                release.wait(timeout=10)
        finally:
            connection.close()

    def test_blocked_payment_times_out(self):
        locked, release = threading.Event(), threading.Event()
        holder = threading.Thread(target=self._hold_customer_rows, args=(locked, release))
        holder.start()

        try:
            self.assertTrue(locked.wait(timeout=5))

            with self.assertRaises(AllocationInProgress):
                allocate_customer_payment(
                    customer_id=self.customer.id,
                    payment_amount=500,
                    orchestrator=build_customer_orchestrator(lock_timeout_ms=50),
                )
        finally:
            release.set()
            holder.join(timeout=10)

        self.sale.refresh_from_db()
        self.assertEqual(self.sale.paid_amount, 0)
        self.assertEqual(PaymentAllocation.objects.count(), 0)
        self.assertEqual(JournalEntry.objects.of_type("PAYMENT_ALLOCATION").count(), 0)

    def test_other_failures_propagate(self):
        orchestrator = build_customer_orchestrator(
            repository=BrokenConnectionRepository(),
            lock_timeout_ms=50,
        )

        with self.assertRaises(OperationalError):
            allocate_customer_payment(
                customer_id=self.customer.id,
                payment_amount=500,
                orchestrator=orchestrator,
            )

        self.assertEqual(PaymentAllocation.objects.count(), 0)
