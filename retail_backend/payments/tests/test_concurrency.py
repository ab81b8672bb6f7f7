# payments/tests/test_concurrency.py

from __future__ import annotations

import threading
from datetime import timedelta

from django.db import connection
from django.test import TransactionTestCase, skipUnlessDBFeature
from django.utils import timezone

from accounting.services.chart_seed import seed_retail_chart
from customers.models import Customer
from payments.models import PaymentAllocation
from sales.models import Sale
from sales.services.customer_payment_service import allocate_customer_payment
from sales.services.sale_service import record_credit_sale


@skipUnlessDBFeature("has_select_for_update")
class ConcurrentAllocationTests(TransactionTestCase):
    """
    Two payments for the same customer submitted at the same time.

    The row lock serializes them: the second run must see the first run's
    committed paid amounts, so the same debt is never settled twice.
    """

    def setUp(self):
        seed_retail_chart()
        self.customer = Customer.objects.create(name="Concurrent Co")

        now = timezone.now()
        self.sales = [
            record_credit_sale(
                customer=self.customer,
                total_amount=1000,
                created_at=now - timedelta(days=3 - i),
            )
            for i in range(3)
        ]

    def _run_concurrently(self, amounts):
        barrier = threading.Barrier(len(amounts))
        results, errors = [], []

        def worker(amount):
            try:
                barrier.wait()
                results.append(
                    allocate_customer_payment(
                        customer_id=self.customer.id,
                        payment_amount=amount,
                    )
                )
            except Exception as exc:  # surfaced through `errors`
                errors.append(exc)
            finally:
                connection.close()

        threads = [threading.Thread(target=worker, args=(a,)) for a in amounts]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=30)

        return results, errors

    def test_overlapping_payments_never_double_settle(self):
        results, errors = self._run_concurrently([1500, 1500])

        self.assertEqual(errors, [])
        self.assertEqual(len(results), 2)

        paid = {str(s.id): s.paid_amount for s in Sale.objects.filter(customer=self.customer)}
        self.assertEqual(sum(paid.values()), 3000)
        for sale in Sale.objects.filter(customer=self.customer):
            self.assertLessEqual(sale.paid_amount, sale.total_amount)

        allocated = {}
        for result in results:
            self.assertEqual(result.total_allocated + result.excess_payment, 1500)
            for outcome in result.outcomes:
                allocated[outcome.obligation_id] = (
                    allocated.get(outcome.obligation_id, 0) + outcome.amount_allocated
                )
        self.assertEqual(allocated, paid)

        # Whichever run committed last saw nothing left
        self.assertEqual(sorted(r.remaining_balance for r in results), [0, 1500])

    def test_overpaying_concurrently_reports_excess_once(self):
        results, errors = self._run_concurrently([2000, 2000])

        self.assertEqual(errors, [])
        self.assertEqual(sum(r.total_allocated for r in results), 3000)
        self.assertEqual(sum(r.excess_payment for r in results), 1000)
        self.assertEqual(PaymentAllocation.objects.count(), 2)
