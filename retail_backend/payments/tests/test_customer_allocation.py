# payments/tests/test_customer_allocation.py

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.test import TestCase, override_settings
from django.utils import timezone

from accounting.models.account import Account
from accounting.models.chart import ChartOfAccounts
from accounting.models.journal import JournalEntry
from accounting.models.ledger import LedgerEntry
from accounting.services.account_resolver import get_active_chart
from accounting.services.balance_service import get_account_balance
from accounting.services.chart_seed import seed_retail_chart
from audit.models import AuditEvent
from customers.models import Customer
from payments.domain import STATUS_PAID, STATUS_PARTIAL, STATUS_PENDING
from payments.models import PaymentAllocation
from payments.services.allocation_orchestrator import AllocationOrchestrator
from payments.services.exceptions import (
    ExcessPaymentNotAllowed,
    InvalidAmount,
    InvalidPaymentAccount,
    LedgerPostingFailed,
    NoOutstandingObligations,
    ObligationNotFound,
    ObligationNotPayable,
    OverAllocation,
    PayerNotFound,
)
from payments.services.ledger import JournalLedgerPoster
from sales.models import Sale
from sales.services.customer_payment_service import (
    CUSTOMER_PAYMENT_EVENT,
    allocate_customer_payment,
    build_customer_orchestrator,
    get_customer_outstanding,
    pay_customer_order,
)
from sales.services.obligations import CustomerOrderRepository
from sales.services.sale_service import cancel_sale, record_credit_sale

User = get_user_model()


class FailingLedgerPoster(JournalLedgerPoster):
    def post(self, **kwargs):
        raise LedgerPostingFailed("ledger unavailable")


class FailingAuditRecorder:
    def log(self, event_type, entity_id, payload, *, actor=None):
        raise RuntimeError("audit store unavailable")


class FailingCreditTracker:
    def record(self, payer_id, amount_settled):
        raise RuntimeError("credit service down")


def _payment_journals():
    return JournalEntry.objects.of_type("PAYMENT_ALLOCATION")


class CustomerPaymentAllocationTests(TestCase):
    """
    Customer lump-sum payments across unpaid orders.

    GUARANTEES:
    - Oldest order settled first
    - One ledger movement per run (Dr Cash / Cr Accounts Receivable)
    - All-or-nothing: any transactional failure leaves no trace
    - Credit tracking failures never undo a settlement
    """

    def setUp(self):
        seed_retail_chart()

        self.cashier = User.objects.create_user(username="cashier", password="pass")
        self.customer = Customer.objects.create(name="Ada Stores")

        now = timezone.now()
        self.older = record_credit_sale(
            customer=self.customer,
            total_amount=1000,
            invoice_no="INV-OLD",
            created_at=now - timedelta(days=2),
        )
        self.newer = record_credit_sale(
            customer=self.customer,
            total_amount=500,
            invoice_no="INV-NEW",
            created_at=now - timedelta(days=1),
        )

        self.cash = Account.objects.get(chart__is_active=True, code="1000")
        self.bank = Account.objects.get(chart__is_active=True, code="1010")
        self.receivable = Account.objects.get(chart__is_active=True, code="1100")

    def _refresh(self):
        self.older.refresh_from_db()
        self.newer.refresh_from_db()

    def _assert_untouched(self):
        self._refresh()
        self.assertEqual(self.older.paid_amount, 0)
        self.assertEqual(self.newer.paid_amount, 0)
        self.assertEqual(self.older.payment_status, STATUS_PENDING)
        self.assertEqual(self.newer.payment_status, STATUS_PENDING)
        self.assertEqual(PaymentAllocation.objects.count(), 0)
        self.assertEqual(_payment_journals().count(), 0)
        self.assertEqual(AuditEvent.objects.count(), 0)

    # ======================================================
    # SUCCESS CASES
    # ======================================================

    def test_lump_payment_settles_oldest_order_first(self):
        result = allocate_customer_payment(
            customer_id=self.customer.id,
            payment_amount=1200,
            reference="RCPT-1",
            created_by=self.cashier,
        )

        self._refresh()
        self.assertEqual(self.older.paid_amount, 1000)
        self.assertEqual(self.older.payment_status, STATUS_PAID)
        self.assertEqual(self.newer.paid_amount, 200)
        self.assertEqual(self.newer.payment_status, STATUS_PARTIAL)

        self.assertEqual(
            [(o.obligation_id, o.amount_allocated) for o in result.outcomes],
            [(str(self.older.id), 1000), (str(self.newer.id), 200)],
        )
        self.assertEqual(result.outcomes[0].reference, "INV-OLD")
        self.assertEqual(result.total_allocated, 1200)
        self.assertEqual(result.excess_payment, 0)
        self.assertEqual(result.remaining_balance, 300)

    def test_ledger_receives_one_balanced_movement(self):
        result = allocate_customer_payment(
            customer_id=self.customer.id,
            payment_amount=1200,
        )

        journal = JournalEntry.objects.get(reference=f"PAYMENT_ALLOCATION:{result.allocation_id}")
        self.assertEqual(result.journal_entry_id, journal.id)

        lines = {l.entry_type: l for l in LedgerEntry.objects.filter(journal_entry=journal)}
        self.assertEqual(lines[LedgerEntry.DEBIT].account_id, self.cash.id)
        self.assertEqual(lines[LedgerEntry.CREDIT].account_id, self.receivable.id)
        self.assertEqual(lines[LedgerEntry.DEBIT].amount, Decimal("12.00"))
        self.assertEqual(lines[LedgerEntry.CREDIT].amount, Decimal("12.00"))

        # 15.00 sold on account, 12.00 received
        self.assertEqual(get_account_balance(self.receivable), Decimal("3.00"))
        self.assertEqual(get_account_balance(self.cash), Decimal("12.00"))

    def test_excess_is_reported_and_never_posted(self):
        result = allocate_customer_payment(
            customer_id=self.customer.id,
            payment_amount=2000,
        )

        self.assertEqual(result.total_allocated, 1500)
        self.assertEqual(result.excess_payment, 500)
        self.assertEqual(result.remaining_balance, 0)

        journal = _payment_journals().get()
        amounts = set(
            LedgerEntry.objects.filter(journal_entry=journal).values_list("amount", flat=True)
        )
        self.assertEqual(amounts, {Decimal("15.00")})
        self.assertEqual(get_account_balance(self.receivable), Decimal("0.00"))

    def test_selected_orders_only(self):
        result = allocate_customer_payment(
            customer_id=self.customer.id,
            payment_amount=100,
            order_ids=[self.newer.id],
        )

        self._refresh()
        self.assertEqual(self.older.paid_amount, 0)
        self.assertEqual(self.newer.paid_amount, 100)
        self.assertEqual(
            [o.obligation_id for o in result.outcomes],
            [str(self.newer.id)],
        )
        self.assertEqual(result.remaining_balance, 1400)

    def test_allocation_history_is_persisted(self):
        result = allocate_customer_payment(
            customer_id=self.customer.id,
            payment_amount=1200,
            payment_method="bank",
            reference="TRF-77",
            created_by=self.cashier,
        )

        allocation = PaymentAllocation.objects.get(id=result.allocation_id)
        self.assertEqual(allocation.direction, "customer")
        self.assertEqual(allocation.payer_id, str(self.customer.id))
        self.assertEqual(allocation.payment_amount, 1200)
        self.assertEqual(allocation.total_allocated, 1200)
        self.assertEqual(allocation.excess_payment, 0)
        self.assertEqual(allocation.remaining_balance, 300)
        self.assertEqual(allocation.payment_method, "bank")
        self.assertEqual(allocation.payment_account_code, "1010")
        self.assertEqual(allocation.reference, "TRF-77")
        self.assertEqual(allocation.created_by, self.cashier)
        self.assertEqual(allocation.journal_entry_id, result.journal_entry_id)

        lines = list(allocation.lines.order_by("position"))
        self.assertEqual(
            [(l.obligation_reference, l.amount_allocated, l.resulting_status) for l in lines],
            [("INV-OLD", 1000, STATUS_PAID), ("INV-NEW", 200, STATUS_PARTIAL)],
        )

        self.assertEqual(get_account_balance(self.bank), Decimal("12.00"))

    def test_audit_event_recorded(self):
        result = allocate_customer_payment(
            customer_id=self.customer.id,
            payment_amount=1200,
            reference="RCPT-9",
            created_by=self.cashier,
        )

        event = AuditEvent.objects.get()
        self.assertEqual(event.event_type, CUSTOMER_PAYMENT_EVENT)
        self.assertEqual(event.entity_type, "customer")
        self.assertEqual(event.entity_id, str(self.customer.id))
        self.assertEqual(event.actor, self.cashier)
        self.assertEqual(event.payload["allocation_id"], result.allocation_id)
        self.assertEqual(event.payload["total_allocated"], 1200)
        self.assertEqual(event.payload["reference"], "RCPT-9")
        self.assertEqual(len(event.payload["outcomes"]), 2)

    def test_credit_tracking_updated(self):
        allocate_customer_payment(customer_id=self.customer.id, payment_amount=300)
        allocate_customer_payment(customer_id=self.customer.id, payment_amount=400)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_settled, 700)
        self.assertEqual(self.customer.last_settlement_amount, 400)
        self.assertIsNotNone(self.customer.last_settlement_at)

    def test_sequential_payments_see_committed_amounts(self):
        first = allocate_customer_payment(customer_id=self.customer.id, payment_amount=800)
        second = allocate_customer_payment(customer_id=self.customer.id, payment_amount=400)

        self.assertEqual(
            [(o.obligation_id, o.amount_allocated) for o in first.outcomes],
            [(str(self.older.id), 800)],
        )
        self.assertEqual(
            [(o.obligation_id, o.amount_allocated) for o in second.outcomes],
            [(str(self.older.id), 200), (str(self.newer.id), 200)],
        )
        self.assertEqual(second.remaining_balance, 300)

    def test_remaining_balance_matches_persisted_obligations(self):
        result = allocate_customer_payment(customer_id=self.customer.id, payment_amount=1234)

        recomputed = sum(
            s.total_amount - s.paid_amount
            for s in Sale.objects.filter(customer=self.customer, status=Sale.STATUS_COMPLETED)
        )
        self.assertEqual(result.remaining_balance, recomputed)
        self.assertEqual(get_customer_outstanding(self.customer.id)["remaining_balance"], recomputed)

    def test_cancelled_orders_are_not_debt(self):
        extra = record_credit_sale(customer=self.customer, total_amount=700)
        cancel_sale(sale_id=extra.id)

        result = allocate_customer_payment(customer_id=self.customer.id, payment_amount=5000)

        self.assertEqual(result.total_allocated, 1500)
        self.assertNotIn(str(extra.id), [o.obligation_id for o in result.outcomes])

    # ======================================================
    # PAY ONE ORDER
    # ======================================================

    def test_pay_order_defaults_to_full_outstanding(self):
        result = pay_customer_order(sale_id=self.newer.id)

        self._refresh()
        self.assertEqual(self.newer.payment_status, STATUS_PAID)
        self.assertEqual(self.older.paid_amount, 0)
        self.assertEqual(result.total_allocated, 500)
        self.assertEqual(result.excess_payment, 0)
        self.assertEqual(result.remaining_balance, 1000)

    def test_pay_order_partial_amount(self):
        result = pay_customer_order(sale_id=self.older.id, payment_amount=250)

        self._refresh()
        self.assertEqual(self.older.paid_amount, 250)
        self.assertEqual(result.outcomes[0].new_status, STATUS_PARTIAL)

    def test_pay_order_more_than_outstanding_is_rejected(self):
        with self.assertRaises(ObligationNotPayable):
            pay_customer_order(sale_id=self.newer.id, payment_amount=501)
        self._assert_untouched()

    def test_pay_order_already_paid_is_rejected(self):
        pay_customer_order(sale_id=self.newer.id)

        with self.assertRaises(ObligationNotPayable):
            pay_customer_order(sale_id=self.newer.id)

    def test_pay_unknown_or_cancelled_order(self):
        cancelled = record_credit_sale(customer=self.customer, total_amount=100)
        cancel_sale(sale_id=cancelled.id)

        with self.assertRaises(ObligationNotFound):
            pay_customer_order(sale_id=cancelled.id)
        with self.assertRaises(ObligationNotFound):
            pay_customer_order(sale_id="not-a-uuid")

    # ======================================================
    # REJECTIONS (NOTHING MUTATED)
    # ======================================================

    def test_invalid_amount(self):
        for bad in (0, -50):
            with self.subTest(amount=bad):
                with self.assertRaises(InvalidAmount):
                    allocate_customer_payment(customer_id=self.customer.id, payment_amount=bad)
        self._assert_untouched()

    def test_invalid_amount_on_paid_order(self):
        pay_customer_order(sale_id=self.newer.id)

        for bad in (0, -1):
            with self.subTest(amount=bad):
                with self.assertRaises(InvalidAmount):
                    pay_customer_order(sale_id=self.newer.id, payment_amount=bad)

    def test_invalid_amount_reported_before_account_setup(self):
        ChartOfAccounts.objects.update(is_active=False)
        get_active_chart.cache_clear()

        with self.assertRaises(InvalidAmount):
            allocate_customer_payment(customer_id=self.customer.id, payment_amount=0)
        with self.assertRaises(InvalidAmount):
            pay_customer_order(sale_id=self.older.id, payment_amount=0)

        self._assert_untouched()

    def test_no_outstanding_obligations(self):
        debt_free = Customer.objects.create(name="Debt Free Ltd")

        with self.assertRaises(NoOutstandingObligations):
            allocate_customer_payment(customer_id=debt_free.id, payment_amount=100)

        self._assert_untouched()
        debt_free.refresh_from_db()
        self.assertEqual(debt_free.total_settled, 0)

    def test_unknown_customer(self):
        with self.assertRaises(PayerNotFound):
            allocate_customer_payment(
                customer_id="00000000-0000-0000-0000-000000000000",
                payment_amount=100,
            )

    def test_excess_rejected_when_configured(self):
        with override_settings(ALLOCATION={"REJECT_EXCESS_PAYMENT": True}):
            with self.assertRaises(ExcessPaymentNotAllowed):
                allocate_customer_payment(customer_id=self.customer.id, payment_amount=1501)

            result = allocate_customer_payment(customer_id=self.customer.id, payment_amount=1500)

        self.assertEqual(result.excess_payment, 0)
        self.assertEqual(PaymentAllocation.objects.count(), 1)

    def test_invalid_payment_source(self):
        with self.assertRaises(InvalidPaymentAccount):
            allocate_customer_payment(
                customer_id=self.customer.id,
                payment_amount=100,
                payment_method="crypto",
            )
        with self.assertRaises(InvalidPaymentAccount):
            allocate_customer_payment(
                customer_id=self.customer.id,
                payment_amount=100,
                payment_account_code="4000",
            )
        self._assert_untouched()

    # ======================================================
    # FAILURE POLICY
    # ======================================================

    def test_ledger_failure_rolls_back_everything(self):
        with self.assertRaises(LedgerPostingFailed):
            allocate_customer_payment(
                customer_id=self.customer.id,
                payment_amount=1200,
                orchestrator=build_customer_orchestrator(ledger_poster=FailingLedgerPoster()),
            )
        self._assert_untouched()

    def test_missing_ledger_account_rolls_back(self):
        self.receivable.is_active = False
        self.receivable.save(update_fields=["is_active", "updated_at"])

        with self.assertRaises(LedgerPostingFailed):
            allocate_customer_payment(customer_id=self.customer.id, payment_amount=1200)
        self._assert_untouched()

    def test_audit_failure_rolls_back_everything(self):
        with self.assertRaises(RuntimeError):
            allocate_customer_payment(
                customer_id=self.customer.id,
                payment_amount=1200,
                orchestrator=build_customer_orchestrator(audit_recorder=FailingAuditRecorder()),
            )
        self._assert_untouched()

    def test_credit_tracking_failure_keeps_settlement(self):
        orchestrator = build_customer_orchestrator(credit_tracker=FailingCreditTracker())

        with self.assertLogs("payments", level="ERROR") as logs:
            result = allocate_customer_payment(
                customer_id=self.customer.id,
                payment_amount=1200,
                orchestrator=orchestrator,
            )

        self.assertTrue(any("Credit tracking update failed" in line for line in logs.output))
        self._refresh()
        self.assertEqual(self.older.paid_amount, 1000)
        self.assertEqual(result.total_allocated, 1200)
        self.assertEqual(_payment_journals().count(), 1)
        self.assertEqual(AuditEvent.objects.count(), 1)

    def test_orchestrator_without_credit_tracker(self):
        result = allocate_customer_payment(
            customer_id=self.customer.id,
            payment_amount=100,
            orchestrator=build_customer_orchestrator(credit_tracker=None),
        )

        self.assertEqual(result.total_allocated, 100)
        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_settled, 0)

    def test_transactional_collaborators_are_required(self):
        with self.assertRaises(ValueError):
            AllocationOrchestrator(
                repository=CustomerOrderRepository(),
                ledger_poster=None,
                audit_recorder=FailingAuditRecorder(),
                direction="customer",
                event_type=CUSTOMER_PAYMENT_EVENT,
            )

    # ======================================================
    # REPOSITORY GUARDS
    # ======================================================

    def test_apply_allocation_to_missing_order(self):
        with self.assertRaises(ObligationNotFound):
            CustomerOrderRepository().apply_allocation(uuid.uuid4(), 1)

        self._assert_untouched()

    def test_apply_allocation_beyond_total(self):
        repository = CustomerOrderRepository()

        with self.assertRaises(OverAllocation):
            repository.apply_allocation(self.newer.id, 501)
        self._assert_untouched()

        repository.apply_allocation(self.newer.id, 300)
        with self.assertRaises(OverAllocation):
            repository.apply_allocation(self.newer.id, 201)

        self.newer.refresh_from_db()
        self.assertEqual(self.newer.paid_amount, 300)
        self.assertEqual(self.newer.payment_status, STATUS_PARTIAL)

    def test_apply_allocation_rejects_non_positive_amount(self):
        with self.assertRaises(OverAllocation):
            CustomerOrderRepository().apply_allocation(self.older.id, 0)

        self._assert_untouched()
