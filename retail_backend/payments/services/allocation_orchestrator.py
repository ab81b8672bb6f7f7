# payments/services/allocation_orchestrator.py

"""
======================================================
PATH: payments/services/allocation_orchestrator.py
======================================================
ALLOCATION ORCHESTRATOR (TRANSACTION BOUNDARY)

Distributes one payment across a payer's outstanding obligations.
Generic over direction: customer receipts and supplier payments only differ
in the collaborators they pass in.

STRICT ORDERING (one transaction per run):
1) validate amount                      -> InvalidAmount (no lock taken)
2) lock outstanding obligations         -> SELECT ... FOR UPDATE, oldest first
3) compute allocation (pure)
4) apply each outcome, in order         -> any failure rolls back the run
5) post ONE ledger movement             -> LedgerPostingFailed rolls back the run
6) credit tracking (savepoint)          -> failure is logged, never rolls back 1-5
7) recompute remaining balance
8) persist allocation history + audit event
9) commit, return AllocationResult

Callers get a complete AllocationResult or a typed AllocationError.
"""

from __future__ import annotations

import logging
import uuid

from django.conf import settings
from django.db import OperationalError, connection, transaction

from payments.domain import (
    AllocationResult,
    PaymentAllocationRequest,
)
from payments.models import PaymentAllocation, PaymentAllocationLine
from payments.services.allocation_calculator import (
    compute_allocation,
    validate_payment_amount,
)
from payments.services.exceptions import (
    AllocationInProgress,
    ExcessPaymentNotAllowed,
    NoOutstandingObligations,
    ObligationNotPayable,
)
from payments.services.ledger import LedgerAccounts

logger = logging.getLogger("payments")


# PostgreSQL SQLSTATE raised when lock_timeout expires
LOCK_NOT_AVAILABLE = "55P03"


def is_lock_not_available(exc: OperationalError) -> bool:
    cause = exc.__cause__
    code = getattr(cause, "sqlstate", None) or getattr(cause, "pgcode", None)
    return code == LOCK_NOT_AVAILABLE


def allocation_settings() -> dict:
    defaults = {
        "REJECT_EXCESS_PAYMENT": False,
        "DEFAULT_PAYMENT_METHOD": "cash",
        "LOCK_TIMEOUT_MS": 0,
    }
    defaults.update(getattr(settings, "ALLOCATION", {}) or {})
    return defaults


class AllocationOrchestrator:
    def __init__(
        self,
        *,
        repository,
        ledger_poster,
        audit_recorder,
        direction: str,
        event_type: str,
        ledger_memo: str = "Payment",
        credit_tracker=None,
        reject_excess: bool | None = None,
        lock_timeout_ms: int | None = None,
    ):
        # Transactional collaborators are mandatory; only credit tracking may be absent
        if repository is None:
            raise ValueError("repository is required")
        if ledger_poster is None:
            raise ValueError("ledger_poster is required")
        if audit_recorder is None:
            raise ValueError("audit_recorder is required")

        config = allocation_settings()

        self.repository = repository
        self.ledger_poster = ledger_poster
        self.audit_recorder = audit_recorder
        self.credit_tracker = credit_tracker
        self.direction = direction
        self.event_type = event_type
        self.ledger_memo = ledger_memo
        self.reject_excess = (
            bool(config["REJECT_EXCESS_PAYMENT"]) if reject_excess is None else reject_excess
        )
        self.lock_timeout_ms = int(
            config["LOCK_TIMEOUT_MS"] if lock_timeout_ms is None else lock_timeout_ms
        )

    # --------------------------------------------------
    # Public API
    # --------------------------------------------------

    def allocate(
        self,
        request: PaymentAllocationRequest,
        *,
        ledger_accounts: LedgerAccounts,
        payment_method: str = "cash",
        payment_account_code: str = "",
        reference: str = "",
        created_by=None,
        reject_excess: bool | None = None,
    ) -> AllocationResult:
        payment_amount = validate_payment_amount(request.payment_amount)
        reject_excess = self.reject_excess if reject_excess is None else reject_excess

        with transaction.atomic():
            obligations = self._lock_obligations(request.payer_id)

            computation = compute_allocation(
                obligations=obligations,
                payment_amount=payment_amount,
                selected_ids=request.selected_obligation_ids,
            )

            if not computation.outcomes:
                raise NoOutstandingObligations(
                    f"No outstanding obligations to apply the payment to for {self.direction} "
                    f"{request.payer_id}."
                )

            if reject_excess and computation.excess_payment > 0:
                raise ExcessPaymentNotAllowed(
                    f"Payment of {payment_amount} exceeds the outstanding amount "
                    f"{computation.total_allocated} by {computation.excess_payment}."
                )

            for outcome in computation.outcomes:
                self.repository.apply_allocation(
                    outcome.obligation_id, outcome.amount_allocated
                )

            allocation_id = str(uuid.uuid4())
            journal_entry = self.ledger_poster.post(
                payer_id=request.payer_id,
                amount=computation.total_allocated,
                accounts=ledger_accounts,
                reference_id=allocation_id,
                memo=self._memo(request.payer_id, computation.outcomes),
            )

            self._record_credit(request.payer_id, computation.total_allocated)

            remaining_balance = self.repository.sum_outstanding_for_payer(request.payer_id)

            self._persist_history(
                allocation_id=allocation_id,
                request=request,
                computation=computation,
                remaining_balance=remaining_balance,
                journal_entry=journal_entry,
                payment_method=payment_method,
                payment_account_code=payment_account_code,
                reference=reference,
                created_by=created_by,
            )

            result = AllocationResult(
                payer_id=request.payer_id,
                payment_amount=payment_amount,
                outcomes=computation.outcomes,
                total_allocated=computation.total_allocated,
                excess_payment=computation.excess_payment,
                remaining_balance=remaining_balance,
                allocation_id=allocation_id,
                journal_entry_id=getattr(journal_entry, "pk", None),
                selected_obligation_ids=request.selected_obligation_ids,
            )

            self.audit_recorder.log(
                self.event_type,
                request.payer_id,
                self._audit_payload(
                    result,
                    payment_method=payment_method,
                    payment_account_code=payment_account_code,
                    reference=reference,
                ),
                actor=created_by,
            )

        logger.info(
            "Payment allocated",
            extra={
                "direction": self.direction,
                "payer_id": request.payer_id,
                "allocation_id": allocation_id,
                "payment_amount": payment_amount,
                "total_allocated": result.total_allocated,
                "excess_payment": result.excess_payment,
                "remaining_balance": result.remaining_balance,
                "obligations": len(result.outcomes),
            },
        )
        return result

    def pay_single(
        self,
        obligation_id,
        *,
        payment_amount: int | None = None,
        ledger_accounts: LedgerAccounts,
        payment_method: str = "cash",
        payment_account_code: str = "",
        reference: str = "",
        created_by=None,
    ) -> AllocationResult:
        """
        Pay one obligation directly. Defaults to its full outstanding amount;
        an explicit amount may not exceed what is outstanding.
        """
        if payment_amount is not None:
            payment_amount = validate_payment_amount(payment_amount)

        payer_id, obligation = self.repository.get_obligation(obligation_id)

        if obligation.outstanding_amount <= 0:
            raise ObligationNotPayable(
                f"{obligation.display_reference} is already fully paid."
            )

        if payment_amount is None:
            payment_amount = obligation.outstanding_amount

        if payment_amount > obligation.outstanding_amount:
            raise ObligationNotPayable(
                f"Payment of {payment_amount} exceeds the outstanding amount "
                f"{obligation.outstanding_amount} of {obligation.display_reference}."
            )

        return self.allocate(
            PaymentAllocationRequest(
                payer_id=payer_id,
                payment_amount=payment_amount,
                selected_obligation_ids=(obligation.id,),
            ),
            ledger_accounts=ledger_accounts,
            payment_method=payment_method,
            payment_account_code=payment_account_code,
            reference=reference,
            created_by=created_by,
            reject_excess=True,
        )

    # --------------------------------------------------
    # Steps
    # --------------------------------------------------

    def _lock_obligations(self, payer_id):
        if self.lock_timeout_ms > 0 and connection.vendor == "postgresql":
            with connection.cursor() as cursor:
                cursor.execute(
                    "SELECT set_config('lock_timeout', %s, true)",
                    [f"{self.lock_timeout_ms}ms"],
                )

            try:
                return self.repository.lock_outstanding_for_payer(payer_id)
            except OperationalError as exc:
                if not is_lock_not_available(exc):
                    raise
                logger.warning(
                    "Timed out waiting for obligation lock",
                    extra={"direction": self.direction, "payer_id": payer_id},
                )
                raise AllocationInProgress(
                    f"Another payment for {self.direction} {payer_id} is being processed. Retry shortly."
                ) from exc

        return self.repository.lock_outstanding_for_payer(payer_id)

    def _record_credit(self, payer_id, total_allocated: int) -> None:
        if self.credit_tracker is None:
            return

        try:
            with transaction.atomic():
                self.credit_tracker.record(payer_id, total_allocated)
        except Exception:
            logger.exception(
                "Credit tracking update failed; settlement kept",
                extra={
                    "direction": self.direction,
                    "payer_id": payer_id,
                    "amount_settled": total_allocated,
                },
            )

    def _persist_history(
        self,
        *,
        allocation_id,
        request,
        computation,
        remaining_balance,
        journal_entry,
        payment_method,
        payment_account_code,
        reference,
        created_by,
    ) -> PaymentAllocation:
        allocation = PaymentAllocation.objects.create(
            id=allocation_id,
            direction=self.direction,
            payer_id=request.payer_id,
            payment_amount=computation.payment_amount,
            total_allocated=computation.total_allocated,
            excess_payment=computation.excess_payment,
            remaining_balance=remaining_balance,
            payment_method=payment_method or "",
            payment_account_code=payment_account_code or "",
            reference=(reference or "").strip(),
            journal_entry=journal_entry,
            created_by=created_by if getattr(created_by, "is_authenticated", False) else None,
        )

        PaymentAllocationLine.objects.bulk_create(
            [
                PaymentAllocationLine(
                    allocation=allocation,
                    position=position,
                    obligation_id=outcome.obligation_id,
                    obligation_reference=outcome.reference,
                    amount_allocated=outcome.amount_allocated,
                    resulting_status=outcome.new_status,
                )
                for position, outcome in enumerate(computation.outcomes)
            ]
        )
        return allocation

    def _memo(self, payer_id, outcomes) -> str:
        references = ", ".join(o.reference for o in outcomes)
        return f"{self.ledger_memo} {payer_id} ({references})"[:500]

    @staticmethod
    def _audit_payload(result: AllocationResult, **extra) -> dict:
        payload = result.as_dict()
        payload["selected_obligation_ids"] = (
            list(result.selected_obligation_ids)
            if result.selected_obligation_ids is not None
            else None
        )
        payload.update(extra)
        return payload
