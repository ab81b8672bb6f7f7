# payments/services/repository.py

"""
OBLIGATION REPOSITORY

Collaborator contract consumed by the allocation orchestrator, plus the
Django ORM implementation shared by customer orders and supplier invoices.

STRICT ORDERING (per allocation run):
1) lock_outstanding_for_payer()  -> SELECT ... FOR UPDATE, oldest first
2) apply_allocation()            -> one call per outcome, same transaction

The lock is taken on the obligation rows only (no joins), so no nullable
side of an outer join is ever locked.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Sum

from payments.domain import Obligation
from payments.services.exceptions import ObligationNotFound, OverAllocation

logger = logging.getLogger("payments")


class ObligationRepository:
    """
    Interface. Implementations must be used inside an active transaction.
    """

    def lock_outstanding_for_payer(self, payer_id) -> list[Obligation]:
        raise NotImplementedError

    def apply_allocation(self, obligation_id, amount_allocated: int) -> Obligation:
        raise NotImplementedError

    def sum_outstanding_for_payer(self, payer_id) -> int:
        raise NotImplementedError

    def get_obligation(self, obligation_id) -> tuple[str, Obligation]:
        """
        Returns (payer_id, obligation snapshot). No lock is taken.
        """
        raise NotImplementedError


class ModelObligationRepository(ObligationRepository):
    """
    ORM-backed repository for any concrete ObligationModel subclass.

    Subclasses set:
    - model:       the obligation model
    - payer_field: FK attname pointing at the payer (e.g. "customer_id")
    and may narrow get_queryset() to the rows that count as debt.
    """

    model = None
    payer_field = None

    def get_queryset(self):
        return self.model.objects.all()

    def _outstanding_for_payer(self, payer_id):
        return (
            self.get_queryset()
            .filter(**{self.payer_field: payer_id})
            .filter(paid_amount__lt=F("total_amount"))
        )

    def lock_outstanding_for_payer(self, payer_id) -> list[Obligation]:
        rows = (
            self._outstanding_for_payer(payer_id)
            .select_for_update()
            .order_by("created_at", "id")
        )
        obligations = [row.to_obligation() for row in rows]

        logger.debug(
            "Locked outstanding obligations",
            extra={
                "model": self.model._meta.label,
                "payer_id": str(payer_id),
                "count": len(obligations),
            },
        )
        return obligations

    @transaction.atomic
    def apply_allocation(self, obligation_id, amount_allocated: int) -> Obligation:
        row = (
            self.model.objects.select_for_update()
            .filter(pk=obligation_id)
            .first()
        )
        if row is None:
            raise ObligationNotFound(
                f"{self.model._meta.verbose_name} {obligation_id} no longer exists"
            )

        amount_allocated = int(amount_allocated)
        if amount_allocated <= 0:
            raise OverAllocation(
                f"Allocation to {row.reference} must be positive, got {amount_allocated}"
            )

        new_paid = int(row.paid_amount) + amount_allocated
        if new_paid > int(row.total_amount):
            raise OverAllocation(
                f"Allocating {amount_allocated} to {row.reference} would exceed its total "
                f"(paid={row.paid_amount}, total={row.total_amount})"
            )

        row.paid_amount = new_paid
        row.save(update_fields=["paid_amount"])
        return row.to_obligation()

    def sum_outstanding_for_payer(self, payer_id) -> int:
        totals = self._outstanding_for_payer(payer_id).aggregate(
            total=Sum("total_amount"), paid=Sum("paid_amount")
        )
        return int(totals["total"] or 0) - int(totals["paid"] or 0)

    def get_obligation(self, obligation_id) -> tuple[str, Obligation]:
        try:
            row = self.get_queryset().filter(pk=obligation_id).first()
        except (ValidationError, ValueError):
            row = None
        if row is None:
            raise ObligationNotFound(
                f"{self.model._meta.verbose_name} {obligation_id} not found"
            )
        return str(getattr(row, self.payer_field)), row.to_obligation()

    def list_outstanding_for_payer(self, payer_id) -> list[Obligation]:
        rows = self._outstanding_for_payer(payer_id).order_by("created_at", "id")
        return [row.to_obligation() for row in rows]
