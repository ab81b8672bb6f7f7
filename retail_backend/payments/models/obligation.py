# payments/models/obligation.py

"""
OBLIGATION BASE MODEL (ABSTRACT)

Shared by every debt record the allocation engine can settle
(customer orders, supplier purchase invoices).

GUARANTEES:
- Amounts are integer minor units (cents)
- total_amount is immutable once created
- paid_amount never decreases and never exceeds total_amount
- payment_status is recomputed from the amounts on every save
  (DB constraint rejects any row where they disagree)
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from payments.domain import (
    PAYMENT_STATUS_CHOICES,
    STATUS_PAID,
    STATUS_PARTIAL,
    STATUS_PENDING,
    Obligation,
    derive_status,
)


class ObligationModel(models.Model):
    STATUS_PENDING = STATUS_PENDING
    STATUS_PARTIAL = STATUS_PARTIAL
    STATUS_PAID = STATUS_PAID

    # Field holding the human-readable code (invoice number etc.)
    reference_field = "id"

    total_amount = models.PositiveBigIntegerField(
        default=0,
        help_text="Amount owed, in minor currency units.",
    )
    paid_amount = models.PositiveBigIntegerField(
        default=0,
        help_text="Amount settled so far, in minor currency units.",
    )
    payment_status = models.CharField(
        max_length=16,
        choices=PAYMENT_STATUS_CHOICES,
        default=STATUS_PENDING,
        db_index=True,
    )

    # Allocation ordering key (oldest debt first)
    created_at = models.DateTimeField(default=timezone.now, db_index=True)

    class Meta:
        abstract = True
        constraints = [
            models.CheckConstraint(
                condition=Q(paid_amount__lte=F("total_amount")),
                name="%(app_label)s_%(class)s_paid_lte_total",
            ),
            models.CheckConstraint(
                condition=(
                    Q(payment_status=STATUS_PAID, paid_amount__gte=F("total_amount"))
                    | Q(
                        payment_status=STATUS_PARTIAL,
                        paid_amount__gt=0,
                        paid_amount__lt=F("total_amount"),
                    )
                    | Q(payment_status=STATUS_PENDING, paid_amount=0, total_amount__gt=0)
                ),
                name="%(app_label)s_%(class)s_status_matches_amounts",
            ),
        ]

    # --------------------------------------------------
    # Derived values
    # --------------------------------------------------

    @property
    def outstanding_amount(self) -> int:
        return max(int(self.total_amount or 0) - int(self.paid_amount or 0), 0)

    @property
    def reference(self) -> str:
        value = getattr(self, self.reference_field, None)
        return str(value or "").strip() or str(self.pk)

    def to_obligation(self) -> Obligation:
        return Obligation(
            id=str(self.pk),
            reference=self.reference,
            total_amount=int(self.total_amount or 0),
            paid_amount=int(self.paid_amount or 0),
            created_at=self.created_at,
        )

    # --------------------------------------------------
    # Integrity
    # --------------------------------------------------

    def _validate_amount_history(self, previous) -> None:
        if int(self.total_amount) != int(previous.total_amount):
            raise ValidationError(
                {"total_amount": "total_amount is immutable once created"}
            )
        if int(self.paid_amount) < int(previous.paid_amount):
            raise ValidationError(
                {"paid_amount": "paid_amount can never decrease"}
            )

    def clean(self):
        super().clean()
        if self.paid_amount is not None and self.total_amount is not None:
            if int(self.paid_amount) > int(self.total_amount):
                raise ValidationError(
                    {"paid_amount": "paid_amount cannot exceed total_amount"}
                )

    def validate_against_previous(self, previous) -> None:
        """
        Hook for subclasses adding their own update rules (call super()).
        """
        self._validate_amount_history(previous)

    def save(self, *args, **kwargs):
        if self.pk and not self._state.adding:
            previous = type(self).objects.filter(pk=self.pk).first()
            if previous is not None:
                self.validate_against_previous(previous)

        self.payment_status = derive_status(
            total_amount=int(self.total_amount or 0),
            paid_amount=int(self.paid_amount or 0),
        )

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "paid_amount" in update_fields:
            kwargs["update_fields"] = set(update_fields) | {"payment_status"}

        self.full_clean()
        return super().save(*args, **kwargs)


class SettlementTrackingModel(models.Model):
    """
    Aggregate repayment statistics kept on the payer (customer / supplier).
    Written by the credit tracking collaborator after each allocation.
    """

    last_settlement_at = models.DateTimeField(null=True, blank=True)
    last_settlement_amount = models.PositiveBigIntegerField(default=0)
    total_settled = models.PositiveBigIntegerField(default=0)

    class Meta:
        abstract = True
