# payments/models/allocation.py

"""
PAYMENT ALLOCATION HISTORY (IMMUTABLE)

One PaymentAllocation row per allocation run, one PaymentAllocationLine per
obligation touched by the run.

RULES:
- Written once by the allocation orchestrator, inside the run's transaction
- Never updated, never deleted
- PaymentAllocation.id is the ledger reference for the run (idempotency key)
"""

import uuid

from django.conf import settings
from django.db import models

from payments.domain import DIRECTION_CHOICES, PAYMENT_STATUS_CHOICES

User = settings.AUTH_USER_MODEL


class PaymentAllocation(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    direction = models.CharField(max_length=16, choices=DIRECTION_CHOICES)

    # Customer id or supplier id, depending on direction
    payer_id = models.CharField(max_length=64)

    payment_amount = models.PositiveBigIntegerField()
    total_allocated = models.PositiveBigIntegerField()
    excess_payment = models.PositiveBigIntegerField(default=0)
    remaining_balance = models.PositiveBigIntegerField(default=0)

    payment_method = models.CharField(max_length=32, default="cash")
    payment_account_code = models.CharField(max_length=10, blank=True, default="")
    reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        help_text="Caller-supplied receipt / transfer reference",
    )

    journal_entry = models.ForeignKey(
        "accounting.JournalEntry",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment_allocations",
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_allocations",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["direction", "payer_id"], name="allocation_direction_payer_idx"),
            models.Index(fields=["created_at"], name="allocation_created_at_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(payment_amount__gt=0),
                name="payment_allocation_amount_gt_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(
                    payment_amount=models.F("total_allocated")
                    + models.F("excess_payment")
                ),
                name="payment_allocation_conserves_amount",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("PaymentAllocation records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("PaymentAllocation records cannot be deleted")

    def __str__(self):
        return f"{self.direction} {self.payer_id} | {self.total_allocated}/{self.payment_amount}"


class PaymentAllocationLine(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    allocation = models.ForeignKey(
        PaymentAllocation,
        on_delete=models.PROTECT,
        related_name="lines",
    )

    # Allocation order within the run (0-based)
    position = models.PositiveIntegerField()

    obligation_id = models.CharField(max_length=64)
    obligation_reference = models.CharField(max_length=128)
    amount_allocated = models.PositiveBigIntegerField()
    resulting_status = models.CharField(max_length=16, choices=PAYMENT_STATUS_CHOICES)

    class Meta:
        ordering = ["allocation", "position"]
        indexes = [
            models.Index(fields=["obligation_id"], name="allocation_line_obligation_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["allocation", "position"],
                name="uniq_allocation_line_position",
            ),
            models.CheckConstraint(
                condition=models.Q(amount_allocated__gt=0),
                name="allocation_line_amount_gt_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("PaymentAllocationLine records are immutable")
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("PaymentAllocationLine records cannot be deleted")

    def __str__(self):
        return f"{self.obligation_reference} | {self.amount_allocated}"
