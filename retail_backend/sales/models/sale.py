# sales/models/sale.py

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from payments.models.obligation import ObligationModel

User = settings.AUTH_USER_MODEL


class Sale(ObligationModel):
    """
    A customer order sold on account (the customer-side obligation).

    GUARANTEES:
    - Amounts are integer minor units; total_amount never changes
    - paid_amount moves only through payment allocation
    - Only COMPLETED sales count as debt
    - A sale can be cancelled only while nothing has been paid on it
    """

    STATUS_COMPLETED = "completed"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_COMPLETED, "Completed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    reference_field = "invoice_no"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_no = models.CharField(
        max_length=64,
        unique=True,
        blank=True,
        help_text="System-generated invoice / receipt number",
    )

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="sales",
    )

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="sales",
        help_text="Cashier / staff who processed the sale",
    )

    status = models.CharField(
        max_length=32,
        choices=STATUS_CHOICES,
        default=STATUS_COMPLETED,
    )

    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta(ObligationModel.Meta):
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "created_at"], name="sale_customer_created_idx"),
            models.Index(fields=["status"], name="sale_status_idx"),
        ]

    _IMMUTABLE_FIELDS = (
        "customer_id",
        "invoice_no",
        "created_at",
        "completed_at",
    )

    def validate_against_previous(self, previous: "Sale") -> None:
        super().validate_against_previous(previous)

        if previous.status == self.STATUS_CANCELLED and self.status != previous.status:
            raise ValidationError({"status": "A cancelled sale cannot be reopened."})

        if self.status == self.STATUS_CANCELLED and int(self.paid_amount) > 0:
            raise ValidationError(
                {"status": "A sale with payments applied cannot be cancelled."}
            )

        for field in self._IMMUTABLE_FIELDS:
            if getattr(self, field) != getattr(previous, field):
                raise ValidationError(
                    {field.removesuffix("_id"): f"'{field}' cannot be changed once recorded."}
                )

    def save(self, *args, **kwargs):
        if not self.invoice_no:
            prefix = timezone.now().strftime("INV%Y%m%d")
            self.invoice_no = f"{prefix}-{uuid.uuid4().hex[:8].upper()}"

        if self.status == self.STATUS_COMPLETED and not self.completed_at:
            self.completed_at = timezone.now()

        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.invoice_no} | {self.total_amount}"
