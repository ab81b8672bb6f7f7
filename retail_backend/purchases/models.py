# purchases/models.py

import uuid

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from payments.models.obligation import ObligationModel, SettlementTrackingModel

User = settings.AUTH_USER_MODEL


class Supplier(SettlementTrackingModel):
    """
    Supplier master.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=50, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    address = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["name"], name="supplier_name_idx"),
        ]

    def __str__(self):
        return self.name


class PurchaseInvoice(ObligationModel):
    """
    Supplier invoice header (the supplier-side obligation).

    Lifecycle:
    - DRAFT: being captured, not yet owed
    - RECEIVED: goods received, Accounts Payable posted, payable
    - CANCELLED: never owed (only from DRAFT)

    Only RECEIVED invoices are allocated to.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    STATUS_DRAFT = "DRAFT"
    STATUS_RECEIVED = "RECEIVED"
    STATUS_CANCELLED = "CANCELLED"

    STATUSES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_RECEIVED, "Received"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    reference_field = "invoice_number"

    supplier = models.ForeignKey(
        Supplier,
        on_delete=models.PROTECT,
        related_name="invoices",
    )

    invoice_number = models.CharField(max_length=64)
    invoice_date = models.DateField(default=timezone.localdate)

    status = models.CharField(max_length=20, choices=STATUSES, default=STATUS_DRAFT)

    received_at = models.DateTimeField(null=True, blank=True)

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_invoices_created",
    )
    received_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="purchase_invoices_received",
    )

    class Meta(ObligationModel.Meta):
        ordering = ["-created_at"]
        constraints = ObligationModel.Meta.constraints + [
            models.UniqueConstraint(
                fields=["supplier", "invoice_number"],
                name="uniq_supplier_invoice_number",
            ),
        ]
        indexes = [
            models.Index(fields=["supplier", "created_at"], name="invoice_supplier_created_idx"),
            models.Index(fields=["status", "created_at"], name="invoice_status_created_idx"),
        ]

    def clean(self):
        super().clean()

        if not (self.invoice_number or "").strip():
            raise ValidationError({"invoice_number": "invoice_number is required"})

        if self.status == self.STATUS_RECEIVED and not self.received_at:
            raise ValidationError(
                {"received_at": "received_at is required when status is RECEIVED"}
            )

        if self.status == self.STATUS_CANCELLED and self.received_at:
            raise ValidationError(
                {"received_at": "received_at must be empty when status is CANCELLED"}
            )

        if self.status != self.STATUS_RECEIVED and int(self.paid_amount or 0) > 0:
            raise ValidationError(
                {"paid_amount": "Only RECEIVED invoices can carry payments"}
            )

    def validate_against_previous(self, previous: "PurchaseInvoice") -> None:
        super().validate_against_previous(previous)

        allowed = {
            self.STATUS_DRAFT: {self.STATUS_DRAFT, self.STATUS_RECEIVED, self.STATUS_CANCELLED},
            self.STATUS_RECEIVED: {self.STATUS_RECEIVED},
            self.STATUS_CANCELLED: {self.STATUS_CANCELLED},
        }
        if self.status not in allowed[previous.status]:
            raise ValidationError(
                {"status": f"Status change {previous.status} -> {self.status} is not allowed."}
            )

        if previous.status != self.STATUS_DRAFT:
            if self.supplier_id != previous.supplier_id:
                raise ValidationError({"supplier": "supplier cannot change after receipt"})
            if self.invoice_number != previous.invoice_number:
                raise ValidationError(
                    {"invoice_number": "invoice_number cannot change after receipt"}
                )

    def save(self, *args, **kwargs):
        if self.invoice_number is not None:
            self.invoice_number = self.invoice_number.strip()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.invoice_number} ({self.supplier.name})"
