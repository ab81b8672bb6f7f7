"""
======================================================
PATH: purchases/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Supplier, PurchaseInvoice (supplier-side obligation)
"""

from __future__ import annotations

import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Supplier",
            fields=[
                ("last_settlement_at", models.DateTimeField(null=True, blank=True)),
                ("last_settlement_amount", models.PositiveBigIntegerField(default=0)),
                ("total_settled", models.PositiveBigIntegerField(default=0)),
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("name", models.CharField(max_length=200)),
                ("phone", models.CharField(max_length=50, blank=True, default="")),
                ("email", models.EmailField(max_length=254, blank=True, default="")),
                ("address", models.TextField(blank=True, default="")),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="supplier_name_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseInvoice",
            fields=[
                (
                    "total_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Amount owed, in minor currency units.",
                    ),
                ),
                (
                    "paid_amount",
                    models.PositiveBigIntegerField(
                        default=0,
                        help_text="Amount settled so far, in minor currency units.",
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("pending", "Pending"),
                            ("partial", "Partially paid"),
                            ("paid", "Paid"),
                        ],
                        default="pending",
                        db_index=True,
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(default=django.utils.timezone.now, db_index=True),
                ),
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("invoice_number", models.CharField(max_length=64)),
                ("invoice_date", models.DateField(default=django.utils.timezone.localdate)),
                (
                    "status",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("DRAFT", "Draft"),
                            ("RECEIVED", "Received"),
                            ("CANCELLED", "Cancelled"),
                        ],
                        default="DRAFT",
                    ),
                ),
                ("received_at", models.DateTimeField(null=True, blank=True)),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="purchases.supplier",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="purchase_invoices_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "received_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="purchase_invoices_received",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["supplier", "created_at"], name="invoice_supplier_created_idx"),
                    models.Index(fields=["status", "created_at"], name="invoice_status_created_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(paid_amount__lte=models.F("total_amount")),
                        name="purchases_purchaseinvoice_paid_lte_total",
                    ),
                    models.CheckConstraint(
                        condition=(
                            models.Q(payment_status="paid", paid_amount__gte=models.F("total_amount"))
                            | models.Q(
                                payment_status="partial",
                                paid_amount__gt=0,
                                paid_amount__lt=models.F("total_amount"),
                            )
                            | models.Q(payment_status="pending", paid_amount=0, total_amount__gt=0)
                        ),
                        name="purchases_purchaseinvoice_status_matches_amounts",
                    ),
                    models.UniqueConstraint(
                        fields=["supplier", "invoice_number"],
                        name="uniq_supplier_invoice_number",
                    ),
                ],
            },
        ),
    ]
