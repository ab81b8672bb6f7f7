"""
======================================================
PATH: sales/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Sale (customer order obligation)

DB-level guarantees:
- paid_amount <= total_amount
- payment_status always agrees with the amounts
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
        ("customers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Sale",
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
                (
                    "invoice_no",
                    models.CharField(
                        max_length=64,
                        unique=True,
                        blank=True,
                        help_text="System-generated invoice / receipt number",
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        max_length=32,
                        choices=[("completed", "Completed"), ("cancelled", "Cancelled")],
                        default="completed",
                    ),
                ),
                ("completed_at", models.DateTimeField(null=True, blank=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="sales",
                        to="customers.customer",
                    ),
                ),
                (
                    "user",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="sales",
                        to=settings.AUTH_USER_MODEL,
                        help_text="Cashier / staff who processed the sale",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "abstract": False,
                "indexes": [
                    models.Index(fields=["customer", "created_at"], name="sale_customer_created_idx"),
                    models.Index(fields=["status"], name="sale_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(paid_amount__lte=models.F("total_amount")),
                        name="sales_sale_paid_lte_total",
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
                        name="sales_sale_status_matches_amounts",
                    ),
                ],
            },
        ),
    ]
