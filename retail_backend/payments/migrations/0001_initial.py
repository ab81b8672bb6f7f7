"""
======================================================
PATH: payments/migrations/0001_initial.py
======================================================
MIGRATION: CREATE PaymentAllocation, PaymentAllocationLine

Allocation history is append-only: one header per run, one line per
obligation touched.
"""

from __future__ import annotations

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("accounting", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="PaymentAllocation",
            fields=[
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
                    "direction",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("customer", "Customer payment"),
                            ("supplier", "Supplier payment"),
                        ],
                    ),
                ),
                ("payer_id", models.CharField(max_length=64)),
                ("payment_amount", models.PositiveBigIntegerField()),
                ("total_allocated", models.PositiveBigIntegerField()),
                ("excess_payment", models.PositiveBigIntegerField(default=0)),
                ("remaining_balance", models.PositiveBigIntegerField(default=0)),
                ("payment_method", models.CharField(max_length=32, default="cash")),
                ("payment_account_code", models.CharField(max_length=10, blank=True, default="")),
                (
                    "reference",
                    models.CharField(
                        max_length=128,
                        blank=True,
                        default="",
                        help_text="Caller-supplied receipt / transfer reference",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "journal_entry",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment_allocations",
                        to="accounting.journalentry",
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="payment_allocations",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["direction", "payer_id"], name="allocation_direction_payer_idx"),
                    models.Index(fields=["created_at"], name="allocation_created_at_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(payment_amount__gt=0),
                        name="payment_allocation_amount_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            payment_amount=models.F("total_allocated") + models.F("excess_payment")
                        ),
                        name="payment_allocation_conserves_amount",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PaymentAllocationLine",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("position", models.PositiveIntegerField()),
                ("obligation_id", models.CharField(max_length=64)),
                ("obligation_reference", models.CharField(max_length=128)),
                ("amount_allocated", models.PositiveBigIntegerField()),
                (
                    "resulting_status",
                    models.CharField(
                        max_length=16,
                        choices=[
                            ("pending", "Pending"),
                            ("partial", "Partially paid"),
                            ("paid", "Paid"),
                        ],
                    ),
                ),
                (
                    "allocation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="lines",
                        to="payments.paymentallocation",
                    ),
                ),
            ],
            options={
                "ordering": ["allocation", "position"],
                "indexes": [
                    models.Index(fields=["obligation_id"], name="allocation_line_obligation_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["allocation", "position"],
                        name="uniq_allocation_line_position",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(amount_allocated__gt=0),
                        name="allocation_line_amount_gt_zero",
                    ),
                ],
            },
        ),
    ]
