"""
======================================================
PATH: customers/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Customer
"""

from __future__ import annotations

import uuid

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
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
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["name"], name="customer_name_idx"),
                ],
            },
        ),
    ]
