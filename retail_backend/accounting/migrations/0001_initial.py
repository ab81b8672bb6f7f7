"""
======================================================
PATH: accounting/migrations/0001_initial.py
======================================================
MIGRATION: CREATE ChartOfAccounts, Account, JournalEntry, LedgerEntry
"""

from __future__ import annotations

from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ChartOfAccounts",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=100, unique=True)),
                (
                    "code",
                    models.SlugField(
                        max_length=64,
                        unique=True,
                        help_text="Stable chart key used by resolvers/seeders. Do not change after go-live.",
                    ),
                ),
                (
                    "business_type",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("pharmacy", "Pharmacy"),
                            ("supermarket", "Supermarket"),
                            ("retail", "General Retail"),
                        ],
                        default="retail",
                        db_index=True,
                    ),
                ),
                ("is_active", models.BooleanField(default=False, db_index=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "verbose_name": "Chart of Accounts",
                "verbose_name_plural": "Charts of Accounts",
                "ordering": ["name"],
            },
        ),
        migrations.CreateModel(
            name="JournalEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "reference",
                    models.CharField(
                        max_length=100,
                        blank=True,
                        null=True,
                        help_text="Source reference, formatted TYPE:ID",
                    ),
                ),
                ("description", models.TextField()),
                (
                    "posted_at",
                    models.DateTimeField(
                        default=django.utils.timezone.now,
                        help_text="Accounting effective date",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("is_posted", models.BooleanField(default=True)),
            ],
            options={
                "verbose_name": "Journal Entry",
                "verbose_name_plural": "Journal Entries",
                "ordering": ["-posted_at", "-created_at"],
                "indexes": [
                    models.Index(fields=["posted_at"], name="journal_posted_at_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=["reference"],
                        condition=models.Q(reference__isnull=False) & ~models.Q(reference=""),
                        name="uniq_journal_reference_not_blank",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Account",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("code", models.CharField(max_length=10)),
                ("name", models.CharField(max_length=150)),
                (
                    "account_type",
                    models.CharField(
                        max_length=20,
                        choices=[
                            ("ASSET", "Asset"),
                            ("LIABILITY", "Liability"),
                            ("EQUITY", "Equity"),
                            ("REVENUE", "Revenue"),
                            ("EXPENSE", "Expense"),
                        ],
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "chart",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="accounts",
                        to="accounting.chartofaccounts",
                    ),
                ),
            ],
            options={
                "ordering": ["code"],
                "indexes": [
                    models.Index(fields=["chart", "account_type"], name="account_chart_type_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=["chart", "code"], name="uniq_account_chart_code"),
                    models.CheckConstraint(
                        condition=~models.Q(code=""),
                        name="chk_account_code_not_blank",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "entry_type",
                    models.CharField(max_length=6, choices=[("DEBIT", "Debit"), ("CREDIT", "Credit")]),
                ),
                (
                    "amount",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=2,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "account",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="accounting.account",
                    ),
                ),
                (
                    "journal_entry",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="accounting.journalentry",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["account", "entry_type"], name="ledger_account_type_idx"),
                ],
            },
        ),
    ]
