# accounting/models/ledger.py

"""
LEDGER ENTRY MODEL

One debit or credit line of a journal entry. Amounts are positive major
units (2dp); the posting adapter converts from the engine's minor units.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Case, F, Sum, When
from django.db.models.functions import Coalesce

from accounting.models.account import Account
from accounting.models.journal import JournalEntry

ZERO = Decimal("0.00")


class LedgerEntryQuerySet(models.QuerySet):
    def posted(self):
        return self.filter(journal_entry__is_posted=True)

    def for_account(self, account):
        return self.filter(account=account)

    def totals(self) -> tuple[Decimal, Decimal]:
        """
        (debit total, credit total) over the queryset.
        """
        aggregates = self.aggregate(
            debit_total=Coalesce(
                Sum(Case(When(entry_type=LedgerEntry.DEBIT, then=F("amount")))), ZERO
            ),
            credit_total=Coalesce(
                Sum(Case(When(entry_type=LedgerEntry.CREDIT, then=F("amount")))), ZERO
            ),
        )
        return aggregates["debit_total"], aggregates["credit_total"]


class LedgerEntry(models.Model):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"

    ENTRY_TYPES = [
        (DEBIT, "Debit"),
        (CREDIT, "Credit"),
    ]

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )

    entry_type = models.CharField(max_length=6, choices=ENTRY_TYPES)
    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )

    created_at = models.DateTimeField(auto_now_add=True)

    objects = LedgerEntryQuerySet.as_manager()

    class Meta:
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["account", "entry_type"], name="ledger_account_type_idx"),
        ]

    def __str__(self):
        return f"{self.entry_type} {self.amount} -> {self.account}"

    def clean(self):
        if self.amount is None or self.amount <= 0:
            raise ValidationError({"amount": "Ledger amount must be > 0"})

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("LedgerEntry records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerEntry records are immutable and cannot be deleted")
