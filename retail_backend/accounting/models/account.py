# accounting/models/account.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.chart import ChartOfAccounts


class AccountQuerySet(models.QuerySet):
    def active(self):
        return self.filter(is_active=True)

    def in_chart(self, chart):
        return self.filter(chart=chart)


class Account(models.Model):
    """
    One account within a Chart of Accounts.

    Settlements move money between a payment source (an ASSET such as Cash
    or Bank) and Accounts Receivable or Accounts Payable.
    """

    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    DEBIT_NORMAL_TYPES = (ASSET, EXPENSE)

    chart = models.ForeignKey(
        ChartOfAccounts,
        on_delete=models.PROTECT,
        related_name="accounts",
    )

    code = models.CharField(max_length=10)
    name = models.CharField(max_length=150)
    account_type = models.CharField(max_length=20, choices=ACCOUNT_TYPES)

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = AccountQuerySet.as_manager()

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["chart", "account_type"], name="account_chart_type_idx"),
        ]
        constraints = [
            models.UniqueConstraint(fields=["chart", "code"], name="uniq_account_chart_code"),
            models.CheckConstraint(condition=~Q(code=""), name="chk_account_code_not_blank"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @property
    def is_debit_normal(self) -> bool:
        return self.account_type in self.DEBIT_NORMAL_TYPES

    @property
    def accepts_payments(self) -> bool:
        return self.is_active and self.account_type == self.ASSET

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError({"code": "Account code is required"})
        if not self.name:
            raise ValidationError({"name": "Account name is required"})

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
