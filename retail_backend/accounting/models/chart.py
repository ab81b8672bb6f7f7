# accounting/models/chart.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models, transaction


class ChartOfAccounts(models.Model):
    """
    Chart of Accounts the payment postings resolve against.

    Rules:
    - Only ONE chart can be active at a time.
    - `code` is the stable key the account resolver maps semantic accounts with.
    """

    BUSINESS_PHARMACY = "pharmacy"
    BUSINESS_SUPERMARKET = "supermarket"
    BUSINESS_RETAIL = "retail"

    BUSINESS_TYPE_CHOICES = [
        (BUSINESS_PHARMACY, "Pharmacy"),
        (BUSINESS_SUPERMARKET, "Supermarket"),
        (BUSINESS_RETAIL, "General Retail"),
    ]

    name = models.CharField(max_length=100, unique=True)

    code = models.SlugField(
        max_length=64,
        unique=True,
        help_text="Stable chart key used by resolvers/seeders. Do not change after go-live.",
    )

    business_type = models.CharField(
        max_length=32,
        choices=BUSINESS_TYPE_CHOICES,
        default=BUSINESS_RETAIL,
        db_index=True,
    )

    is_active = models.BooleanField(default=False, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Chart of Accounts"
        verbose_name_plural = "Charts of Accounts"
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.business_type})"

    def clean(self):
        self.name = (self.name or "").strip()
        self.code = (self.code or "").strip().lower()
        if not self.code:
            raise ValidationError({"code": "code is required"})

    def save(self, *args, **kwargs):
        """
        Deactivate every other chart when this one is active,
        and clear the resolver cache when the active chart changes.
        """
        self.full_clean()

        from accounting.services.account_resolver import clear_active_chart_cache

        with transaction.atomic():
            was_active = False
            if self.pk:
                was_active = bool(
                    ChartOfAccounts.objects.filter(pk=self.pk)
                    .values_list("is_active", flat=True)
                    .first()
                )

            if self.is_active:
                ChartOfAccounts.objects.exclude(pk=self.pk).update(is_active=False)

            super().save(*args, **kwargs)

        if self.is_active or was_active:
            clear_active_chart_cache()
