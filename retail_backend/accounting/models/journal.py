# accounting/models/journal.py

"""
JOURNAL ENTRY MODEL

Header of one balanced ledger movement. Every movement the allocation
engine causes is keyed by a "TYPE:ID" reference, e.g.

    SALE:<sale uuid>                 credit sale (Dr AR / Cr Revenue)
    SALE_CANCELLATION:<sale uuid>    its reversal
    PURCHASE_RECEIPT:<invoice uuid>  received invoice (Dr Inventory / Cr AP)
    PAYMENT_ALLOCATION:<run uuid>    one settlement run

Rows are immutable; the unique reference makes every posting idempotent.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

REFERENCE_SEPARATOR = ":"


def make_reference(reference_type, reference_id) -> str | None:
    rt = str(reference_type or "").strip()
    rid = str(reference_id or "").strip()
    if not rt or not rid:
        return None
    return f"{rt}{REFERENCE_SEPARATOR}{rid}"


class JournalEntryQuerySet(models.QuerySet):
    def posted(self):
        return self.filter(is_posted=True)

    def for_reference(self, reference_type, reference_id):
        reference = make_reference(reference_type, reference_id)
        if reference is None:
            return self.none()
        return self.filter(reference=reference)

    def of_type(self, reference_type):
        return self.filter(
            reference__startswith=f"{str(reference_type).strip()}{REFERENCE_SEPARATOR}"
        )


class JournalEntry(models.Model):
    reference = models.CharField(
        max_length=100,
        blank=True,
        null=True,
        help_text="Source reference, formatted TYPE:ID",
    )

    description = models.TextField()

    posted_at = models.DateTimeField(
        default=timezone.now,
        help_text="Accounting effective date",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    is_posted = models.BooleanField(default=True)

    objects = JournalEntryQuerySet.as_manager()

    class Meta:
        ordering = ["-posted_at", "-created_at"]
        indexes = [
            models.Index(fields=["posted_at"], name="journal_posted_at_idx"),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["reference"],
                condition=Q(reference__isnull=False) & ~Q(reference=""),
                name="uniq_journal_reference_not_blank",
            )
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"JournalEntry #{self.id} - {self.reference or 'no reference'}"

    @property
    def reference_type(self) -> str:
        return (self.reference or "").partition(REFERENCE_SEPARATOR)[0]

    @property
    def reference_id(self) -> str:
        return (self.reference or "").partition(REFERENCE_SEPARATOR)[2]

    def clean(self):
        if self.reference is not None:
            self.reference = str(self.reference).strip() or None

        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError({"description": "Journal entry description is required"})

        if self.posted_at and timezone.is_naive(self.posted_at):
            self.posted_at = timezone.make_aware(self.posted_at, timezone.get_current_timezone())

    def save(self, *args, **kwargs):
        if self.pk:
            raise ValidationError("JournalEntry records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalEntry records are immutable and cannot be deleted")
