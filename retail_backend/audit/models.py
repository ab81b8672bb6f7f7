# audit/models.py

"""
AUDIT EVENT (IMMUTABLE)

Append-only record of financially relevant actions.
Created once. Never updated. Never deleted.
"""

import uuid

from django.conf import settings
from django.db import models
from django.utils import timezone

User = settings.AUTH_USER_MODEL


class AuditEvent(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    # e.g. "customer.payment.allocated"
    event_type = models.CharField(max_length=64, db_index=True)

    entity_type = models.CharField(max_length=32)
    entity_id = models.CharField(max_length=64)

    payload = models.JSONField(default=dict, blank=True)

    actor = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_events",
    )

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["entity_type", "entity_id"], name="audit_event_entity_idx"),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("AuditEvent records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("AuditEvent records cannot be deleted")

    def __str__(self):
        return f"{self.event_type} | {self.entity_type}:{self.entity_id}"
