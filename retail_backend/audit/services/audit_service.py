# audit/services/audit_service.py

"""
AUDIT RECORDER

Writes AuditEvent rows in the caller's transaction: if the surrounding
unit of work rolls back, so does its audit entry.
"""

from __future__ import annotations

import logging

from audit.models import AuditEvent

logger = logging.getLogger(__name__)


class AuditRecorder:
    """
    Bound to one entity type (the payer kind: "customer" / "supplier").
    """

    def __init__(self, entity_type: str):
        self.entity_type = entity_type

    def log(self, event_type: str, entity_id, payload: dict, *, actor=None) -> AuditEvent:
        event = AuditEvent.objects.create(
            event_type=event_type,
            entity_type=self.entity_type,
            entity_id=str(entity_id),
            payload=payload or {},
            actor=actor if getattr(actor, "is_authenticated", False) else None,
        )

        logger.info(
            "Audit event recorded",
            extra={
                "event_type": event_type,
                "entity_type": self.entity_type,
                "entity_id": str(entity_id),
                "audit_event_id": str(event.id),
            },
        )
        return event
