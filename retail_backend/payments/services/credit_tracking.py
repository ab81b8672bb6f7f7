# payments/services/credit_tracking.py

"""
CREDIT TRACKING (BEST-EFFORT)

Aggregate repayment statistics on the payer row, used for credit-limit
bookkeeping. The orchestrator runs this inside a savepoint and only logs a
failure; settlement itself never depends on it.
"""

from __future__ import annotations

from django.db.models import F
from django.utils import timezone

from payments.services.exceptions import PayerNotFound


class CreditTrackingUpdater:
    def record(self, payer_id, amount_settled: int) -> None:
        raise NotImplementedError


class ModelSettlementTracker(CreditTrackingUpdater):
    """
    Writes SettlementTrackingModel fields on the given payer model.
    """

    def __init__(self, model):
        self.model = model

    def record(self, payer_id, amount_settled: int) -> None:
        amount_settled = int(amount_settled)
        if amount_settled <= 0:
            return

        updated = self.model.objects.filter(pk=payer_id).update(
            last_settlement_at=timezone.now(),
            last_settlement_amount=amount_settled,
            total_settled=F("total_settled") + amount_settled,
        )
        if not updated:
            raise PayerNotFound(
                f"{self.model._meta.verbose_name} {payer_id} not found for settlement tracking"
            )
