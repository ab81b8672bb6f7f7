# payments/models/__init__.py

"""
PAYMENTS MODELS PACKAGE EXPORTS

Note:
- ObligationModel and SettlementTrackingModel are abstract; concrete
  obligations live in the sales and purchases apps.
"""

from payments.models.allocation import PaymentAllocation, PaymentAllocationLine
from payments.models.obligation import ObligationModel, SettlementTrackingModel

__all__ = [
    "ObligationModel",
    "SettlementTrackingModel",
    "PaymentAllocation",
    "PaymentAllocationLine",
]
