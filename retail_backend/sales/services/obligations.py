# sales/services/obligations.py

"""
CUSTOMER ORDER REPOSITORY

Completed sales are the customer's obligations. Cancelled sales never
count as debt and are never locked or allocated to.
"""

from payments.services.repository import ModelObligationRepository
from sales.models import Sale


class CustomerOrderRepository(ModelObligationRepository):
    model = Sale
    payer_field = "customer_id"

    def get_queryset(self):
        return Sale.objects.filter(status=Sale.STATUS_COMPLETED)
