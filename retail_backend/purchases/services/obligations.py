# purchases/services/obligations.py

"""
SUPPLIER INVOICE REPOSITORY

Only RECEIVED invoices are owed to the supplier.
"""

from payments.services.repository import ModelObligationRepository
from purchases.models import PurchaseInvoice


class SupplierInvoiceRepository(ModelObligationRepository):
    model = PurchaseInvoice
    payer_field = "supplier_id"

    def get_queryset(self):
        return PurchaseInvoice.objects.filter(status=PurchaseInvoice.STATUS_RECEIVED)
