# payments/apps.py

"""
PAYMENTS APP CONFIG

Payment allocation engine:
- Lump-sum customer payments across unpaid orders
- Supplier payments across unpaid purchase invoices
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payment Allocation"
