# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseInvoice, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "phone", "is_active", "total_settled", "last_settlement_at")
    list_filter = ("is_active",)
    search_fields = ("name", "phone", "email")
    readonly_fields = (
        "last_settlement_at",
        "last_settlement_amount",
        "total_settled",
        "created_at",
    )


@admin.register(PurchaseInvoice)
class PurchaseInvoiceAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_number",
        "supplier",
        "status",
        "total_amount",
        "paid_amount",
        "payment_status",
        "created_at",
    )
    list_filter = ("status", "payment_status")
    search_fields = ("invoice_number", "supplier__name")
    # paid_amount / payment_status move only through payment allocation
    readonly_fields = ("paid_amount", "payment_status", "received_at", "created_at")
