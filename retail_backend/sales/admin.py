# sales/admin.py

from django.contrib import admin

from sales.models.sale import Sale


# ======================================================
# SALE ADMIN
# ======================================================


@admin.register(Sale)
class SaleAdmin(admin.ModelAdmin):
    list_display = (
        "invoice_no",
        "customer",
        "status",
        "total_amount",
        "paid_amount",
        "payment_status",
        "created_at",
    )
    readonly_fields = (
        "invoice_no",
        "customer",
        "total_amount",
        "paid_amount",
        "payment_status",
        "created_at",
        "completed_at",
    )
    search_fields = ("invoice_no", "customer__name")
    list_filter = ("status", "payment_status", "created_at")
