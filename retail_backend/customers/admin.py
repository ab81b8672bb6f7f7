# customers/admin.py

from django.contrib import admin

from customers.models import Customer


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "phone",
        "is_active",
        "total_settled",
        "last_settlement_at",
    )
    list_filter = ("is_active",)
    search_fields = ("name", "phone", "email")
    readonly_fields = (
        "last_settlement_at",
        "last_settlement_amount",
        "total_settled",
        "created_at",
    )
