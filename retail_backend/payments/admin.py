# payments/admin.py

from django.contrib import admin

from payments.models import PaymentAllocation, PaymentAllocationLine


class PaymentAllocationLineInline(admin.TabularInline):
    model = PaymentAllocationLine
    extra = 0
    can_delete = False
    readonly_fields = (
        "position",
        "obligation_id",
        "obligation_reference",
        "amount_allocated",
        "resulting_status",
    )

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(PaymentAllocation)
class PaymentAllocationAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "direction",
        "payer_id",
        "payment_amount",
        "total_allocated",
        "excess_payment",
        "remaining_balance",
        "created_at",
    )
    list_filter = ("direction", "payment_method")
    search_fields = ("payer_id", "reference", "lines__obligation_reference")
    ordering = ("-created_at",)
    inlines = [PaymentAllocationLineInline]

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
