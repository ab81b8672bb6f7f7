# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import PurchaseInvoice, Supplier


class SupplierSerializer(serializers.ModelSerializer):
    class Meta:
        model = Supplier
        fields = (
            "id",
            "name",
            "phone",
            "email",
            "address",
            "is_active",
            "total_settled",
            "last_settlement_amount",
            "last_settlement_at",
            "created_at",
        )
        read_only_fields = (
            "id",
            "total_settled",
            "last_settlement_amount",
            "last_settlement_at",
            "created_at",
        )


class PurchaseInvoiceCreateSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    invoice_number = serializers.CharField(max_length=64)
    invoice_date = serializers.DateField(required=False)
    total_amount = serializers.IntegerField(
        min_value=1, help_text="Invoice total in minor currency units"
    )


class PurchaseInvoiceSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    outstanding_amount = serializers.IntegerField(read_only=True)

    class Meta:
        model = PurchaseInvoice
        fields = (
            "id",
            "supplier",
            "supplier_name",
            "invoice_number",
            "invoice_date",
            "status",
            "total_amount",
            "paid_amount",
            "outstanding_amount",
            "payment_status",
            "received_at",
            "created_at",
        )
        read_only_fields = fields
