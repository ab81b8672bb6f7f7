# payments/api/serializers.py

from rest_framework import serializers

from accounting.services.account_resolver import PAYMENT_METHOD_ACCOUNTS
from payments.domain import PAYMENT_STATUS_CHOICES
from payments.models import PaymentAllocation, PaymentAllocationLine

PAYMENT_METHOD_CHOICES = sorted(PAYMENT_METHOD_ACCOUNTS)


class _PaymentOptionsSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(
        choices=PAYMENT_METHOD_CHOICES, required=False, allow_null=True
    )
    payment_account_code = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        max_length=10,
        help_text="Explicit asset account to receive into / pay from (overrides payment_method)",
    )
    reference = serializers.CharField(
        required=False, allow_blank=True, default="", max_length=128
    )


class CustomerPaymentAllocateSerializer(_PaymentOptionsSerializer):
    customer_id = serializers.UUIDField()
    # Validated by the allocation engine (InvalidAmount), not here
    payment_amount = serializers.IntegerField(help_text="Minor currency units")
    order_ids = serializers.ListField(
        child=serializers.UUIDField(), required=False, allow_empty=True
    )


class SupplierPaymentAllocateSerializer(_PaymentOptionsSerializer):
    supplier_id = serializers.UUIDField()
    payment_amount = serializers.IntegerField(help_text="Minor currency units")
    invoice_ids = serializers.ListField(
        child=serializers.UUIDField(), required=False, allow_empty=True
    )


class SinglePaymentSerializer(_PaymentOptionsSerializer):
    payment_amount = serializers.IntegerField(
        required=False,
        allow_null=True,
        help_text="Minor currency units; defaults to the full outstanding amount",
    )


class AllocationOutcomeSerializer(serializers.Serializer):
    obligation_id = serializers.CharField()
    reference = serializers.CharField()
    amount_allocated = serializers.IntegerField()
    new_status = serializers.ChoiceField(choices=PAYMENT_STATUS_CHOICES)


class AllocationResultSerializer(serializers.Serializer):
    allocation_id = serializers.CharField()
    payer_id = serializers.CharField()
    payment_amount = serializers.IntegerField()
    outcomes = AllocationOutcomeSerializer(many=True)
    total_allocated = serializers.IntegerField()
    excess_payment = serializers.IntegerField()
    remaining_balance = serializers.IntegerField()
    journal_entry_id = serializers.IntegerField(allow_null=True)


class OutstandingObligationSerializer(serializers.Serializer):
    id = serializers.CharField()
    reference = serializers.CharField()
    total_amount = serializers.IntegerField()
    paid_amount = serializers.IntegerField()
    outstanding_amount = serializers.IntegerField()
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class OutstandingSerializer(serializers.Serializer):
    payer_id = serializers.CharField()
    payer_name = serializers.CharField()
    obligations = OutstandingObligationSerializer(many=True)
    remaining_balance = serializers.IntegerField()


class PaymentAllocationLineSerializer(serializers.ModelSerializer):
    class Meta:
        model = PaymentAllocationLine
        fields = (
            "position",
            "obligation_id",
            "obligation_reference",
            "amount_allocated",
            "resulting_status",
        )


class PaymentAllocationSerializer(serializers.ModelSerializer):
    lines = PaymentAllocationLineSerializer(many=True, read_only=True)

    class Meta:
        model = PaymentAllocation
        fields = (
            "id",
            "direction",
            "payer_id",
            "payment_amount",
            "total_allocated",
            "excess_payment",
            "remaining_balance",
            "payment_method",
            "payment_account_code",
            "reference",
            "journal_entry",
            "created_by",
            "created_at",
            "lines",
        )
        read_only_fields = fields
