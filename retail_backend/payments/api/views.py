# payments/api/views.py

"""
PAYMENT ALLOCATION API

Thin HTTP bindings over the customer / supplier payment services.
AllocationError subclasses render as {"detail", "code"} with their own status.
"""

from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView, ListAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from payments.api.serializers import (
    AllocationResultSerializer,
    CustomerPaymentAllocateSerializer,
    OutstandingSerializer,
    PaymentAllocationSerializer,
    SinglePaymentSerializer,
    SupplierPaymentAllocateSerializer,
)
from payments.models import PaymentAllocation
from payments.services.exceptions import AllocationError
from purchases.services.payment_service import (
    allocate_supplier_payment,
    get_supplier_outstanding,
    pay_supplier_invoice,
)
from sales.services.customer_payment_service import (
    allocate_customer_payment,
    get_customer_outstanding,
    pay_customer_order,
)


def _error_response(exc: AllocationError) -> Response:
    return Response({"detail": str(exc), "code": exc.code}, status=exc.http_status)


def _outstanding_payload(summary: dict) -> dict:
    return {
        "payer_id": summary["payer_id"],
        "payer_name": summary["payer_name"],
        "obligations": [
            {
                "id": o.id,
                "reference": o.display_reference,
                "total_amount": o.total_amount,
                "paid_amount": o.paid_amount,
                "outstanding_amount": o.outstanding_amount,
                "status": o.status,
                "created_at": o.created_at,
            }
            for o in summary["obligations"]
        ],
        "remaining_balance": summary["remaining_balance"],
    }


class _PaymentView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    def _payment_options(self, data: dict) -> dict:
        return {
            "payment_method": data.get("payment_method"),
            "payment_account_code": data.get("payment_account_code"),
            "reference": data.get("reference") or "",
            "created_by": self.request.user,
        }


# ======================================================
# CUSTOMERS
# ======================================================


class CustomerPaymentAllocateView(_PaymentView):
    serializer_class = CustomerPaymentAllocateSerializer

    @extend_schema(
        tags=["payments"],
        request=CustomerPaymentAllocateSerializer,
        responses={201: AllocationResultSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = allocate_customer_payment(
                customer_id=data["customer_id"],
                payment_amount=data["payment_amount"],
                order_ids=data.get("order_ids") or None,
                **self._payment_options(data),
            )
        except AllocationError as exc:
            return _error_response(exc)

        return Response(result.as_dict(), status=status.HTTP_201_CREATED)


class CustomerOrderPayView(_PaymentView):
    serializer_class = SinglePaymentSerializer

    @extend_schema(
        tags=["payments"],
        request=SinglePaymentSerializer,
        responses={201: AllocationResultSerializer},
    )
    def post(self, request, sale_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = pay_customer_order(
                sale_id=sale_id,
                payment_amount=data.get("payment_amount"),
                **self._payment_options(data),
            )
        except AllocationError as exc:
            return _error_response(exc)

        return Response(result.as_dict(), status=status.HTTP_201_CREATED)


class CustomerOutstandingView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["payments"], responses=OutstandingSerializer)
    def get(self, request, customer_id):
        try:
            summary = get_customer_outstanding(customer_id)
        except AllocationError as exc:
            return _error_response(exc)

        return Response(
            OutstandingSerializer(_outstanding_payload(summary)).data,
            status=status.HTTP_200_OK,
        )


# ======================================================
# SUPPLIERS
# ======================================================


class SupplierPaymentAllocateView(_PaymentView):
    serializer_class = SupplierPaymentAllocateSerializer

    @extend_schema(
        tags=["payments"],
        request=SupplierPaymentAllocateSerializer,
        responses={201: AllocationResultSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = allocate_supplier_payment(
                supplier_id=data["supplier_id"],
                payment_amount=data["payment_amount"],
                invoice_ids=data.get("invoice_ids") or None,
                **self._payment_options(data),
            )
        except AllocationError as exc:
            return _error_response(exc)

        return Response(result.as_dict(), status=status.HTTP_201_CREATED)


class SupplierInvoicePayView(_PaymentView):
    serializer_class = SinglePaymentSerializer

    @extend_schema(
        tags=["payments"],
        request=SinglePaymentSerializer,
        responses={201: AllocationResultSerializer},
    )
    def post(self, request, invoice_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = pay_supplier_invoice(
                invoice_id=invoice_id,
                payment_amount=data.get("payment_amount"),
                **self._payment_options(data),
            )
        except AllocationError as exc:
            return _error_response(exc)

        return Response(result.as_dict(), status=status.HTTP_201_CREATED)


class SupplierOutstandingView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["payments"], responses=OutstandingSerializer)
    def get(self, request, supplier_id):
        try:
            summary = get_supplier_outstanding(supplier_id)
        except AllocationError as exc:
            return _error_response(exc)

        return Response(
            OutstandingSerializer(_outstanding_payload(summary)).data,
            status=status.HTTP_200_OK,
        )


# ======================================================
# HISTORY
# ======================================================


@extend_schema(tags=["payments"])
class PaymentAllocationListView(ListAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentAllocationSerializer
    filterset_fields = ["direction", "payer_id"]

    def get_queryset(self):
        return PaymentAllocation.objects.prefetch_related("lines").order_by("-created_at")
