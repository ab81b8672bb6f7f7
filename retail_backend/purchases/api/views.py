# purchases/api/views.py

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from purchases.api.serializers import (
    PurchaseInvoiceCreateSerializer,
    PurchaseInvoiceSerializer,
    SupplierSerializer,
)
from purchases.models import PurchaseInvoice, Supplier
from purchases.services.receiving_service import (
    PurchaseReceivingError,
    cancel_purchase_invoice,
    receive_purchase_invoice,
)


class SupplierListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = SupplierSerializer

    @extend_schema(tags=["purchases"], responses=SupplierSerializer(many=True))
    def get(self, request):
        qs = Supplier.objects.filter(is_active=True).order_by("name")
        return Response(
            SupplierSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(
        tags=["purchases"],
        request=SupplierSerializer,
        responses={201: SupplierSerializer},
    )
    def post(self, request):
        s = SupplierSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        supplier = s.save()
        return Response(
            SupplierSerializer(supplier).data, status=status.HTTP_201_CREATED
        )


class PurchaseInvoiceListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PurchaseInvoiceSerializer

    @extend_schema(tags=["purchases"], responses=PurchaseInvoiceSerializer(many=True))
    def get(self, request):
        qs = PurchaseInvoice.objects.select_related("supplier").order_by("-created_at")

        supplier_id = request.query_params.get("supplier")
        if supplier_id:
            qs = qs.filter(supplier_id=supplier_id)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(
                PurchaseInvoiceSerializer(page, many=True).data
            )
        return Response(
            PurchaseInvoiceSerializer(qs, many=True).data, status=status.HTTP_200_OK
        )

    @extend_schema(
        tags=["purchases"],
        request=PurchaseInvoiceCreateSerializer,
        responses={201: PurchaseInvoiceSerializer},
    )
    def post(self, request):
        s = PurchaseInvoiceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            supplier = Supplier.objects.get(id=data["supplier_id"], is_active=True)
        except Supplier.DoesNotExist:
            return Response(
                {"detail": "Supplier not found"}, status=status.HTTP_400_BAD_REQUEST
            )

        try:
            with transaction.atomic():
                invoice = PurchaseInvoice.objects.create(
                    supplier=supplier,
                    invoice_number=data["invoice_number"],
                    invoice_date=data.get("invoice_date") or timezone.localdate(),
                    total_amount=data["total_amount"],
                    status=PurchaseInvoice.STATUS_DRAFT,
                    created_by=request.user,
                )
        except (IntegrityError, ValidationError):
            return Response(
                {"detail": "Invoice number already exists for this supplier"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(
            PurchaseInvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED
        )


class PurchaseInvoiceReceiveView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"], request=None)
    def post(self, request, invoice_id):
        try:
            result = receive_purchase_invoice(invoice_id=invoice_id, user=request.user)
        except PurchaseReceivingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result, status=status.HTTP_200_OK)


class PurchaseInvoiceCancelView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"], request=None)
    def post(self, request, invoice_id):
        try:
            result = cancel_purchase_invoice(invoice_id=invoice_id)
        except PurchaseReceivingError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        return Response(result, status=status.HTTP_200_OK)
