# payments/api/urls.py

from django.urls import path

from payments.api.views import (
    CustomerOrderPayView,
    CustomerOutstandingView,
    CustomerPaymentAllocateView,
    PaymentAllocationListView,
    SupplierInvoicePayView,
    SupplierOutstandingView,
    SupplierPaymentAllocateView,
)

urlpatterns = [
    path(
        "customers/allocate/",
        CustomerPaymentAllocateView.as_view(),
        name="customer-payment-allocate",
    ),
    path(
        "customers/orders/<uuid:sale_id>/pay/",
        CustomerOrderPayView.as_view(),
        name="customer-order-pay",
    ),
    path(
        "customers/<uuid:customer_id>/outstanding/",
        CustomerOutstandingView.as_view(),
        name="customer-outstanding",
    ),
    path(
        "suppliers/allocate/",
        SupplierPaymentAllocateView.as_view(),
        name="supplier-payment-allocate",
    ),
    path(
        "suppliers/invoices/<uuid:invoice_id>/pay/",
        SupplierInvoicePayView.as_view(),
        name="supplier-invoice-pay",
    ),
    path(
        "suppliers/<uuid:supplier_id>/outstanding/",
        SupplierOutstandingView.as_view(),
        name="supplier-outstanding",
    ),
    path("allocations/", PaymentAllocationListView.as_view(), name="payment-allocations"),
]
