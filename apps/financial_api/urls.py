from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    AccountPayableViewSet, AccountReceivableViewSet, CashFlowEntryViewSet, InvoiceViewSet, summary,
)

router = DefaultRouter()
router.register(r'invoices', InvoiceViewSet, basename='invoice')
router.register(r'payables', AccountPayableViewSet, basename='account-payable')
router.register(r'receivables', AccountReceivableViewSet, basename='account-receivable')
router.register(r'cash-flow', CashFlowEntryViewSet, basename='cash-flow')

urlpatterns = [
    path('summary/', summary, name='financial-summary'),
    path('', include(router.urls)),
]
