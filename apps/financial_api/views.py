from rest_framework import viewsets, filters
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.audit_api.mixins import AuditLoggingMixin
from apps.roles_api.decorators import require_permission
from apps.roles_api.permissions import HasActionPermission
from .models import AccountPayable, AccountReceivable, CashFlowEntry, Invoice
from .serializers import (
    AccountPayableSerializer, AccountReceivableSerializer, CashFlowEntrySerializer,
    InvoiceSerializer, PaymentStatusSerializer,
)
from .services import financial_summary, update_payment_status


class PaymentStatusMixin:
    """Acción `payment-status` para facturas y cuentas"""

    @action(detail=True, methods=['post'], url_path='payment-status')
    def payment_status(self, request, pk=None):
        record = self.get_object()
        serializer = PaymentStatusSerializer(
            data=request.data,
            context={'status_choices': [value for value, _label in record.Status.choices]},
        )
        serializer.is_valid(raise_exception=True)

        old_values = {'status': record.status}
        update_payment_status(record, serializer.validated_data['status'],
                              serializer.validated_data.get('payment_method'))
        self.log_action('status_change', record, old_values=old_values, new_values={'status': record.status})
        return Response(self.get_serializer(record).data)


class FinancialViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    permission_classes = [HasActionPermission]
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']
    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]

    def get_create_kwargs(self):
        return {'created_by': self.request.user}


class InvoiceViewSet(PaymentStatusMixin, FinancialViewSet):
    queryset = Invoice.objects.select_related('customer').prefetch_related('items')
    serializer_class = InvoiceSerializer
    action_permissions = {
        'list': 'view_financial',
        'retrieve': 'view_financial',
        'payment_status': 'update_payments',
        'default': 'create_invoices',
    }
    filterset_fields = ['status', 'customer', 'appointment']
    search_fields = ['invoice_number', 'customer__full_name']
    ordering_fields = ['issue_date', 'due_date', 'total_amount']


class AccountPayableViewSet(PaymentStatusMixin, FinancialViewSet):
    queryset = AccountPayable.objects.all()
    serializer_class = AccountPayableSerializer
    action_permissions = {
        'list': 'view_financial',
        'retrieve': 'view_financial',
        'payment_status': 'update_payments',
        'default': 'manage_payables',
    }
    filterset_fields = ['status', 'category']
    search_fields = ['supplier_name', 'description', 'document_number']
    ordering_fields = ['due_date', 'amount']


class AccountReceivableViewSet(PaymentStatusMixin, FinancialViewSet):
    queryset = AccountReceivable.objects.select_related('customer')
    serializer_class = AccountReceivableSerializer
    action_permissions = {
        'list': 'view_financial',
        'retrieve': 'view_financial',
        'payment_status': 'update_payments',
        'default': 'manage_receivables',
    }
    filterset_fields = ['status', 'customer', 'invoice']
    search_fields = ['customer__full_name', 'description']
    ordering_fields = ['due_date', 'amount']


class CashFlowEntryViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = CashFlowEntry.objects.all()
    serializer_class = CashFlowEntrySerializer
    permission_classes = [HasActionPermission]
    action_permissions = {'default': 'view_financial'}
    filterset_fields = ['entry_type', 'category', 'reference_type']
    ordering_fields = ['date', 'amount']


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@require_permission('view_financial')
def summary(request):
    """Indicadores financieros generales"""
    return Response(financial_summary())
