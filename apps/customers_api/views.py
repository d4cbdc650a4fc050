from django.db.models import ProtectedError
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.audit_api.mixins import AuditLoggingMixin
from apps.audit_api.utils import log_view_sensitive
from apps.roles_api.permissions import HasActionPermission
from .models import Customer, Pool
from .serializers import CustomerSerializer, PoolSerializer


class CustomerViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    queryset = Customer.objects.all()
    serializer_class = CustomerSerializer
    permission_classes = [HasActionPermission]
    action_permissions = {
        'list': 'view_customers',
        'retrieve': 'view_customers',
        'pools': 'view_customers',
        'history': 'view_customers',
        'create': 'create_customers',
        'update': 'edit_customers',
        'partial_update': 'edit_customers',
        'toggle_status': 'edit_customers',
        'destroy': 'delete_customers',
    }

    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_fields = ['person_type', 'is_active', 'address_city', 'address_state']
    search_fields = ['full_name', 'document', 'email', 'phone']
    ordering_fields = ['full_name', 'created_at', 'updated_at']
    ordering = ['full_name']

    def get_create_kwargs(self):
        return {'created_by': self.request.user}

    def retrieve(self, request, *args, **kwargs):
        response = super().retrieve(request, *args, **kwargs)
        log_view_sensitive(request.user, Customer._meta.db_table, response.data['id'], request=request)
        return response

    def perform_destroy(self, instance):
        try:
            super().perform_destroy(instance)
        except ProtectedError:
            raise ValidationError("El cliente tiene agendamientos o facturas; archívelo en lugar de eliminarlo.")

    @action(detail=True, methods=['post'], url_path='toggle-status')
    def toggle_status(self, request, pk=None):
        """Archiva o reactiva un cliente"""
        customer = self.get_object()
        old_values = {'is_active': customer.is_active}
        customer.is_active = not customer.is_active
        customer.save(update_fields=['is_active', 'updated_at'])
        self.log_action('status_change', customer, old_values=old_values,
                        new_values={'is_active': customer.is_active})
        return Response(self.get_serializer(customer).data)

    @action(detail=True, methods=['get'])
    def pools(self, request, pk=None):
        customer = self.get_object()
        return Response(PoolSerializer(customer.pools.all(), many=True).data)

    @action(detail=True, methods=['get'])
    def history(self, request, pk=None):
        customer = self.get_object()
        from apps.appointments_api.models import Appointment
        from apps.financial_api.models import Invoice

        appointments = (Appointment.objects.filter(customer=customer)
                        .select_related('service_type', 'technician').order_by('-start_time')[:10])
        invoices = Invoice.objects.filter(customer=customer).order_by('-issue_date', '-id')[:10]

        return Response({
            'appointments': [{
                'id': apt.id,
                'start_time': apt.start_time,
                'status': apt.status,
                'service_type': apt.service_type.name,
                'technician': apt.technician.full_name if apt.technician else None,
            } for apt in appointments],
            'invoices': [{
                'id': invoice.id,
                'invoice_number': invoice.invoice_number,
                'issue_date': invoice.issue_date,
                'total_amount': invoice.total_amount,
                'status': invoice.status,
            } for invoice in invoices],
        }, status=status.HTTP_200_OK)


class PoolViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    queryset = Pool.objects.select_related('customer')
    serializer_class = PoolSerializer
    permission_classes = [HasActionPermission]
    action_permissions = {
        'list': 'view_customers',
        'retrieve': 'view_customers',
        'create': 'create_customers',
        'update': 'edit_customers',
        'partial_update': 'edit_customers',
        'destroy': 'delete_customers',
    }
    filterset_fields = ['customer', 'type', 'is_active']
    search_fields = ['customer__full_name', 'filtration_system']
    ordering_fields = ['last_maintenance', 'created_at']
