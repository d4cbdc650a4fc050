from django.conf import settings
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view

from apps.auth_api.session import ActorSession
from .models import AuditLog
from .serializers import AuditLogSerializer


@extend_schema_view(
    list=extend_schema(description="Registros de auditoría, más recientes primero (máximo configurable)."),
    retrieve=extend_schema(description="Detalle de un registro de auditoría."),
)
class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Con view_audit_logs el actor ve todos los registros y la columna de
    usuario; sin él, solo sus propios registros.
    """
    serializer_class = AuditLogSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = None
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['action', 'table_name', 'user']
    search_fields = ['action', 'table_name', 'record_id', 'user__email', 'user__full_name']
    ordering_fields = ['created_at', 'action', 'table_name']
    ordering = ['-created_at', '-id']

    def get_session(self):
        return ActorSession.for_request(self.request)

    def get_queryset(self):
        queryset = AuditLog.objects.select_related('user').order_by('-created_at', '-id')
        if not self.get_session().has_permission('view_audit_logs'):
            queryset = queryset.filter(user=self.request.user)

        date_from = self.request.query_params.get('date_from')
        if date_from:
            queryset = queryset.filter(created_at__date__gte=date_from)

        date_to = self.request.query_params.get('date_to')
        if date_to:
            queryset = queryset.filter(created_at__date__lte=date_to)

        return queryset

    def get_serializer_context(self):
        context = super().get_serializer_context()
        context['session'] = self.get_session()
        return context

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())[:settings.AUDIT_LOG_LIST_LIMIT]
        serializer = self.get_serializer(queryset, many=True)
        return Response(serializer.data)

    @action(detail=False, methods=['get'], url_path='filters', url_name='filters')
    def filter_options(self, request):
        """Acciones y tablas presentes en los registros visibles"""
        queryset = self.get_queryset().order_by()
        return Response({
            'actions': sorted(set(queryset.values_list('action', flat=True))),
            'tables': sorted(set(queryset.exclude(table_name='').values_list('table_name', flat=True))),
        })
