from rest_framework import viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from apps.audit_api.mixins import AuditLoggingMixin
from apps.roles_api.permissions import HasActionPermission
from .models import Technician
from .serializers import TechnicianSerializer


class TechnicianViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    queryset = Technician.objects.select_related('user')
    serializer_class = TechnicianSerializer
    permission_classes = [HasActionPermission]
    action_permissions = {
        'list': 'view_technicians',
        'retrieve': 'view_technicians',
        # El selector de técnico del agendamiento también lo usan quienes crean citas
        'active': ('view_technicians', 'create_appointments'),
        'default': 'manage_technicians',
    }
    filterset_fields = ['is_active', 'user']
    search_fields = ['full_name', 'email', 'phone']
    ordering_fields = ['full_name', 'hourly_rate', 'created_at']
    ordering = ['full_name']

    @action(detail=False, methods=['get'])
    def active(self, request):
        technicians = self.filter_queryset(self.get_queryset().filter(is_active=True))
        return Response(self.get_serializer(technicians, many=True).data)
