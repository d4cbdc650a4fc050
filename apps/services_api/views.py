from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.appointments_api.checklist import TaskSerializer
from apps.audit_api.mixins import AuditLoggingMixin
from apps.auth_api.session import ActorSession
from apps.roles_api.permissions import HasActionPermission
from .models import ServiceTemplate, ServiceType, TaskTemplate
from .serializers import ServiceTemplateSerializer, ServiceTypeSerializer, TaskTemplateSerializer
from .utils import active_templates_for, tasks_from_template

READ_ACTIONS = {
    'list': 'view_services',
    'retrieve': 'view_services',
    'default': 'manage_services',
}


class ServiceTypeViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    queryset = ServiceType.objects.all()
    serializer_class = ServiceTypeSerializer
    permission_classes = [HasActionPermission]
    action_permissions = {**READ_ACTIONS, 'templates': 'view_services'}

    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_fields = ['is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'price', 'estimated_duration']
    ordering = ['name']

    @action(detail=True, methods=['get'])
    def templates(self, request, pk=None):
        """Plantillas activas del tipo de servicio"""
        service_type = self.get_object()
        templates = active_templates_for(service_type.pk)
        return Response(ServiceTemplateSerializer(templates, many=True).data)


class ServiceTemplateViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    serializer_class = ServiceTemplateSerializer
    permission_classes = [HasActionPermission]
    action_permissions = {**READ_ACTIONS, 'instantiate': 'view_services'}
    filterset_fields = ['service_type', 'is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'created_at']
    ordering = ['name']

    def get_queryset(self):
        queryset = ServiceTemplate.objects.select_related('service_type').order_by('name')
        session = ActorSession.for_request(self.request)
        if not session.has_permission('manage_services'):
            queryset = queryset.filter(is_active=True)
        return queryset

    @action(detail=True, methods=['get'])
    def instantiate(self, request, pk=None):
        """Vista previa de las tareas que generaría la plantilla"""
        template = self.get_object()
        return Response(TaskSerializer(tasks_from_template(template), many=True).data)


class TaskTemplateViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    queryset = TaskTemplate.objects.all()
    serializer_class = TaskTemplateSerializer
    permission_classes = [HasActionPermission]
    action_permissions = READ_ACTIONS
    filterset_fields = ['category', 'is_active']
    search_fields = ['name', 'description']
    ordering_fields = ['name', 'category', 'estimated_minutes']
    ordering = ['category', 'name']
