from django.contrib.auth import get_user_model
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.audit_api.mixins import AuditLoggingMixin
from apps.roles_api.permissions import HasActionPermission
from apps.roles_api.serializers import RoleAssignmentSerializer
from .serializers import UserSerializer

User = get_user_model()


class UserViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    serializer_class = UserSerializer
    permission_classes = [HasActionPermission]
    http_method_names = ['get', 'post', 'put', 'patch', 'head', 'options']
    action_permissions = {
        'list': 'view_users',
        'retrieve': 'view_users',
        'create': 'create_users',
        'update': 'edit_users',
        'partial_update': 'edit_users',
        'toggle_status': 'edit_users',
        'roles': 'manage_roles',
    }

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    search_fields = ['email', 'full_name']
    filterset_fields = ['is_active']
    ordering_fields = ['full_name', 'email', 'date_joined']
    ordering = ['full_name']

    def get_queryset(self):
        queryset = User.objects.all()
        role = self.request.query_params.get('role')
        if role:
            queryset = queryset.filter(user_roles__role=role).distinct()
        return queryset

    @action(detail=True, methods=['post'], url_path='toggle-status')
    def toggle_status(self, request, pk=None):
        """Activa o desactiva un usuario"""
        user = self.get_object()
        if user.pk == request.user.pk:
            raise ValidationError("No puedes desactivar tu propio usuario.")

        old_values = {'is_active': user.is_active}
        user.is_active = not user.is_active
        user.save(update_fields=['is_active'])
        self.log_action('status_change', user, old_values=old_values, new_values={'is_active': user.is_active})
        return Response(self.get_serializer(user).data)

    @action(detail=True, methods=['put'])
    def roles(self, request, pk=None):
        """Reemplaza el conjunto de roles del usuario"""
        user = self.get_object()
        serializer = RoleAssignmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        old_values = {'roles': user.role_names}
        new_roles = serializer.save(user)
        self.log_action('role_assign', user, old_values=old_values, new_values={'roles': new_roles})
        return Response({'id': user.pk, 'email': user.email, 'roles': new_roles})
