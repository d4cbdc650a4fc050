from django.db.models import Count
from django.http import Http404
from rest_framework import viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema, extend_schema_view

from apps.audit_api.utils import log_audit_action
from .models import Permission, Role, RolePermission, UserRole
from .permissions import HasActionPermission
from .serializers import PermissionSerializer, RoleSerializer, RolePermissionsUpdateSerializer


@extend_schema_view(
    list=extend_schema(description="Lista el catálogo de permisos."),
    retrieve=extend_schema(description="Obtiene un permiso del catálogo."),
)
class PermissionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Permission.objects.all().order_by('module', 'name')
    serializer_class = PermissionSerializer
    permission_classes = [HasActionPermission]
    action_permissions = {'default': 'view_users'}
    pagination_class = None

    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_fields = ['module', 'action', 'is_active']
    search_fields = ['name', 'description', 'module']
    ordering_fields = ['name', 'module']


class RoleViewSet(viewsets.ViewSet):
    """Roles de la enumeración con su mapeo de permisos."""
    permission_classes = [HasActionPermission]
    action_permissions = {
        'list': 'view_users',
        'retrieve': 'view_users',
        'summary': 'view_users',
        'set_permissions': 'manage_roles',
    }
    lookup_value_regex = '[a-z_]+'

    def _describe(self, role):
        names = list(
            RolePermission.objects.filter(role=role)
            .order_by('permission__name')
            .values_list('permission__name', flat=True)
        )
        return {
            'role': role.value,
            'label': role.label,
            'permissions': names,
            'assigned_users': UserRole.objects.filter(role=role).count(),
        }

    def _get_role(self, pk):
        if pk not in Role.values:
            raise Http404("Rol no encontrado")
        return Role(pk)

    @extend_schema(responses={200: RoleSerializer(many=True)}, description="Lista los roles y sus permisos.")
    def list(self, request):
        data = [self._describe(role) for role in Role]
        return Response(RoleSerializer(data, many=True).data)

    @extend_schema(responses={200: RoleSerializer}, description="Obtiene un rol y sus permisos.")
    def retrieve(self, request, pk=None):
        role = self._get_role(pk)
        return Response(RoleSerializer(self._describe(role)).data)

    @extend_schema(
        request=RolePermissionsUpdateSerializer,
        responses={200: RoleSerializer},
        description="Reemplaza los permisos asignados a un rol."
    )
    @action(detail=True, methods=['put'], url_path='permissions')
    def set_permissions(self, request, pk=None):
        role = self._get_role(pk)
        before = self._describe(role)['permissions']
        serializer = RolePermissionsUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        after = serializer.save(role)
        log_audit_action(
            user=request.user,
            action='permission_update',
            table_name=RolePermission._meta.db_table,
            record_id=role.value,
            old_values={'permissions': before},
            new_values={'permissions': sorted(after)},
            request=request,
        )
        return Response(RoleSerializer(self._describe(role)).data)

    @action(detail=False, methods=['get'], url_path='summary')
    def summary(self, request):
        """Cantidad de usuarios por rol"""
        counts = dict(
            UserRole.objects.values('role').annotate(total=Count('id')).values_list('role', 'total')
        )
        return Response({role.value: counts.get(role.value, 0) for role in Role})
