import logging

from django.db import DatabaseError

from .models import Permission, Role, UserRole

logger = logging.getLogger(__name__)


def _is_resolvable(user):
    return bool(user and user.is_authenticated and user.is_active)


class PermissionChecker:
    """
    Resuelve roles y permisos de un usuario contra la base de datos.

    Cualquier error de base de datos se registra y degrada a un resultado
    vacío: sin roles y sin permisos.
    """

    @staticmethod
    def get_user_roles(user):
        """Roles del usuario como miembros de Role"""
        if not _is_resolvable(user):
            return []
        try:
            values = list(
                UserRole.objects.filter(user=user).order_by('role').values_list('role', flat=True)
            )
        except DatabaseError:
            logger.exception("No se pudieron resolver los roles del usuario %s", user.pk)
            return []
        return [Role(value) for value in values if value in Role.values]

    @staticmethod
    def get_user_permissions(user):
        """
        Permisos efectivos del usuario: la unión de los permisos activos
        asignados a cada uno de sus roles.
        """
        if not _is_resolvable(user):
            return []
        try:
            rows = list(
                Permission.objects.filter(
                    is_active=True,
                    role_links__role__in=UserRole.objects.filter(user=user).values('role'),
                )
                .distinct()
                .order_by('module', 'name')
                .values('name', 'description', 'module', 'action')
            )
        except DatabaseError:
            logger.exception("No se pudieron resolver los permisos del usuario %s", user.pk)
            return []
        return [
            {
                'permission_name': row['name'],
                'permission_description': row['description'],
                'module': row['module'],
                'action': row['action'],
            }
            for row in rows
        ]

    @staticmethod
    def get_user_permission_names(user):
        return frozenset(p['permission_name'] for p in PermissionChecker.get_user_permissions(user))

    @staticmethod
    def user_has_permission(user, permission_name):
        """Verifica si el usuario tiene un permiso específico"""
        return permission_name in PermissionChecker.get_user_permission_names(user)

    @staticmethod
    def user_has_role(user, role):
        return role in PermissionChecker.get_user_roles(user)
