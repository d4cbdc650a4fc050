from rest_framework.permissions import BasePermission

from apps.auth_api.session import ActorSession


def _as_tuple(value):
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


class RolePermission(BasePermission):
    """
    Verifica si el usuario tiene uno de los roles permitidos.
    """
    message = 'No tienes el rol requerido para esta acción.'

    def __init__(self, allowed_roles=None):
        self.allowed_roles = allowed_roles or []

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        return ActorSession.for_request(request).has_any_role(self.allowed_roles)


def role_permission_for(roles):
    """
    Genera dinámicamente un permiso específico para los roles indicados.
    """
    return type(
        f'RolePermissionFor{"_".join(str(r) for r in roles)}',
        (RolePermission,),
        {
            '__init__': lambda self: RolePermission.__init__(self, allowed_roles=roles)
        }
    )


class HasPermission(BasePermission):
    """
    Verifica que el usuario tenga al menos uno de los permisos requeridos.
    """
    message = 'No tienes permiso para realizar esta acción.'

    def __init__(self, required_permissions=None):
        self.required_permissions = _as_tuple(required_permissions)

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        session = ActorSession.for_request(request)
        return any(session.has_permission(name) for name in self.required_permissions)


def permission_required_for(*permission_names):
    """
    Genera dinámicamente una clase de permiso para los permisos indicados.
    """
    return type(
        f'HasPermissionFor{"_".join(permission_names)}',
        (HasPermission,),
        {
            '__init__': lambda self: HasPermission.__init__(self, required_permissions=permission_names)
        }
    )


class HasActionPermission(BasePermission):
    """
    Lee `action_permissions` de la vista: {acción: permiso o lista de permisos}.

    Una lista se satisface con cualquiera de sus permisos. Las acciones sin
    entrada usan la clave 'default'; si tampoco existe, se deniega el acceso.
    """
    message = 'No tienes permiso para realizar esta acción.'

    def get_required_permissions(self, request, view):
        mapping = getattr(view, 'action_permissions', {})
        action = getattr(view, 'action', None) or request.method.lower()
        if action in mapping:
            return _as_tuple(mapping[action])
        return _as_tuple(mapping.get('default'))

    def has_permission(self, request, view):
        if not request.user or not request.user.is_authenticated:
            return False
        required = self.get_required_permissions(request, view)
        if not required:
            return False
        session = ActorSession.for_request(request)
        return any(session.has_permission(name) for name in required)
