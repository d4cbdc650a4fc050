"""
Sesión explícita del actor autenticado.

Una ActorSession se crea por usuario autenticado (inicio de sesión o
request con token) y resuelve sus roles y permisos una sola vez. Cambiar
de identidad implica una sesión nueva; cerrar sesión la invalida.
"""
import logging

from apps.roles_api.permission_checker import PermissionChecker

logger = logging.getLogger(__name__)


class ActorSession:

    def __init__(self, user):
        self.user = user
        self._roles = None
        self._permissions = None
        self._permission_rows = None

    @classmethod
    def for_request(cls, request):
        """Sesión del actor de la request, memorizada mientras la identidad no cambie."""
        user = getattr(request, 'user', None)
        session = getattr(request, '_actor_session', None)
        if session is None or session.user_id != getattr(user, 'pk', None):
            session = cls(user)
            request._actor_session = session
        return session

    @property
    def user_id(self):
        return getattr(self.user, 'pk', None)

    @property
    def is_authenticated(self):
        return bool(self.user is not None and self.user.is_authenticated)

    @property
    def roles(self):
        if self._roles is None:
            self._roles = frozenset(PermissionChecker.get_user_roles(self.user))
        return self._roles

    @property
    def permission_rows(self):
        if self._permission_rows is None:
            self._permission_rows = PermissionChecker.get_user_permissions(self.user)
        return self._permission_rows

    @property
    def permissions(self):
        if self._permissions is None:
            self._permissions = frozenset(row['permission_name'] for row in self.permission_rows)
        return self._permissions

    def has_role(self, role):
        return role in self.roles

    def has_any_role(self, roles):
        return any(self.has_role(role) for role in roles)

    def has_permission(self, permission_name):
        return permission_name in self.permissions

    def refresh_permissions(self):
        """Vuelve a resolver los permisos del actor. Idempotente."""
        self._permission_rows = None
        self._permissions = None
        return self.permissions

    def refresh(self):
        self._roles = None
        return self.refresh_permissions()

    def invalidate(self):
        logger.debug("Sesión invalidada para el usuario %s", self.user_id)
        self.user = None
        self._roles = frozenset()
        self._permissions = frozenset()
        self._permission_rows = []

    def __repr__(self):
        return f"<ActorSession user={self.user_id} roles={sorted(self.roles)}>"
