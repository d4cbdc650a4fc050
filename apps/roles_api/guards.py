"""
Guardas para mostrar u ocultar contenido según el acceso del actor.

`content` y `fallback` pueden ser valores o callables; un callable solo se
evalúa cuando su rama es la que se devuelve.
"""


def _resolve(value):
    return value() if callable(value) else value


def guard(allowed, content, fallback=None, hide_if_no_access=False):
    if allowed:
        return _resolve(content)
    if hide_if_no_access:
        return None
    return _resolve(fallback)


def permission_guard(session, permission, content, fallback=None, hide_if_no_access=False):
    """Devuelve `content` si el actor tiene `permission`."""
    allowed = session is not None and session.has_permission(permission)
    return guard(allowed, content, fallback=fallback, hide_if_no_access=hide_if_no_access)


def role_guard(session, roles, content, fallback=None, hide_if_no_access=False):
    """Devuelve `content` si el actor tiene al menos uno de `roles`."""
    allowed = session is not None and session.has_any_role(roles)
    return guard(allowed, content, fallback=fallback, hide_if_no_access=hide_if_no_access)
