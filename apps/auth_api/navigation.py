from apps.roles_api.guards import permission_guard, role_guard
from apps.roles_api.models import Role

# (clave, etiqueta, ruta, rol requerido, permiso requerido)
NAVIGATION_ITEMS = [
    ('dashboard', 'Dashboard', '/', None, None),
    ('customers', 'Clientes', '/customers', None, None),
    ('appointments', 'Agendamientos', '/appointments', None, None),
    ('financial', 'Financiero', '/financial', None, 'view_financial'),
    ('audit', 'Auditoría', '/audit', None, None),
    ('users', 'Usuarios', '/users', Role.ADMIN, None),
    ('settings', 'Configuración', '/settings', Role.ADMIN, None),
]


def build_navigation(session):
    """Entradas del menú visibles para el actor"""
    items = []
    for key, label, path, role, permission in NAVIGATION_ITEMS:
        item = {'key': key, 'label': label, 'path': path}
        if role is not None:
            item = role_guard(session, [role], item, hide_if_no_access=True)
        elif permission is not None:
            item = permission_guard(session, permission, item, hide_if_no_access=True)
        if item is not None:
            items.append(item)
    return items
