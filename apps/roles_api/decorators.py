from functools import wraps
from django.http import JsonResponse

from apps.auth_api.session import ActorSession


def _deny_unless(check):
    def decorator(view_func):
        @wraps(view_func)
        def wrapper(request, *args, **kwargs):
            if not request.user.is_authenticated:
                return JsonResponse({'error': 'No autenticado'}, status=401)

            if not check(ActorSession.for_request(request)):
                return JsonResponse({'error': 'Sin permisos'}, status=403)

            return view_func(request, *args, **kwargs)
        return wrapper
    return decorator


def require_permission(permission_name):
    """Decorador para verificar permisos en vistas"""
    return _deny_unless(lambda session: session.has_permission(permission_name))


def require_role(*roles):
    """Decorador para verificar que el actor tenga alguno de los roles"""
    return _deny_unless(lambda session: session.has_any_role(roles))
