import logging

from rest_framework.views import exception_handler
from rest_framework.response import Response

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """Envuelve los errores de DRF en {error, details, status_code}."""
    response = exception_handler(exc, context)
    if response is None:
        return response

    view = context.get('view')
    if response.status_code >= 500:
        logger.error("Error en %s: %s", view.__class__.__name__ if view else 'vista', exc)

    detail = getattr(exc, 'detail', None)
    message = detail if isinstance(detail, str) else getattr(exc, 'default_detail', str(exc))
    custom_response = {
        'error': str(message),
        'details': response.data,
        'status_code': response.status_code
    }
    headers = {
        name: response[name]
        for name in ('WWW-Authenticate', 'Retry-After')
        if response.has_header(name)
    }
    return Response(custom_response, status=response.status_code, headers=headers)
