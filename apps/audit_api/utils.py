import logging

from django.db import DatabaseError, transaction

from .models import AuditLog

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = ('password',)


def get_client_ip(request):
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def get_user_agent(request):
    return request.META.get('HTTP_USER_AGENT', '')


def snapshot(instance, exclude=SENSITIVE_FIELDS):
    """Valores de las columnas de una instancia, sin campos sensibles."""
    return {
        field.attname: field.value_from_object(instance)
        for field in instance._meta.concrete_fields
        if field.name not in exclude
    }


def log_audit_action(user, action, table_name='', record_id=None,
                     old_values=None, new_values=None, request=None):
    """
    Crea un registro de auditoría. Nunca interrumpe la operación que se
    audita: si la escritura falla se registra el error y devuelve None.
    """
    if user is not None and not getattr(user, 'is_authenticated', False):
        user = None
    try:
        with transaction.atomic():
            return AuditLog.objects.create(
                user=user,
                action=action,
                table_name=table_name or '',
                record_id='' if record_id is None else str(record_id),
                old_values=old_values,
                new_values=new_values,
                ip_address=get_client_ip(request) if request else None,
                user_agent=get_user_agent(request) if request else '',
            )
    except (DatabaseError, TypeError, ValueError):
        logger.exception("No se pudo registrar la acción de auditoría '%s' en %s", action, table_name)
        return None


def log_login(user, request=None):
    return log_audit_action(user, 'login', table_name='auth', request=request)


def log_login_failed(email, request=None):
    return log_audit_action(None, 'login_failed', table_name='auth',
                            new_values={'email': email}, request=request)


def log_logout(user, request=None):
    return log_audit_action(user, 'logout', table_name='auth', request=request)


def log_view_sensitive(user, table_name, record_id, request=None):
    return log_audit_action(user, 'view_sensitive', table_name=table_name,
                            record_id=record_id, request=request)
