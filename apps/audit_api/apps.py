from django.apps import AppConfig


class AuditApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.audit_api'
    verbose_name = 'Auditoría'
