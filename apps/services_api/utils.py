import logging

from django.db import DatabaseError

from apps.appointments_api.checklist import instantiate_from_template
from .models import ServiceTemplate

logger = logging.getLogger(__name__)


def active_templates_for(service_type_id):
    """Plantillas activas de un tipo de servicio ordenadas por nombre; vacío si la consulta falla."""
    try:
        return list(
            ServiceTemplate.objects.filter(service_type_id=service_type_id, is_active=True).order_by('name')
        )
    except DatabaseError:
        logger.exception("No se pudieron cargar las plantillas del tipo de servicio %s", service_type_id)
        return []


def tasks_from_template(template):
    return instantiate_from_template(template.default_tasks or [])
