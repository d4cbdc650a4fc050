import logging

from celery import shared_task

from .services import mark_overdue

logger = logging.getLogger(__name__)


@shared_task
def mark_overdue_records():
    """Marcar facturas y cuentas vencidas"""
    updated = mark_overdue()
    logger.info("Registros marcados como vencidos: %s", updated)
    return updated
