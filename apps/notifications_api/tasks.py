from datetime import timedelta
import logging

from celery import shared_task
from django.utils import timezone

from .services import NotificationService, NotificationType

logger = logging.getLogger(__name__)


@shared_task
def send_appointment_notification(appointment_id, notification_type):
    """Enviar la notificación de un agendamiento"""
    from apps.appointments_api.models import Appointment

    appointment = (Appointment.objects.select_related('customer', 'service_type', 'technician')
                   .filter(pk=appointment_id).first())
    if appointment is None:
        logger.warning("Agendamiento %s no encontrado; notificación %s omitida", appointment_id, notification_type)
        return False
    return NotificationService().send_appointment_email(appointment, notification_type)


@shared_task
def send_appointment_reminders():
    """Enviar recordatorios de los agendamientos de mañana"""
    from apps.appointments_api.models import Appointment

    tomorrow = timezone.localdate() + timedelta(days=1)
    appointments = Appointment.objects.filter(
        start_time__date=tomorrow,
        status__in=[Appointment.Status.SCHEDULED, Appointment.Status.CONFIRMED],
    ).select_related('customer', 'service_type', 'technician')

    service = NotificationService()
    sent_count = sum(
        1 for appointment in appointments
        if service.send_appointment_email(appointment, NotificationType.REMINDER)
    )
    logger.info("Enviados %s recordatorios para %s", sent_count, tomorrow)
    return sent_count
