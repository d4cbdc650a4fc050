import logging
from smtplib import SMTPException

from django.conf import settings
from django.core.mail import send_mail
from django.template import Template, Context
from django.utils import timezone

logger = logging.getLogger(__name__)


class NotificationType:
    CONFIRMATION = 'confirmation'
    REMINDER = 'reminder'
    CANCELLATION = 'cancellation'
    UPDATE = 'update'


EMAIL_TEMPLATES = {
    NotificationType.CONFIRMATION: {
        'subject': 'Agendamiento confirmado - {{ service_type }}',
        'body': (
            'Hola {{ customer_name }},\n\n'
            'Su servicio "{{ service_type }}" quedó confirmado para el {{ start_time }}.\n'
            '{% if technician %}Técnico responsable: {{ technician }}.\n{% endif %}'
            '\nGracias por su preferencia.'
        ),
    },
    NotificationType.REMINDER: {
        'subject': 'Recordatorio: {{ service_type }} mañana',
        'body': (
            'Hola {{ customer_name }},\n\n'
            'Le recordamos que mañana, {{ start_time }}, realizaremos el servicio "{{ service_type }}".\n'
            'Por favor deje libre el acceso a la piscina.'
        ),
    },
    NotificationType.CANCELLATION: {
        'subject': 'Agendamiento cancelado - {{ service_type }}',
        'body': (
            'Hola {{ customer_name }},\n\n'
            'El servicio "{{ service_type }}" previsto para el {{ start_time }} fue cancelado.\n'
            'Contáctenos para reprogramarlo.'
        ),
    },
    NotificationType.UPDATE: {
        'subject': 'Actualización de su agendamiento',
        'body': (
            'Hola {{ customer_name }},\n\n'
            'El estado de su servicio "{{ service_type }}" cambió a: {{ status }}.'
        ),
    },
}


class NotificationService:
    """
    Servicio para enviar notificaciones de agendamientos por e-mail
    """

    def build_context(self, appointment):
        start_time = timezone.localtime(appointment.start_time)
        return {
            'customer_name': appointment.customer.full_name,
            'service_type': appointment.service_type.name,
            'start_time': start_time.strftime('%d/%m/%Y %H:%M'),
            'technician': appointment.technician.full_name if appointment.technician else '',
            'status': appointment.get_status_display(),
        }

    def render(self, notification_type, context_data):
        """Devuelve (asunto, cuerpo) para el tipo de notificación"""
        template = EMAIL_TEMPLATES[notification_type]
        return (
            self._render_template(template['subject'], context_data).strip(),
            self._render_template(template['body'], context_data),
        )

    def send_appointment_email(self, appointment, notification_type):
        """
        Enviar el e-mail del tipo indicado al cliente del agendamiento.
        Los clientes sin e-mail se omiten.
        """
        if notification_type not in EMAIL_TEMPLATES:
            raise ValueError(f"Tipo de notificación desconocido: {notification_type}")

        recipient = appointment.customer.email
        if not recipient:
            logger.info("Cliente %s sin e-mail; notificación %s omitida",
                        appointment.customer_id, notification_type)
            return False

        subject, message = self.render(notification_type, self.build_context(appointment))
        try:
            send_mail(subject, message, settings.DEFAULT_FROM_EMAIL, [recipient])
        except (SMTPException, OSError):
            logger.exception("Error enviando notificación %s del agendamiento %s",
                             notification_type, appointment.pk)
            return False

        logger.info("Notificación %s enviada a %s", notification_type, recipient)
        return True

    def _render_template(self, template_text, context_data):
        if not template_text:
            return ''
        return Template(template_text).render(Context(context_data, autoescape=False))
