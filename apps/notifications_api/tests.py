from smtplib import SMTPException

import pytest

from apps.appointments_api.models import Appointment
from .services import NotificationService, NotificationType
from .tasks import send_appointment_notification, send_appointment_reminders


@pytest.mark.django_db
def test_confirmation_email_mentions_technician(appointment_factory, technician_factory, mailoutbox):
    technician = technician_factory(full_name='Lucas Andrade')
    appointment = appointment_factory(technician=technician)

    assert NotificationService().send_appointment_email(appointment, NotificationType.CONFIRMATION)
    assert len(mailoutbox) == 1
    message = mailoutbox[0]
    assert message.to == [appointment.customer.email]
    assert message.subject == 'Agendamiento confirmado - Limpieza semanal'
    assert 'Lucas Andrade' in message.body


@pytest.mark.django_db
def test_customer_without_email_is_skipped(appointment_factory, customer, mailoutbox):
    customer.email = ''
    customer.save()
    appointment = appointment_factory()

    assert NotificationService().send_appointment_email(appointment, NotificationType.REMINDER) is False
    assert mailoutbox == []


@pytest.mark.django_db
def test_unknown_notification_type(appointment_factory):
    with pytest.raises(ValueError):
        NotificationService().send_appointment_email(appointment_factory(), 'sms')


@pytest.mark.django_db
def test_smtp_failure_is_logged(monkeypatch, caplog, appointment_factory):
    def failing_send_mail(*args, **kwargs):
        raise SMTPException("servidor caído")

    monkeypatch.setattr('apps.notifications_api.services.send_mail', failing_send_mail)
    appointment = appointment_factory()
    assert NotificationService().send_appointment_email(appointment, NotificationType.UPDATE) is False
    assert "Error enviando notificación" in caplog.text


@pytest.mark.django_db
def test_notification_task_for_missing_appointment(mailoutbox):
    assert send_appointment_notification.delay(999999, NotificationType.CONFIRMATION).get() is False
    assert mailoutbox == []


@pytest.mark.django_db
def test_reminders_for_tomorrow(appointment_factory, customer_factory, mailoutbox):
    appointment_factory()
    appointment_factory(status=Appointment.Status.CONFIRMED)
    appointment_factory(status=Appointment.Status.CANCELLED)
    appointment_factory(customer=customer_factory(email=''))

    assert send_appointment_reminders.delay().get() == 2
    assert len(mailoutbox) == 2
    assert all(message.subject.startswith('Recordatorio') for message in mailoutbox)
