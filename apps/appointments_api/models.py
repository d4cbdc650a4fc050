from datetime import timedelta

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models
from rest_framework import serializers

from apps.customers_api.models import Customer, Pool
from apps.services_api.models import ServiceType
from apps.technicians_api.models import Technician
from .checklist import TaskList


class Appointment(models.Model):
    class Status(models.TextChoices):
        SCHEDULED = 'scheduled', 'Agendado'
        CONFIRMED = 'confirmed', 'Confirmado'
        IN_PROGRESS = 'in_progress', 'En progreso'
        COMPLETED = 'completed', 'Completado'
        CANCELLED = 'cancelled', 'Cancelado'

    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name='appointments')
    pool = models.ForeignKey(Pool, on_delete=models.SET_NULL, null=True, blank=True, related_name='appointments')
    technician = models.ForeignKey(Technician, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='appointments')
    service_type = models.ForeignKey(ServiceType, on_delete=models.PROTECT, related_name='appointments')
    start_time = models.DateTimeField()
    end_time = models.DateTimeField(blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.SCHEDULED)
    observations = models.TextField(blank=True)
    tasks = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='appointments_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Agendamiento'
        verbose_name_plural = 'Agendamientos'
        ordering = ['-start_time']
        indexes = [
            models.Index(fields=['start_time']),
            models.Index(fields=['status']),
        ]

    def __str__(self):
        return f'{self.customer} - {self.service_type} ({self.start_time:%Y-%m-%d %H:%M})'

    @property
    def task_list(self):
        return TaskList.from_json(self.tasks)

    def set_tasks(self, task_list):
        self.tasks = task_list.to_json()

    def parsed_tasks(self):
        """Checklist validado; lanza ValidationError de Django si la lista no es válida."""
        try:
            return TaskList.parse(self.tasks)
        except serializers.ValidationError as exc:
            raise ValidationError({'tasks': f"Checklist inválido: {exc.detail}"}) from exc

    def clean(self):
        super().clean()
        task_list = self.parsed_tasks()
        assigned = {task.assigned_to for task in task_list if task.assigned_to is not None}
        missing = assigned - set(Technician.objects.filter(pk__in=assigned).values_list('pk', flat=True))
        if missing:
            raise ValidationError({'tasks': f"Técnicos inexistentes: {sorted(missing)}"})

    def save(self, *args, **kwargs):
        if self.end_time is None and self.start_time is not None:
            self.end_time = self.start_time + timedelta(minutes=self.service_type.estimated_duration)
        update_fields = kwargs.get('update_fields')
        if update_fields is None or 'tasks' in update_fields:
            # Los ids generados quedan guardados y no cambian entre lecturas
            self.set_tasks(self.parsed_tasks())
        super().save(*args, **kwargs)
