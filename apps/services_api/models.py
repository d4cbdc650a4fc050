from django.core.serializers.json import DjangoJSONEncoder
from django.core.validators import MinValueValidator
from django.db import models


class ServiceType(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    estimated_duration = models.PositiveIntegerField(default=60, help_text="Duración en minutos")
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = 'Tipo de servicio'
        verbose_name_plural = 'Tipos de servicio'
        ordering = ['name']
        indexes = [
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return self.name


class ServiceTemplate(models.Model):
    """Plantilla de checklist para un tipo de servicio."""
    service_type = models.ForeignKey(ServiceType, on_delete=models.CASCADE, related_name='templates')
    name = models.CharField(max_length=100)
    description = models.TextField(blank=True)
    default_tasks = models.JSONField(default=list, blank=True, encoder=DjangoJSONEncoder,
                                     help_text="Lista de {description, estimated_minutes?, order?}")
    estimated_duration = models.PositiveIntegerField(null=True, blank=True, help_text="Duración en minutos")
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['name']
        unique_together = ('service_type', 'name')

    def __str__(self):
        return f"{self.service_type} - {self.name}"


class TaskTemplate(models.Model):
    """Catálogo de tareas reutilizables."""

    class Category(models.TextChoices):
        PREPARATION = 'preparation', 'Preparación'
        EXECUTION = 'execution', 'Ejecución'
        CLEANUP = 'cleanup', 'Limpieza'
        INSPECTION = 'inspection', 'Inspección'

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    category = models.CharField(max_length=20, choices=Category.choices, default=Category.EXECUTION)
    estimated_minutes = models.PositiveIntegerField(default=30, validators=[MinValueValidator(1)])
    requires_materials = models.JSONField(default=list, blank=True)
    safety_requirements = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['category', 'name']

    def __str__(self):
        return self.name
