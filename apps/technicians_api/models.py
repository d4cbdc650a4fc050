from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


class Technician(models.Model):
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                related_name='technician_profile')
    full_name = models.CharField(max_length=255)
    phone = models.CharField(max_length=20, blank=True)
    email = models.EmailField(blank=True)
    specialties = models.JSONField(default=list, blank=True, help_text="Lista de especialidades")
    certifications = models.JSONField(default=list, blank=True)
    hourly_rate = models.DecimalField(max_digits=8, decimal_places=2, null=True, blank=True,
                                      validators=[MinValueValidator(0)])
    work_radius_km = models.PositiveIntegerField(null=True, blank=True)
    availability = models.JSONField(default=dict, blank=True,
                                    help_text="Disponibilidad por día, p. ej. {'monday': ['08:00', '17:00']}")
    emergency_contact = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['full_name']

    def __str__(self):
        return self.full_name
