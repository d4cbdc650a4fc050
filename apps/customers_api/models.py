import re
from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models


def only_digits(value):
    return re.sub(r'\D', '', value or '')


class Customer(models.Model):
    class PersonType(models.TextChoices):
        INDIVIDUAL = 'individual', 'Pessoa física'
        COMPANY = 'company', 'Pessoa jurídica'

    # Cantidad de dígitos del documento (CPF / CNPJ)
    DOCUMENT_LENGTH = {
        PersonType.INDIVIDUAL: 11,
        PersonType.COMPANY: 14,
    }

    full_name = models.CharField(max_length=255)
    person_type = models.CharField(max_length=20, choices=PersonType.choices, default=PersonType.INDIVIDUAL)
    document = models.CharField(max_length=14, blank=True, help_text="CPF o CNPJ, solo dígitos")
    phone = models.CharField(max_length=20)
    email = models.EmailField(blank=True, null=True)

    address_zip = models.CharField(max_length=9, blank=True)
    address_street = models.CharField(max_length=255, blank=True)
    address_number = models.CharField(max_length=20, blank=True)
    address_neighborhood = models.CharField(max_length=100, blank=True)
    address_city = models.CharField(max_length=100, blank=True)
    address_state = models.CharField(max_length=2, blank=True)

    observations = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
                                   related_name='customers_created')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['full_name']
        indexes = [
            models.Index(fields=['full_name']),
            models.Index(fields=['document']),
            models.Index(fields=['is_active']),
        ]

    def __str__(self):
        return self.full_name


class Pool(models.Model):
    class PoolType(models.TextChoices):
        FIBERGLASS = 'fiberglass', 'Fibra'
        MASONRY = 'masonry', 'Alvenaria'
        VINYL = 'vinyl', 'Vinil'

    customer = models.ForeignKey(Customer, on_delete=models.CASCADE, related_name='pools')
    type = models.CharField(max_length=20, choices=PoolType.choices)
    length = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)])
    width = models.DecimalField(max_digits=6, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)])
    depth = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True, validators=[MinValueValidator(0)])
    volume = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True,
                                 validators=[MinValueValidator(0)], help_text="Volumen en m³")
    filtration_system = models.CharField(max_length=255, blank=True)
    last_maintenance = models.DateField(null=True, blank=True)
    observations = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['customer__full_name', 'id']

    def __str__(self):
        return f"{self.get_type_display()} - {self.customer}"

    def save(self, *args, **kwargs):
        if self.volume is None and None not in (self.length, self.width, self.depth):
            volume = Decimal(str(self.length)) * Decimal(str(self.width)) * Decimal(str(self.depth))
            self.volume = volume.quantize(Decimal("0.01"))
        super().save(*args, **kwargs)
