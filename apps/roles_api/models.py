from django.conf import settings
from django.db import models
from django.utils.timezone import now


class Role(models.TextChoices):
    """Enumeración cerrada de roles del sistema."""
    ADMIN = 'admin', 'Administrador'
    MANAGER = 'manager', 'Gerente'
    TECHNICIAN = 'technician', 'Técnico'
    FINANCE = 'finance', 'Financiero'
    SALESPERSON = 'salesperson', 'Vendedor'


class Permission(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.CharField(max_length=255, blank=True)
    module = models.CharField(max_length=50)
    action = models.CharField(max_length=50)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ['module', 'name']
        indexes = [
            models.Index(fields=['module'], name='permission_module_idx'),
        ]

    def __str__(self):
        return self.name


class RolePermission(models.Model):
    role = models.CharField(max_length=20, choices=Role.choices)
    permission = models.ForeignKey(Permission, on_delete=models.CASCADE, related_name='role_links')

    class Meta:
        unique_together = ('role', 'permission')
        indexes = [
            models.Index(fields=['role']),
        ]

    def __str__(self):
        return f"{self.role} -> {self.permission.name}"


class UserRole(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='user_roles'
    )
    role = models.CharField(max_length=20, choices=Role.choices)
    assigned_at = models.DateTimeField(default=now)

    class Meta:
        unique_together = ('user', 'role')
        indexes = [
            models.Index(fields=['user', 'role']),
        ]

    def __str__(self):
        who = getattr(self.user, "email", self.user_id)
        return f"{who} - {self.role}"
