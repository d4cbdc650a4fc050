from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from apps.roles_api.models import Permission, Role, RolePermission, UserRole
from apps.roles_api.permission_config import PERMISSION_CATALOG, permissions_for_role


class Command(BaseCommand):
    help = "Sincroniza el catálogo de permisos y el mapeo rol -> permisos por defecto"

    def add_arguments(self, parser):
        parser.add_argument('--reset', action='store_true',
                            help='Elimina asignaciones que no estén en la configuración por defecto')
        parser.add_argument('--assign', nargs=2, metavar=('EMAIL', 'ROLE'),
                            help='Asigna un rol a un usuario existente')

    @transaction.atomic
    def handle(self, *args, **options):
        for name, config in PERMISSION_CATALOG.items():
            _, created = Permission.objects.update_or_create(
                name=name,
                defaults={
                    'description': config['description'],
                    'module': config['module'],
                    'action': config['action'],
                    'is_active': True,
                },
            )
            if created:
                self.stdout.write(self.style.SUCCESS(f"Permiso {name} creado"))

        for role in Role:
            names = permissions_for_role(role)
            if options['reset']:
                RolePermission.objects.filter(role=role).exclude(permission__name__in=names).delete()
            for permission in Permission.objects.filter(name__in=names):
                RolePermission.objects.get_or_create(role=role, permission=permission)
            total = RolePermission.objects.filter(role=role).count()
            self.stdout.write(self.style.SUCCESS(f"{role.value} actualizado con {total} permisos"))

        if options['assign']:
            email, role = options['assign']
            if role not in Role.values:
                raise CommandError(f"Rol desconocido: {role}")
            user = get_user_model().objects.filter(email=email).first()
            if user is None:
                raise CommandError(f"Usuario no encontrado: {email}")
            UserRole.objects.get_or_create(user=user, role=role)
            self.stdout.write(self.style.SUCCESS(f"Rol {role} asignado a {email}"))

        self.stdout.write(self.style.SUCCESS("Roles sincronizados correctamente"))
