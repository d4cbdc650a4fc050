from datetime import timedelta
from decimal import Decimal
from io import StringIO

import pytest
from django.core.cache import cache
from django.core.management import call_command
from django.utils import timezone
from faker import Faker
from rest_framework.test import APIClient

from apps.auth_api.factories import UserFactory
from apps.customers_api.models import Customer, Pool
from apps.services_api.models import ServiceTemplate, ServiceType
from apps.technicians_api.models import Technician

faker = Faker('pt_BR')


@pytest.fixture(autouse=True)
def clear_cache():
    """Los límites de peticiones viven en la caché; se limpia entre pruebas."""
    cache.clear()


@pytest.fixture
def api_client():
    """Retorna una instancia de APIClient para pruebas."""
    return APIClient()


@pytest.fixture
def seeded_permissions(db):
    """Catálogo de permisos y mapeo por defecto de los roles."""
    call_command('sync_roles', stdout=StringIO())


@pytest.fixture
def user_with_roles(seeded_permissions):
    """Crea un usuario con los roles indicados."""
    def create_user(*roles, **kwargs):
        return UserFactory(roles=list(roles), **kwargs)
    return create_user


@pytest.fixture
def client_for(user_with_roles):
    """Crea un usuario con los roles indicados y devuelve (usuario, cliente autenticado)."""
    def create_client(*roles, **kwargs):
        user = user_with_roles(*roles, **kwargs)
        client = APIClient()
        client.force_authenticate(user=user)
        return user, client
    return create_client


@pytest.fixture
def customer_factory(db):
    """Crea y retorna un cliente para pruebas."""
    def create_customer(**kwargs):
        defaults = {
            'full_name': faker.name(),
            'person_type': Customer.PersonType.INDIVIDUAL,
            'document': faker.numerify('###########'),
            'phone': faker.msisdn(),
            'email': faker.email(),
        }
        defaults.update(kwargs)
        return Customer.objects.create(**defaults)
    return create_customer


@pytest.fixture
def customer(customer_factory):
    return customer_factory()


@pytest.fixture
def pool(customer):
    return Pool.objects.create(
        customer=customer,
        type=Pool.PoolType.FIBERGLASS,
        length=Decimal('8.00'),
        width=Decimal('4.00'),
        depth=Decimal('1.50'),
    )


@pytest.fixture
def service_type(db):
    return ServiceType.objects.create(
        name='Limpieza semanal',
        description='Aspirado, cepillado y control químico',
        estimated_duration=90,
        price=Decimal('180.00'),
    )


@pytest.fixture
def service_template(service_type):
    return ServiceTemplate.objects.create(
        service_type=service_type,
        name='Limpieza completa',
        default_tasks=[
            {'description': 'Cepillar paredes'},
            {'description': 'Aspirar fondo', 'estimated_minutes': 45},
            {'description': 'Medir pH y cloro', 'estimated_minutes': 10},
        ],
    )


@pytest.fixture
def technician_factory(db):
    def create_technician(**kwargs):
        defaults = {
            'full_name': faker.name(),
            'phone': faker.msisdn(),
            'specialties': ['limpieza'],
        }
        defaults.update(kwargs)
        return Technician.objects.create(**defaults)
    return create_technician


@pytest.fixture
def appointment_factory(customer, service_type):
    """Crea agendamientos para mañana con el cliente y tipo de servicio de prueba."""
    from apps.appointments_api.models import Appointment

    def create_appointment(**kwargs):
        defaults = {
            'customer': customer,
            'service_type': service_type,
            'start_time': timezone.now() + timedelta(days=1),
        }
        defaults.update(kwargs)
        return Appointment.objects.create(**defaults)
    return create_appointment
