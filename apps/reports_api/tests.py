from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone

from apps.appointments_api.models import Appointment
from apps.auth_api.models import User
from apps.financial_api.services import record_payable
from apps.roles_api.models import Role


@pytest.mark.django_db
def test_dashboard_for_technician_hides_restricted_blocks(client_for, technician_factory, appointment_factory,
                                                           customer_factory):
    user, client = client_for(Role.TECHNICIAN)
    own = technician_factory(user=user)
    appointment_factory(technician=own)
    appointment_factory(technician=own, status=Appointment.Status.IN_PROGRESS,
                        start_time=timezone.now() - timedelta(minutes=30))
    appointment_factory()
    customer_factory(is_active=False)

    response = client.get(reverse('dashboard'))
    assert response.status_code == 200
    assert response.data['active_customers'] == 1
    assert response.data['appointments']['upcoming'] == 1
    assert response.data['appointments']['in_progress'] == 1
    assert 'active_users' not in response.data
    assert 'financial' not in response.data


@pytest.mark.django_db
def test_dashboard_for_admin_includes_everything(client_for, appointment_factory):
    _, client = client_for(Role.ADMIN)
    appointment_factory()
    appointment_factory(status=Appointment.Status.CANCELLED)
    record_payable(supplier_name='Distribuidora Aqua', amount=Decimal('250.00'),
                   due_date=timezone.localdate() + timedelta(days=5))

    response = client.get(reverse('dashboard'))
    assert response.data['appointments']['upcoming'] == 1
    assert response.data['active_users'] == User.objects.filter(is_active=True).count()
    assert response.data['financial']['pending_payables'] == Decimal('250.00')


@pytest.mark.django_db
def test_dashboard_financial_block_follows_permission(client_for):
    _, client = client_for(Role.FINANCE)
    response = client.get(reverse('dashboard'))
    assert response.status_code == 200
    assert 'financial' in response.data
    assert 'active_users' not in response.data


@pytest.mark.django_db
def test_dashboard_without_roles_shows_no_appointments(client_for, appointment_factory):
    _, client = client_for()
    appointment_factory()
    response = client.get(reverse('dashboard'))
    assert response.status_code == 200
    assert response.data['appointments']['upcoming'] == 0


@pytest.mark.django_db
def test_dashboard_requires_authentication(api_client):
    assert api_client.get(reverse('dashboard')).status_code == 401
