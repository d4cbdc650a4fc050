import pytest
from django.urls import reverse

from apps.auth_api.factories import UserFactory
from apps.roles_api.models import Role
from .models import Technician


@pytest.mark.django_db
def test_manager_registers_technician_linked_to_user(client_for):
    _, client = client_for(Role.MANAGER)
    linked = UserFactory()
    response = client.post(reverse('technician-list'), {
        'user': linked.id,
        'full_name': 'João Pereira',
        'phone': '11999990000',
        'specialties': ['limpeza', 'hidráulica'],
        'hourly_rate': '45.00',
        'availability': {'monday': ['08:00', '17:00']},
    }, format='json')

    assert response.status_code == 201
    assert response.data['user_email'] == linked.email
    assert Technician.objects.get(pk=response.data['id']).user == linked


@pytest.mark.django_db
def test_user_cannot_be_linked_twice(client_for, technician_factory):
    _, client = client_for(Role.MANAGER)
    linked = UserFactory()
    technician_factory(user=linked)
    response = client.post(reverse('technician-list'), {'user': linked.id, 'full_name': 'Outro'}, format='json')
    assert response.status_code == 400
    assert 'user' in response.data['details']


@pytest.mark.django_db
def test_availability_days_are_validated(client_for):
    _, client = client_for(Role.MANAGER)
    response = client.post(reverse('technician-list'), {
        'full_name': 'Ana',
        'availability': {'funday': ['08:00', '12:00']},
    }, format='json')
    assert response.status_code == 400
    assert 'availability' in response.data['details']


@pytest.mark.django_db
def test_active_list_available_to_appointment_creators(client_for, technician_factory):
    active = technician_factory()
    technician_factory(is_active=False)

    _, salesperson = client_for(Role.SALESPERSON)
    response = salesperson.get(reverse('technician-active'))
    assert response.status_code == 200
    assert [item['id'] for item in response.data] == [active.id]

    assert salesperson.get(reverse('technician-list')).status_code == 403


@pytest.mark.django_db
def test_technician_role_cannot_manage_technicians(client_for, technician_factory):
    _, client = client_for(Role.TECHNICIAN)
    technician = technician_factory()
    response = client.patch(reverse('technician-detail', args=[technician.id]), {'is_active': False},
                            format='json')
    assert response.status_code == 403
