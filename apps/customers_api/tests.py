from decimal import Decimal

import pytest
from django.urls import reverse

from apps.audit_api.models import AuditLog
from apps.roles_api.models import Role
from .models import Customer, Pool


@pytest.fixture
def salesperson_client(client_for):
    return client_for(Role.SALESPERSON)


def customer_payload(**overrides):
    data = {
        'full_name': 'Maria da Silva',
        'person_type': 'individual',
        'document': '123.456.789-01',
        'phone': '(11) 98765-4321',
        'email': 'maria@example.com',
        'address_zip': '01310-100',
        'address_state': 'sp',
    }
    data.update(overrides)
    return data


@pytest.mark.django_db
def test_create_customer_normalizes_fields(salesperson_client):
    user, client = salesperson_client
    response = client.post(reverse('customer-list'), customer_payload(), format='json')

    assert response.status_code == 201
    assert response.data['document'] == '12345678901'
    assert response.data['address_zip'] == '01310100'
    assert response.data['address_state'] == 'SP'
    customer = Customer.objects.get(pk=response.data['id'])
    assert customer.created_by == user
    assert AuditLog.objects.filter(action='create', table_name=Customer._meta.db_table).exists()


@pytest.mark.django_db
@pytest.mark.parametrize('person_type,document', [
    ('individual', '1234567890'),
    ('company', '12345678901'),
])
def test_document_length_depends_on_person_type(salesperson_client, person_type, document):
    _, client = salesperson_client
    response = client.post(reverse('customer-list'),
                           customer_payload(person_type=person_type, document=document), format='json')
    assert response.status_code == 400
    assert 'document' in response.data['details']


@pytest.mark.django_db
def test_company_with_cnpj_is_valid(salesperson_client):
    _, client = salesperson_client
    response = client.post(reverse('customer-list'),
                           customer_payload(person_type='company', document='12.345.678/0001-90'), format='json')
    assert response.status_code == 201
    assert response.data['document'] == '12345678000190'


@pytest.mark.django_db
def test_phone_required_email_optional(salesperson_client):
    _, client = salesperson_client
    response = client.post(reverse('customer-list'), customer_payload(phone=''), format='json')
    assert response.status_code == 400
    assert 'phone' in response.data['details']

    payload = customer_payload()
    payload.pop('email')
    response = client.post(reverse('customer-list'), payload, format='json')
    assert response.status_code == 201


@pytest.mark.django_db
def test_invalid_cep(salesperson_client):
    _, client = salesperson_client
    response = client.post(reverse('customer-list'), customer_payload(address_zip='123'), format='json')
    assert response.status_code == 400
    assert 'address_zip' in response.data['details']


@pytest.mark.django_db
def test_technician_can_view_but_not_create(client_for, customer):
    _, client = client_for(Role.TECHNICIAN)
    assert client.get(reverse('customer-list')).status_code == 200
    response = client.post(reverse('customer-list'), customer_payload(), format='json')
    assert response.status_code == 403


@pytest.mark.django_db
def test_retrieve_logs_sensitive_view(salesperson_client, customer):
    user, client = salesperson_client
    response = client.get(reverse('customer-detail', args=[customer.id]))
    assert response.status_code == 200
    assert AuditLog.objects.filter(
        user=user, action='view_sensitive', record_id=str(customer.id)
    ).exists()


@pytest.mark.django_db
def test_toggle_status_archives_and_reactivates(salesperson_client, customer):
    _, client = salesperson_client
    url = reverse('customer-toggle-status', args=[customer.id])

    response = client.post(url)
    assert response.status_code == 200
    assert response.data['is_active'] is False

    response = client.post(url)
    assert response.data['is_active'] is True
    assert AuditLog.objects.filter(action='status_change', record_id=str(customer.id)).count() == 2


@pytest.mark.django_db
def test_delete_requires_permission(client_for, customer):
    _, manager = client_for(Role.MANAGER)
    assert manager.delete(reverse('customer-detail', args=[customer.id])).status_code == 403

    _, admin = client_for(Role.ADMIN)
    assert admin.delete(reverse('customer-detail', args=[customer.id])).status_code == 204
    assert not Customer.objects.filter(pk=customer.id).exists()


@pytest.mark.django_db
def test_delete_with_appointments_is_rejected(client_for, appointment_factory, customer):
    appointment_factory()
    _, admin = client_for(Role.ADMIN)
    response = admin.delete(reverse('customer-detail', args=[customer.id]))
    assert response.status_code == 400
    assert Customer.objects.filter(pk=customer.id).exists()


@pytest.mark.django_db
def test_history_lists_appointments(salesperson_client, appointment_factory, customer, service_type):
    _, client = salesperson_client
    appointment = appointment_factory()

    response = client.get(reverse('customer-history', args=[customer.id]))
    assert response.status_code == 200
    assert response.data['appointments'][0]['id'] == appointment.id
    assert response.data['appointments'][0]['service_type'] == service_type.name
    assert response.data['invoices'] == []


@pytest.mark.django_db
def test_pool_volume_is_computed(pool):
    assert pool.volume == Decimal('48.00')


@pytest.mark.django_db
def test_pool_volume_keeps_explicit_value(customer):
    pool = Pool.objects.create(customer=customer, type=Pool.PoolType.VINYL,
                               length=Decimal('5'), width=Decimal('3'), depth=Decimal('1'),
                               volume=Decimal('14.50'))
    assert pool.volume == Decimal('14.50')


@pytest.mark.django_db
def test_customer_pools_endpoint(salesperson_client, customer, pool):
    _, client = salesperson_client
    response = client.get(reverse('customer-pools', args=[customer.id]))
    assert response.status_code == 200
    assert [item['id'] for item in response.data] == [pool.id]
