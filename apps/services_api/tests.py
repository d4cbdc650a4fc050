import logging
from decimal import Decimal

import pytest
from django.db import DatabaseError
from django.urls import reverse

from apps.roles_api.models import Role
from .models import ServiceTemplate, ServiceType, TaskTemplate
from .utils import active_templates_for, tasks_from_template


@pytest.mark.django_db
def test_manager_creates_service_type(client_for):
    _, client = client_for(Role.MANAGER)
    response = client.post(reverse('service-type-list'), {
        'name': 'Tratamiento de agua verde',
        'estimated_duration': 120,
        'price': '350.00',
    }, format='json')
    assert response.status_code == 201
    assert ServiceType.objects.filter(name='Tratamiento de agua verde').exists()


@pytest.mark.django_db
def test_service_type_duration_must_be_positive(client_for):
    _, client = client_for(Role.MANAGER)
    response = client.post(reverse('service-type-list'), {
        'name': 'Visita', 'estimated_duration': 0, 'price': '10.00',
    }, format='json')
    assert response.status_code == 400
    assert 'estimated_duration' in response.data['details']


@pytest.mark.django_db
def test_technician_reads_but_cannot_manage(client_for, service_type):
    _, client = client_for(Role.TECHNICIAN)
    assert client.get(reverse('service-type-list')).status_code == 200
    response = client.patch(reverse('service-type-detail', args=[service_type.id]), {'price': '1.00'},
                            format='json')
    assert response.status_code == 403


@pytest.mark.django_db
def test_template_default_tasks_are_validated(client_for, service_type):
    _, client = client_for(Role.MANAGER)
    response = client.post(reverse('service-template-list'), {
        'service_type': service_type.id,
        'name': 'Sin descripción',
        'default_tasks': [{'estimated_minutes': 10}],
    }, format='json')
    assert response.status_code == 400
    assert 'default_tasks' in response.data['details']

    response = client.post(reverse('service-template-list'), {
        'service_type': service_type.id,
        'name': 'Básica',
        'default_tasks': [{'description': 'Cepillar'}, {'description': 'Aspirar', 'estimated_minutes': 40}],
    }, format='json')
    assert response.status_code == 201
    assert response.data['default_tasks'] == [
        {'description': 'Cepillar'},
        {'description': 'Aspirar', 'estimated_minutes': 40},
    ]
    assert response.data['total_estimated_minutes'] == 70


@pytest.mark.django_db
def test_templates_of_service_type_are_active_and_sorted(client_for, service_type, service_template):
    ServiceTemplate.objects.create(service_type=service_type, name='Apertura de temporada')
    ServiceTemplate.objects.create(service_type=service_type, name='Antigua', is_active=False)
    other_type = ServiceType.objects.create(name='Reparación', price=Decimal('90.00'))
    ServiceTemplate.objects.create(service_type=other_type, name='Cambio de bomba')

    _, client = client_for(Role.TECHNICIAN)
    response = client.get(reverse('service-type-templates', args=[service_type.id]))
    assert response.status_code == 200
    assert [item['name'] for item in response.data] == ['Apertura de temporada', 'Limpieza completa']

    response = client.get(reverse('service-template-list'), {'service_type': service_type.id})
    assert [item['name'] for item in response.data['results']] == ['Apertura de temporada', 'Limpieza completa']


@pytest.mark.django_db
def test_instantiate_returns_fresh_pending_tasks(client_for, service_template):
    _, client = client_for(Role.TECHNICIAN)
    url = reverse('service-template-instantiate', args=[service_template.id])

    first = client.get(url)
    second = client.get(url)
    assert first.status_code == 200
    assert [task['estimated_minutes'] for task in first.data] == [30, 45, 10]
    assert [task['order'] for task in first.data] == [1, 2, 3]
    assert {task['status'] for task in first.data} == {'pending'}
    assert {task['id'] for task in first.data}.isdisjoint(task['id'] for task in second.data)

    service_template.refresh_from_db()
    assert all('id' not in task for task in service_template.default_tasks)


@pytest.mark.django_db
def test_active_templates_for_fails_soft(monkeypatch, caplog, service_type):
    def broken_filter(*args, **kwargs):
        raise DatabaseError("conexión perdida")

    monkeypatch.setattr(ServiceTemplate.objects, 'filter', broken_filter)
    with caplog.at_level(logging.ERROR, logger='apps.services_api.utils'):
        assert active_templates_for(service_type.id) == []
    assert "No se pudieron cargar las plantillas" in caplog.text


@pytest.mark.django_db
def test_tasks_from_empty_template(service_type):
    template = ServiceTemplate.objects.create(service_type=service_type, name='Vacía')
    assert tasks_from_template(template) == []


@pytest.mark.django_db
def test_task_template_catalogue(client_for):
    _, client = client_for(Role.MANAGER)
    response = client.post(reverse('task-template-list'), {
        'name': 'Limpieza de filtro',
        'category': TaskTemplate.Category.CLEANUP,
        'estimated_minutes': 20,
        'requires_materials': ['escova', 'mangueira'],
    }, format='json')
    assert response.status_code == 201
    assert response.data['requires_materials'] == ['escova', 'mangueira']
