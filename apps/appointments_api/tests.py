from datetime import timedelta

import pytest
from django.contrib import admin
from django.core.exceptions import ValidationError as DjangoValidationError
from django.urls import reverse
from django.utils import timezone
from rest_framework.exceptions import ValidationError

from apps.audit_api.models import AuditLog
from apps.roles_api.models import Role
from .admin import AppointmentAdmin
from .checklist import Task, TaskList, TaskStatus, instantiate_from_template
from .models import Appointment


# Checklist en memoria

def test_empty_list_aggregates_are_zero():
    tasks = TaskList()
    assert tasks.total_estimated_minutes == 0
    assert tasks.completed_minutes == 0
    assert tasks.progress == 0
    assert tasks.progress_percentage == 0
    assert tasks.summary() == {
        'total': 0,
        'completed': 0,
        'progress_percentage': 0,
        'total_estimated_minutes': 0,
        'completed_minutes': 0,
    }


@pytest.mark.parametrize('description', ['', '   ', None])
def test_add_blank_description_is_noop(description):
    tasks = TaskList()
    tasks.add('Cepillar paredes')
    assert tasks.add(description, 20) is None
    assert len(tasks) == 1


def test_add_appends_pending_task_with_next_order():
    tasks = TaskList()
    first = tasks.add('Cepillar paredes')
    second = tasks.add('  Aspirar fondo  ', 45)

    assert first.status == TaskStatus.PENDING
    assert first.estimated_minutes == 30
    assert first.order == 1
    assert second.description == 'Aspirar fondo'
    assert second.estimated_minutes == 45
    assert second.order == 2
    assert first.id != second.id


def test_update_completed_stamps_and_pending_clears_completed_at():
    tasks = TaskList()
    task = tasks.add('Medir pH')

    tasks.update(task.id, {'status': 'completed'})
    assert task.status == TaskStatus.COMPLETED
    assert task.completed_at is not None

    tasks.update(task.id, {'status': 'pending'})
    assert task.status == TaskStatus.PENDING
    assert task.completed_at is None


def test_update_in_progress_clears_completed_at():
    tasks = TaskList()
    task = tasks.add('Medir pH')
    tasks.update(task.id, {'status': TaskStatus.COMPLETED})
    tasks.update(task.id, {'status': TaskStatus.IN_PROGRESS})
    assert task.completed_at is None


def test_update_merges_fields_and_ignores_unknown():
    tasks = TaskList()
    task = tasks.add('Medir pH')
    tasks.update(task.id, {'notes': 'pH 7.4', 'assigned_to': 3, 'id': 'otro'})
    assert task.notes == 'pH 7.4'
    assert task.assigned_to == 3
    assert tasks.get(task.id) is task
    assert task.completed_at is None


def test_update_unknown_id_is_noop():
    tasks = TaskList()
    tasks.add('Medir pH')
    before = tasks.to_json()
    assert tasks.update('no-existe', {'status': 'completed'}) is None
    assert tasks.to_json() == before


def test_delete_does_not_renumber():
    tasks = TaskList()
    first = tasks.add('A')
    second = tasks.add('B')
    third = tasks.add('C')

    assert tasks.delete(second.id) is second
    assert [task.order for task in tasks.ordered()] == [1, 3]
    assert tasks.delete('no-existe') is None
    assert [task.id for task in tasks] == [first.id, third.id]


def test_toggle_status_flips_between_completed_and_pending():
    tasks = TaskList()
    task = tasks.add('A')

    tasks.toggle_status(task.id)
    assert task.status == TaskStatus.COMPLETED
    assert task.completed_at is not None

    tasks.toggle_status(task.id)
    assert task.status == TaskStatus.PENDING
    assert task.completed_at is None


def test_toggle_in_progress_task_completes_it():
    tasks = TaskList()
    task = tasks.add('A')
    tasks.update(task.id, {'status': 'in_progress'})
    tasks.toggle_status(task.id)
    assert task.status == TaskStatus.COMPLETED


def test_instantiate_from_template_defaults():
    created = instantiate_from_template([
        {'description': 'A'},
        {'description': 'B', 'estimated_minutes': 45},
    ])

    assert [task.description for task in created] == ['A', 'B']
    assert [task.estimated_minutes for task in created] == [30, 45]
    assert [task.order for task in created] == [1, 2]
    assert all(task.status == TaskStatus.PENDING for task in created)
    assert created[0].id != created[1].id


def test_instantiate_keeps_explicit_order_and_fresh_ids():
    skeletons = [{'description': 'A', 'order': 5}, {'description': 'B'}]
    first = instantiate_from_template(skeletons)
    second = instantiate_from_template(skeletons)
    assert [task.order for task in first] == [5, 2]
    assert {task.id for task in first}.isdisjoint(task.id for task in second)


def test_ordered_is_stable_for_ties():
    tasks = TaskList([
        Task(description='B', order=2),
        Task(description='A1', order=1),
        Task(description='A2', order=1),
    ])
    assert [task.description for task in tasks.ordered()] == ['A1', 'A2', 'B']


def test_aggregates():
    tasks = TaskList()
    tasks.add('A', 30)
    done = tasks.add('B', 45)
    tasks.add('C', 15)
    tasks.update(done.id, {'status': 'completed'})

    assert tasks.total_estimated_minutes == 90
    assert tasks.completed_minutes == 45
    assert tasks.completed_count == 1
    assert tasks.summary()['progress_percentage'] == 33
    assert 0 <= tasks.progress_percentage <= 100


def test_json_round_trip_keeps_state():
    tasks = TaskList()
    task = tasks.add('A', 20)
    tasks.update(task.id, {'status': 'completed', 'notes': 'ok'})

    restored = TaskList.from_json(tasks.to_json())
    restored_task = restored.get(task.id)
    assert restored_task.status == TaskStatus.COMPLETED
    assert restored_task.completed_at is not None
    assert restored_task.notes == 'ok'
    assert restored_task.estimated_minutes == 20


def test_from_json_fills_missing_order_and_id():
    restored = TaskList.from_json([{'description': 'A'}, {'description': 'B'}])
    assert [task.order for task in restored] == [1, 2]
    assert all(task.id for task in restored)


def test_parse_rejects_invalid_rows():
    with pytest.raises(ValidationError):
        TaskList.parse([{'estimated_minutes': 10}])
    with pytest.raises(ValidationError):
        TaskList.parse([{'description': 'A', 'status': 'done'}])


def test_from_json_reads_invalid_rows_as_empty(caplog):
    restored = TaskList.from_json([{'description': 'A', 'status': 'done'}])
    assert len(restored) == 0
    assert restored.progress_percentage == 0
    assert "Checklist inválido" in caplog.text


# Modelo

@pytest.mark.django_db
def test_end_time_defaults_from_service_duration(appointment_factory, service_type):
    appointment = appointment_factory()
    assert appointment.end_time - appointment.start_time == timedelta(minutes=service_type.estimated_duration)


@pytest.mark.django_db
def test_save_persists_generated_task_ids(appointment_factory):
    appointment = appointment_factory(tasks=[{'description': 'Cepillar paredes'}])
    appointment.refresh_from_db()
    task_id = appointment.tasks[0]['id']
    assert task_id
    assert appointment.tasks[0]['order'] == 1
    assert appointment.task_list.tasks[0].id == task_id


@pytest.mark.django_db
def test_invalid_tasks_are_rejected_on_write(appointment_factory):
    appointment = appointment_factory()
    appointment.tasks = [{'description': 'X', 'status': 'done'}]
    with pytest.raises(DjangoValidationError):
        appointment.full_clean()
    with pytest.raises(DjangoValidationError):
        appointment.save()


@pytest.mark.django_db
def test_clean_rejects_unknown_assigned_technician(appointment_factory, technician_factory):
    appointment = appointment_factory()
    appointment.tasks = [{'description': 'Revisar filtro', 'assigned_to': 987654}]
    with pytest.raises(DjangoValidationError):
        appointment.full_clean()

    appointment.tasks = [{'description': 'Revisar filtro', 'assigned_to': technician_factory().pk}]
    appointment.full_clean()


@pytest.mark.django_db
def test_admin_progress_survives_corrupt_tasks(appointment_factory):
    appointment = appointment_factory()
    Appointment.objects.filter(pk=appointment.pk).update(tasks=[{'description': 'X', 'status': 'done'}])
    appointment.refresh_from_db()
    assert AppointmentAdmin(Appointment, admin.site).progress(appointment) == '0%'


# API

@pytest.fixture
def manager_client(client_for):
    return client_for(Role.MANAGER)


@pytest.mark.django_db
def test_create_appointment_with_template(manager_client, customer, pool, service_type, service_template):
    user, client = manager_client
    start = timezone.now() + timedelta(days=2)
    response = client.post(reverse('appointment-list'), {
        'customer': customer.id,
        'pool': pool.id,
        'service_type': service_type.id,
        'start_time': start.isoformat(),
        'template': service_template.id,
    }, format='json')

    assert response.status_code == 201
    assert [task['description'] for task in response.data['tasks']] == [
        'Cepillar paredes', 'Aspirar fondo', 'Medir pH y cloro',
    ]
    assert response.data['task_summary']['total_estimated_minutes'] == 85
    appointment = Appointment.objects.get(pk=response.data['id'])
    assert appointment.created_by == user
    assert appointment.status == Appointment.Status.SCHEDULED
    assert AuditLog.objects.filter(action='create', table_name=Appointment._meta.db_table).exists()


@pytest.mark.django_db
def test_pool_must_belong_to_customer(manager_client, customer_factory, pool, service_type):
    _, client = manager_client
    other = customer_factory()
    response = client.post(reverse('appointment-list'), {
        'customer': other.id,
        'pool': pool.id,
        'service_type': service_type.id,
        'start_time': (timezone.now() + timedelta(days=1)).isoformat(),
    }, format='json')
    assert response.status_code == 400
    assert 'pool' in response.data['details']


@pytest.mark.django_db
def test_task_endpoints_flow(manager_client, appointment_factory):
    _, client = manager_client
    appointment = appointment_factory()
    tasks_url = reverse('appointment-tasks', args=[appointment.id])

    response = client.post(tasks_url, {'description': 'Limpiar skimmer', 'estimated_minutes': 15}, format='json')
    assert response.status_code == 201
    assert response.data['summary']['total'] == 1
    task_id = response.data['tasks'][0]['id']

    response = client.patch(reverse('appointment-update-task', args=[appointment.id, task_id]),
                            {'status': 'completed'}, format='json')
    assert response.status_code == 200
    assert response.data['tasks'][0]['completed_at'] is not None
    assert response.data['summary']['progress_percentage'] == 100

    response = client.post(reverse('appointment-toggle-task', args=[appointment.id, task_id]))
    assert response.status_code == 200
    assert response.data['tasks'][0]['status'] == 'pending'
    assert response.data['tasks'][0]['completed_at'] is None

    response = client.delete(reverse('appointment-update-task', args=[appointment.id, task_id]))
    assert response.status_code == 200
    assert response.data['tasks'] == []

    appointment.refresh_from_db()
    assert appointment.tasks == []


@pytest.mark.django_db
def test_add_blank_task_is_rejected_and_list_unchanged(manager_client, appointment_factory):
    _, client = manager_client
    appointment = appointment_factory()
    response = client.post(reverse('appointment-tasks', args=[appointment.id]), {'description': '   '}, format='json')
    assert response.status_code == 400
    appointment.refresh_from_db()
    assert appointment.tasks == []


@pytest.mark.django_db
def test_unknown_task_returns_404(manager_client, appointment_factory):
    _, client = manager_client
    appointment = appointment_factory()
    response = client.post(reverse('appointment-toggle-task', args=[appointment.id, 'no-existe']))
    assert response.status_code == 404


@pytest.mark.django_db
def test_stored_task_ids_are_stable_across_reads(manager_client, appointment_factory):
    _, client = manager_client
    appointment = appointment_factory(tasks=[{'description': 'Cepillar paredes'}])
    tasks_url = reverse('appointment-tasks', args=[appointment.id])

    first = client.get(tasks_url).data['tasks'][0]['id']
    second = client.get(tasks_url).data['tasks'][0]['id']
    assert first == second

    response = client.patch(reverse('appointment-update-task', args=[appointment.id, first]),
                            {'status': 'in_progress'}, format='json')
    assert response.status_code == 200
    assert response.data['tasks'][0]['status'] == 'in_progress'


@pytest.mark.django_db
def test_corrupt_tasks_do_not_break_reads(manager_client, appointment_factory, caplog):
    _, client = manager_client
    broken = appointment_factory()
    appointment_factory(tasks=[{'description': 'Aspirar fondo'}])
    Appointment.objects.filter(pk=broken.pk).update(tasks=[{'description': 'X', 'status': 'done'}])

    response = client.get(reverse('appointment-list'))
    assert response.status_code == 200
    rows = {row['id']: row for row in response.data['results']}
    assert rows[broken.id]['tasks'] == []
    assert rows[broken.id]['task_summary']['total'] == 0
    assert "Checklist inválido" in caplog.text

    response = client.post(reverse('appointment-start', args=[broken.id]))
    assert response.status_code == 200
    response = client.patch(reverse('appointment-detail', args=[broken.id]),
                            {'observations': 'Portón con candado'}, format='json')
    assert response.status_code == 200
    broken.refresh_from_db()
    assert broken.status == Appointment.Status.IN_PROGRESS
    assert broken.observations == 'Portón con candado'


@pytest.mark.django_db
def test_task_assignment_requires_existing_technician(manager_client, appointment_factory, technician_factory):
    _, client = manager_client
    appointment = appointment_factory(tasks=[{'description': 'Revisar bomba'}])
    task_id = appointment.tasks[0]['id']
    url = reverse('appointment-update-task', args=[appointment.id, task_id])

    response = client.patch(url, {'assigned_to': 987654}, format='json')
    assert response.status_code == 400
    assert 'assigned_to' in response.data['details']
    appointment.refresh_from_db()
    assert appointment.tasks[0]['assigned_to'] is None

    technician = technician_factory()
    response = client.patch(url, {'assigned_to': technician.pk}, format='json')
    assert response.status_code == 200
    appointment.refresh_from_db()
    assert appointment.tasks[0]['assigned_to'] == technician.pk

    response = client.patch(url, {'assigned_to': None}, format='json')
    assert response.status_code == 200
    assert response.data['tasks'][0]['assigned_to'] is None


@pytest.mark.django_db
def test_apply_template_append_and_replace(manager_client, appointment_factory, service_template):
    _, client = manager_client
    appointment = appointment_factory()
    task_list = appointment.task_list
    task_list.add('Revisar bomba')
    appointment.set_tasks(task_list)
    appointment.save()
    url = reverse('appointment-apply-template', args=[appointment.id])

    response = client.post(url, {'template': service_template.id, 'mode': 'append'}, format='json')
    assert response.status_code == 200
    assert [task['order'] for task in response.data['tasks']] == [1, 2, 3, 4]
    assert response.data['tasks'][0]['description'] == 'Revisar bomba'

    response = client.post(url, {'template': service_template.id}, format='json')
    assert response.status_code == 200
    assert len(response.data['tasks']) == 3
    assert 'Revisar bomba' not in [task['description'] for task in response.data['tasks']]


@pytest.mark.django_db
def test_technician_sees_only_own_appointments(client_for, appointment_factory, technician_factory):
    user, client = client_for(Role.TECHNICIAN)
    own = appointment_factory(technician=technician_factory(user=user))
    appointment_factory(technician=technician_factory())

    response = client.get(reverse('appointment-list'))
    assert response.status_code == 200
    assert [item['id'] for item in response.data['results']] == [own.id]


@pytest.mark.django_db
def test_user_without_roles_is_forbidden(client_for, appointment_factory):
    _, client = client_for()
    appointment_factory()
    response = client.get(reverse('appointment-list'))
    assert response.status_code == 403


@pytest.mark.django_db
def test_salesperson_cannot_manage_tasks(client_for, appointment_factory):
    _, client = client_for(Role.SALESPERSON)
    appointment = appointment_factory()
    response = client.post(reverse('appointment-tasks', args=[appointment.id]), {'description': 'A'}, format='json')
    assert response.status_code == 403


@pytest.mark.django_db
def test_confirm_sends_notification(manager_client, appointment_factory, mailoutbox):
    _, client = manager_client
    appointment = appointment_factory()

    response = client.post(reverse('appointment-confirm', args=[appointment.id]))
    assert response.status_code == 200
    assert response.data['status'] == 'confirmed'
    assert len(mailoutbox) == 1
    assert mailoutbox[0].to == [appointment.customer.email]
    assert AuditLog.objects.filter(action='status_change', record_id=str(appointment.id)).exists()


@pytest.mark.django_db
def test_cancel_customer_without_email_skips_notification(manager_client, appointment_factory, customer,
                                                          mailoutbox):
    _, client = manager_client
    customer.email = None
    customer.save()
    appointment = appointment_factory()

    response = client.post(reverse('appointment-cancel', args=[appointment.id]))
    assert response.status_code == 200
    assert mailoutbox == []


@pytest.mark.django_db
def test_invalid_status_transition(manager_client, appointment_factory):
    _, client = manager_client
    appointment = appointment_factory(status=Appointment.Status.COMPLETED)
    response = client.post(reverse('appointment-cancel', args=[appointment.id]))
    assert response.status_code == 400


@pytest.mark.django_db
def test_stats(manager_client, appointment_factory):
    _, client = manager_client
    appointment_factory(start_time=timezone.now())
    appointment_factory(status=Appointment.Status.CONFIRMED)
    appointment_factory(status=Appointment.Status.CANCELLED)

    response = client.get(reverse('appointment-stats'))
    assert response.status_code == 200
    assert response.data['pending'] == 2
    assert response.data['cancelled'] == 1
    assert response.data['completed'] == 0


@pytest.mark.django_db
def test_calendar_events(manager_client, appointment_factory):
    _, client = manager_client
    appointment = appointment_factory()
    start = (timezone.now() - timedelta(days=1)).date().isoformat()
    end = (timezone.now() + timedelta(days=3)).date().isoformat()

    response = client.get(reverse('calendar-events'), {'start': start, 'end': end})
    assert response.status_code == 200
    assert [event['id'] for event in response.data] == [appointment.id]
    assert response.data[0]['backgroundColor'] == '#3498db'

    response = client.get(reverse('calendar-events'))
    assert response.status_code == 400

