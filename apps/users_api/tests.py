import pytest
from django.urls import reverse

from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from apps.auth_api.models import User
from apps.roles_api.models import Role, UserRole


@pytest.fixture
def admin_client(client_for):
    return client_for(Role.ADMIN)


@pytest.mark.django_db
def test_admin_creates_user_with_roles(admin_client):
    admin, client = admin_client
    response = client.post(reverse('user-list'), {
        'email': 'tecnico@poolservice.test',
        'full_name': 'Pedro Técnico',
        'password': 'piscina2024',
        'roles': ['technician', 'salesperson', 'technician'],
    }, format='json')

    assert response.status_code == 201
    assert response.data['roles'] == ['salesperson', 'technician']
    assert 'password' not in response.data
    user = User.objects.get(email='tecnico@poolservice.test')
    assert user.check_password('piscina2024')

    entry = AuditLog.objects.get(action='create', record_id=str(user.pk))
    assert entry.user == admin
    assert 'password' not in entry.new_values


@pytest.mark.django_db
def test_email_must_be_unique_ignoring_case(admin_client):
    UserFactory(email='repetido@poolservice.test')
    _, client = admin_client
    response = client.post(reverse('user-list'), {
        'email': 'Repetido@poolservice.test', 'full_name': 'Otro', 'password': 'piscina2024',
    }, format='json')
    assert response.status_code == 400
    assert 'email' in response.data['details']


@pytest.mark.django_db
def test_unknown_role_is_rejected(admin_client):
    _, client = admin_client
    response = client.post(reverse('user-list'), {
        'email': 'x@poolservice.test', 'full_name': 'X', 'password': 'piscina2024', 'roles': ['owner'],
    }, format='json')
    assert response.status_code == 400


@pytest.mark.django_db
def test_manager_lists_but_cannot_create(client_for):
    _, client = client_for(Role.MANAGER)
    assert client.get(reverse('user-list')).status_code == 200
    response = client.post(reverse('user-list'), {
        'email': 'y@poolservice.test', 'full_name': 'Y', 'password': 'piscina2024',
    }, format='json')
    assert response.status_code == 403


@pytest.mark.django_db
def test_filter_by_role(admin_client):
    finance = UserFactory(roles=[Role.FINANCE])
    UserFactory(roles=[Role.TECHNICIAN])
    _, client = admin_client

    response = client.get(reverse('user-list'), {'role': 'finance'})
    assert [item['id'] for item in response.data['results']] == [finance.id]


@pytest.mark.django_db
def test_roles_cannot_change_through_update(admin_client):
    user = UserFactory(roles=[Role.TECHNICIAN])
    _, client = admin_client
    response = client.patch(reverse('user-detail', args=[user.id]), {'roles': ['admin']}, format='json')
    assert response.status_code == 400
    assert user.role_names == ['technician']


@pytest.mark.django_db
def test_update_changes_password(admin_client):
    user = UserFactory()
    _, client = admin_client
    response = client.patch(reverse('user-detail', args=[user.id]),
                            {'phone': '11911112222', 'password': 'nuevaclave99'}, format='json')
    assert response.status_code == 200
    user.refresh_from_db()
    assert user.phone == '11911112222'
    assert user.check_password('nuevaclave99')


@pytest.mark.django_db
def test_toggle_status(admin_client):
    admin, client = admin_client
    user = UserFactory()

    response = client.post(reverse('user-toggle-status', args=[user.id]))
    assert response.status_code == 200
    assert response.data['is_active'] is False
    assert AuditLog.objects.filter(action='status_change', record_id=str(user.id)).exists()

    response = client.post(reverse('user-toggle-status', args=[admin.id]))
    assert response.status_code == 400
    admin.refresh_from_db()
    assert admin.is_active


@pytest.mark.django_db
def test_assign_roles(admin_client):
    _, client = admin_client
    user = UserFactory(roles=[Role.TECHNICIAN])

    response = client.put(reverse('user-roles', args=[user.id]), {'roles': ['finance', 'manager']},
                          format='json')
    assert response.status_code == 200
    assert response.data['roles'] == ['finance', 'manager']
    assert sorted(UserRole.objects.filter(user=user).values_list('role', flat=True)) == ['finance', 'manager']

    entry = AuditLog.objects.get(action='role_assign')
    assert entry.old_values == {'roles': ['technician']}
    assert entry.new_values == {'roles': ['finance', 'manager']}


@pytest.mark.django_db
def test_assign_roles_requires_manage_roles(client_for):
    _, client = client_for(Role.MANAGER)
    user = UserFactory()
    response = client.put(reverse('user-roles', args=[user.id]), {'roles': ['admin']}, format='json')
    assert response.status_code == 403
    assert user.role_names == []


@pytest.mark.django_db
def test_users_cannot_be_deleted(admin_client):
    _, client = admin_client
    user = UserFactory()
    assert client.delete(reverse('user-detail', args=[user.id])).status_code == 405
