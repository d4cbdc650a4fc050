from io import StringIO

import pytest
from django.core.management import CommandError, call_command
from django.urls import reverse
from rest_framework.test import APIRequestFactory, force_authenticate
from rest_framework.views import APIView

from apps.audit_api.models import AuditLog
from apps.auth_api.factories import UserFactory
from apps.auth_api.session import ActorSession
from .guards import guard, permission_guard, role_guard
from .models import Permission, Role, RolePermission, UserRole
from .permission_config import PERMISSION_CATALOG, permissions_for_role
from .permissions import HasActionPermission


@pytest.fixture
def technician_only_mapping(db):
    """Un técnico con un único permiso, sin el mapeo por defecto."""
    own_tasks = Permission.objects.create(name='view_own_tasks', module='appointments', action='view')
    Permission.objects.create(name='view_audit_logs', module='audit', action='view')
    RolePermission.objects.create(role=Role.TECHNICIAN, permission=own_tasks)
    return UserFactory(roles=[Role.TECHNICIAN])


@pytest.mark.django_db
def test_technician_permissions_follow_mapping(technician_only_mapping):
    session = ActorSession(technician_only_mapping)
    assert session.has_permission('view_own_tasks')
    assert not session.has_permission('view_audit_logs')
    assert session.has_role(Role.TECHNICIAN)
    assert not session.has_role(Role.ADMIN)


@pytest.mark.django_db
def test_permissions_are_union_of_roles(user_with_roles):
    session = ActorSession(user_with_roles(Role.TECHNICIAN, Role.SALESPERSON))
    expected = set(permissions_for_role(Role.TECHNICIAN)) | set(permissions_for_role(Role.SALESPERSON))
    assert session.permissions == expected
    assert len(session.permission_rows) == len(expected)


@pytest.mark.django_db
def test_sync_roles_gives_admin_whole_catalogue(seeded_permissions):
    admin_permissions = set(
        RolePermission.objects.filter(role=Role.ADMIN).values_list('permission__name', flat=True)
    )
    assert admin_permissions == set(PERMISSION_CATALOG)
    assert 'manage_roles' not in permissions_for_role(Role.MANAGER)


@pytest.mark.django_db
def test_sync_roles_reset_removes_extra_links(seeded_permissions):
    extra = Permission.objects.get(name='view_audit_logs')
    RolePermission.objects.create(role=Role.TECHNICIAN, permission=extra)

    call_command('sync_roles', stdout=StringIO())
    assert RolePermission.objects.filter(role=Role.TECHNICIAN, permission=extra).exists()

    call_command('sync_roles', '--reset', stdout=StringIO())
    assert not RolePermission.objects.filter(role=Role.TECHNICIAN, permission=extra).exists()


@pytest.mark.django_db
def test_sync_roles_assign(seeded_permissions):
    user = UserFactory()
    call_command('sync_roles', '--assign', user.email, 'finance', stdout=StringIO())
    assert UserRole.objects.filter(user=user, role=Role.FINANCE).exists()

    with pytest.raises(CommandError):
        call_command('sync_roles', '--assign', user.email, 'superhero', stdout=StringIO())
    with pytest.raises(CommandError):
        call_command('sync_roles', '--assign', 'nadie@x.test', 'finance', stdout=StringIO())


def test_guard_returns_content_fallback_or_nothing():
    assert guard(True, 'contenido') == 'contenido'
    assert guard(False, 'contenido') is None
    assert guard(False, 'contenido', fallback='sin acceso') == 'sin acceso'
    assert guard(False, 'contenido', fallback='sin acceso', hide_if_no_access=True) is None


def test_guard_evaluates_only_the_chosen_branch():
    calls = []

    def content():
        calls.append('content')
        return 'ok'

    assert guard(False, content, fallback=lambda: 'no') == 'no'
    assert calls == []
    assert guard(True, content) == 'ok'
    assert calls == ['content']


@pytest.mark.django_db
def test_permission_and_role_guards(technician_only_mapping):
    session = ActorSession(technician_only_mapping)

    assert permission_guard(session, 'view_own_tasks', 'tareas') == 'tareas'
    assert permission_guard(session, 'view_audit_logs', 'auditoría', fallback='sin acceso') == 'sin acceso'
    assert role_guard(session, [Role.ADMIN, Role.TECHNICIAN], 'panel') == 'panel'
    assert role_guard(session, [Role.ADMIN], 'usuarios', hide_if_no_access=True) is None
    assert permission_guard(None, 'view_own_tasks', 'tareas', fallback='login') == 'login'


class MappedView(APIView):
    permission_classes = [HasActionPermission]
    action_permissions = {'get': ('view_users', 'view_own_tasks')}


@pytest.mark.django_db
def test_action_permission_accepts_any_of(technician_only_mapping):
    request = APIRequestFactory().get('/')
    force_authenticate(request, user=technician_only_mapping)
    view = MappedView()
    drf_request = view.initialize_request(request)
    assert HasActionPermission().has_permission(drf_request, view)


@pytest.mark.django_db
def test_action_permission_denies_unmapped_action(user_with_roles):
    request = APIRequestFactory().post('/')
    force_authenticate(request, user=user_with_roles(Role.ADMIN))
    view = MappedView()
    drf_request = view.initialize_request(request)
    assert not HasActionPermission().has_permission(drf_request, view)


@pytest.mark.django_db
def test_role_list_and_summary(client_for):
    _, client = client_for(Role.MANAGER)
    UserFactory(roles=[Role.TECHNICIAN])

    response = client.get(reverse('role-list'))
    assert response.status_code == 200
    assert [item['role'] for item in response.data] == Role.values
    technician = next(item for item in response.data if item['role'] == 'technician')
    assert technician['assigned_users'] == 1
    assert 'view_own_tasks' in technician['permissions']

    response = client.get(reverse('role-summary'))
    assert response.data['technician'] == 1
    assert response.data['manager'] == 1
    assert response.data['admin'] == 0


@pytest.mark.django_db
def test_unknown_role_returns_404(client_for):
    _, client = client_for(Role.ADMIN)
    assert client.get(reverse('role-detail', args=['capitan'])).status_code == 404


@pytest.mark.django_db
def test_permission_catalogue_requires_view_users(client_for):
    _, technician = client_for(Role.TECHNICIAN)
    assert technician.get(reverse('permission-list')).status_code == 403

    _, admin = client_for(Role.ADMIN)
    response = admin.get(reverse('permission-list'), {'module': 'financial'})
    assert response.status_code == 200
    assert {item['module'] for item in response.data} == {'financial'}


@pytest.mark.django_db
def test_set_role_permissions(client_for):
    _, manager = client_for(Role.MANAGER)
    url = reverse('role-set-permissions', args=['salesperson'])
    assert manager.put(url, {'permissions': ['view_customers']}, format='json').status_code == 403

    admin, client = client_for(Role.ADMIN)
    response = client.put(url, {'permissions': ['view_customers', 'view_services']}, format='json')
    assert response.status_code == 200
    assert response.data['permissions'] == ['view_customers', 'view_services']

    entry = AuditLog.objects.get(action='permission_update', record_id='salesperson')
    assert entry.user == admin
    assert 'create_customers' in entry.old_values['permissions']
    assert entry.new_values == {'permissions': ['view_customers', 'view_services']}


@pytest.mark.django_db
def test_set_role_permissions_rejects_unknown_names(client_for):
    _, client = client_for(Role.ADMIN)
    response = client.put(reverse('role-set-permissions', args=['technician']),
                          {'permissions': ['view_customers', 'fly']}, format='json')
    assert response.status_code == 400
    assert RolePermission.objects.filter(role=Role.TECHNICIAN, permission__name='view_own_tasks').exists()
