import pytest
from django.db import DatabaseError
from django.urls import reverse
from rest_framework.test import APIClient

from apps.audit_api.models import AuditLog
from apps.roles_api.models import Permission, Role, UserRole
from apps.roles_api.permission_checker import PermissionChecker
from .factories import UserFactory
from .models import User
from .session import ActorSession


def login(client, email, password='testpassword'):
    return client.post(reverse('login'), {'email': email, 'password': password}, format='json')


@pytest.mark.django_db
def test_register_user_without_roles(api_client):
    response = api_client.post(reverse('register'), {
        'email': 'nuevo@poolservice.test',
        'full_name': 'Nuevo Usuario',
        'phone': '11988887777',
        'password': 'segura12345',
    }, format='json')

    assert response.status_code == 201
    user = User.objects.get(email='nuevo@poolservice.test')
    assert user.check_password('segura12345')
    assert user.role_names == []
    assert AuditLog.objects.filter(action='create', record_id=str(user.pk)).exists()


@pytest.mark.django_db
def test_register_rejects_short_password(api_client):
    response = api_client.post(reverse('register'), {
        'email': 'corta@poolservice.test', 'full_name': 'Corta', 'password': '123',
    }, format='json')
    assert response.status_code == 400
    assert not User.objects.filter(email='corta@poolservice.test').exists()


@pytest.mark.django_db
def test_login_returns_tokens_and_session(api_client, user_with_roles):
    user = user_with_roles(Role.TECHNICIAN)
    response = login(api_client, user.email)

    assert response.status_code == 200
    assert response.data['access']
    assert response.data['refresh']
    session = response.data['session']
    assert session['roles'] == ['technician']
    assert session['user']['email'] == user.email
    names = {row['permission_name'] for row in session['permissions']}
    assert names == {'view_own_tasks', 'manage_tasks', 'view_customers', 'view_services'}

    user.refresh_from_db()
    assert user.last_login is not None
    assert AuditLog.objects.filter(user=user, action='login').exists()


@pytest.mark.django_db
def test_login_wrong_password_is_audited(api_client, user_with_roles):
    user = user_with_roles(Role.MANAGER)
    response = login(api_client, user.email, password='incorrecta')

    assert response.status_code == 400
    failed = AuditLog.objects.get(action='login_failed')
    assert failed.user is None
    assert failed.new_values == {'email': user.email}


@pytest.mark.django_db
def test_inactive_user_cannot_login(api_client, user_with_roles):
    user = user_with_roles(Role.MANAGER, is_active=False)
    response = login(api_client, user.email)
    assert response.status_code == 403
    assert 'inactiva' in response.data['detail']


@pytest.mark.django_db
def test_bearer_token_authenticates_me(api_client, user_with_roles):
    user = user_with_roles(Role.FINANCE)
    access = login(api_client, user.email).data['access']

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f'Bearer {access}')
    response = client.get(reverse('me'))
    assert response.status_code == 200
    assert response.data['roles'] == ['finance']


@pytest.mark.django_db
def test_me_requires_authentication(api_client):
    assert api_client.get(reverse('me')).status_code == 401


@pytest.mark.django_db
def test_me_patch_updates_profile(client_for):
    user, client = client_for(Role.SALESPERSON)
    response = client.patch(reverse('me'), {'full_name': 'Nombre Nuevo', 'email': 'otro@x.test'}, format='json')
    assert response.status_code == 200
    user.refresh_from_db()
    assert user.full_name == 'Nombre Nuevo'
    assert user.email != 'otro@x.test'


@pytest.mark.django_db
def test_refresh_permissions_reflects_role_changes(client_for):
    user, client = client_for(Role.TECHNICIAN)
    UserRole.objects.create(user=user, role=Role.FINANCE)

    response = client.post(reverse('refresh-permissions'))
    assert response.status_code == 200
    assert response.data['roles'] == ['finance', 'technician']
    names = {row['permission_name'] for row in response.data['permissions']}
    assert {'view_own_tasks', 'view_financial'} <= names


@pytest.mark.django_db
@pytest.mark.parametrize('roles,expected', [
    ((Role.TECHNICIAN,), ['dashboard', 'customers', 'appointments', 'audit']),
    ((Role.FINANCE,), ['dashboard', 'customers', 'appointments', 'financial', 'audit']),
    ((Role.ADMIN,), ['dashboard', 'customers', 'appointments', 'financial', 'audit', 'users', 'settings']),
])
def test_navigation_depends_on_access(client_for, roles, expected):
    _, client = client_for(*roles)
    response = client.get(reverse('navigation'))
    assert response.status_code == 200
    assert [item['key'] for item in response.data] == expected


@pytest.mark.django_db
def test_logout_blacklists_refresh_token(api_client, user_with_roles):
    user = user_with_roles(Role.MANAGER)
    tokens = login(api_client, user.email).data

    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {tokens['access']}")
    response = client.post(reverse('logout'), {'refresh': tokens['refresh']}, format='json')
    assert response.status_code == 200
    assert AuditLog.objects.filter(user=user, action='logout').exists()

    response = api_client.post(reverse('token-refresh'), {'refresh': tokens['refresh']}, format='json')
    assert response.status_code == 401


@pytest.mark.django_db
def test_token_refresh_returns_session(api_client, user_with_roles):
    user = user_with_roles(Role.SALESPERSON)
    tokens = login(api_client, user.email).data
    response = api_client.post(reverse('token-refresh'), {'refresh': tokens['refresh']}, format='json')
    assert response.status_code == 200
    assert response.data['session']['roles'] == ['salesperson']


@pytest.mark.django_db
def test_session_resolves_roles_and_permissions(user_with_roles):
    session = ActorSession(user_with_roles(Role.TECHNICIAN))

    assert session.has_role(Role.TECHNICIAN)
    assert not session.has_role(Role.ADMIN)
    assert session.has_permission('view_own_tasks')
    assert not session.has_permission('view_audit_logs')
    assert session.refresh_permissions() == session.refresh_permissions()


@pytest.mark.django_db
def test_admin_role_does_not_imply_other_roles(user_with_roles):
    session = ActorSession(user_with_roles(Role.ADMIN))
    assert session.has_role(Role.ADMIN)
    assert not session.has_role(Role.MANAGER)
    assert session.has_permission('view_audit_logs')


@pytest.mark.django_db
@pytest.mark.parametrize('role_name', ['ADMIN', 'Admin', ' admin', 'superuser', ''])
def test_has_role_matches_exact_role_names_only(user_with_roles, role_name):
    session = ActorSession(user_with_roles(Role.ADMIN))
    assert session.has_role('admin')
    assert not session.has_role(role_name)
    assert not session.has_any_role([role_name])


@pytest.mark.django_db
def test_session_sees_new_permissions_after_refresh(user_with_roles):
    user = user_with_roles(Role.TECHNICIAN)
    session = ActorSession(user)
    assert not session.has_permission('view_financial')

    UserRole.objects.create(user=user, role=Role.FINANCE)
    assert not session.has_permission('view_financial')
    session.refresh()
    assert session.has_permission('view_financial')


@pytest.mark.django_db
def test_inactive_permission_is_not_granted(user_with_roles):
    Permission.objects.filter(name='view_own_tasks').update(is_active=False)
    session = ActorSession(user_with_roles(Role.TECHNICIAN))
    assert not session.has_permission('view_own_tasks')
    assert session.has_permission('manage_tasks')


@pytest.mark.django_db
def test_invalidated_session_grants_nothing(user_with_roles):
    session = ActorSession(user_with_roles(Role.ADMIN))
    assert session.has_permission('manage_roles')

    session.invalidate()
    assert session.user is None
    assert session.roles == frozenset()
    assert not session.has_permission('manage_roles')


@pytest.mark.django_db
def test_inactive_or_anonymous_users_have_no_access(user_with_roles):
    from django.contrib.auth.models import AnonymousUser

    inactive = user_with_roles(Role.ADMIN, is_active=False)
    assert ActorSession(inactive).roles == frozenset()
    assert ActorSession(AnonymousUser()).permissions == frozenset()
    assert ActorSession(None).permission_rows == []


@pytest.mark.django_db
def test_resolution_fails_closed_on_database_error(monkeypatch, caplog, user_with_roles):
    user = user_with_roles(Role.ADMIN)

    def broken_filter(*args, **kwargs):
        raise DatabaseError("sin conexión")

    monkeypatch.setattr(UserRole.objects, 'filter', broken_filter)
    monkeypatch.setattr(Permission.objects, 'filter', broken_filter)

    session = ActorSession(user)
    assert session.roles == frozenset()
    assert not session.has_permission('manage_roles')
    assert PermissionChecker.get_user_permissions(user) == []
    assert "No se pudieron resolver" in caplog.text


@pytest.mark.django_db
def test_user_factory_assigns_roles():
    user = UserFactory(roles=[Role.MANAGER, Role.FINANCE])
    assert user.role_names == ['finance', 'manager']
