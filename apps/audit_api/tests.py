import logging

import pytest
from django.test import RequestFactory, override_settings
from django.urls import reverse

from apps.auth_api.factories import UserFactory
from apps.roles_api.models import Role
from .models import AuditLog
from .utils import log_audit_action, snapshot


@pytest.mark.django_db
def test_log_audit_action_records_request_metadata():
    user = UserFactory()
    request = RequestFactory().post('/', HTTP_X_FORWARDED_FOR='203.0.113.9, 10.0.0.1',
                                    HTTP_USER_AGENT='pytest')
    entry = log_audit_action(user, 'update', table_name='customers', record_id=7,
                             old_values={'phone': '1'}, new_values={'phone': '2'}, request=request)

    assert entry.user == user
    assert entry.record_id == '7'
    assert entry.ip_address == '203.0.113.9'
    assert entry.user_agent == 'pytest'


@pytest.mark.django_db
def test_log_audit_action_never_raises(caplog):
    with caplog.at_level(logging.ERROR, logger='apps.audit_api.utils'):
        assert log_audit_action(None, 'create', table_name='x', new_values={'valor': object()}) is None
    assert not AuditLog.objects.exists()
    assert "No se pudo registrar" in caplog.text


@pytest.mark.django_db
def test_snapshot_omits_password():
    values = snapshot(UserFactory())
    assert 'password' not in values
    assert 'email' in values


@pytest.mark.django_db
def test_auditor_sees_every_entry_with_user_columns(client_for):
    other = UserFactory(full_name='Carla Souza')
    log_audit_action(other, 'login', table_name='auth')
    log_audit_action(None, 'login_failed', table_name='auth', new_values={'email': 'x@x.test'})

    _, client = client_for(Role.ADMIN)
    response = client.get(reverse('audit-log-list'))
    assert response.status_code == 200
    assert [item['action'] for item in response.data] == ['login_failed', 'login']
    assert response.data[0]['user_name'] == 'unknown'
    assert response.data[1]['user_email'] == other.email


@pytest.mark.django_db
def test_others_see_only_their_entries_without_user_columns(client_for):
    user, client = client_for(Role.TECHNICIAN)
    log_audit_action(user, 'login', table_name='auth')
    log_audit_action(UserFactory(), 'login', table_name='auth')

    response = client.get(reverse('audit-log-list'))
    assert response.status_code == 200
    assert len(response.data) == 1
    assert 'user' not in response.data[0]
    assert 'user_email' not in response.data[0]


@pytest.mark.django_db
@override_settings(AUDIT_LOG_LIST_LIMIT=3)
def test_list_is_capped(client_for):
    _, client = client_for(Role.ADMIN)
    for number in range(5):
        log_audit_action(None, 'create', table_name='pools', record_id=number)
    response = client.get(reverse('audit-log-list'))
    assert [item['record_id'] for item in response.data] == ['4', '3', '2']


@pytest.mark.django_db
def test_list_filters_and_filter_options(client_for):
    _, client = client_for(Role.ADMIN)
    log_audit_action(None, 'create', table_name='customers', record_id=1)
    log_audit_action(None, 'delete', table_name='pools', record_id=2)
    log_audit_action(None, 'login_failed', table_name='auth')

    response = client.get(reverse('audit-log-list'), {'action': 'delete'})
    assert [item['table_name'] for item in response.data] == ['pools']

    response = client.get(reverse('audit-log-list'), {'search': 'customers'})
    assert [item['record_id'] for item in response.data] == ['1']

    response = client.get(reverse('audit-log-filters'))
    assert response.data == {
        'actions': ['create', 'delete', 'login_failed'],
        'tables': ['auth', 'customers', 'pools'],
    }


@pytest.mark.django_db
def test_anonymous_cannot_list(api_client):
    assert api_client.get(reverse('audit-log-list')).status_code == 401
