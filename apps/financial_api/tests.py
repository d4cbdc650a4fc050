from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.test import override_settings
from django.urls import reverse
from django.utils import timezone

from apps.roles_api.models import Role
from . import services
from .models import AccountPayable, AccountReceivable, CashFlowEntry, Invoice
from .services import (
    create_invoice, financial_summary, generate_invoice_number, mark_overdue, record_payable,
    record_receivable, update_payment_status,
)
from .tasks import mark_overdue_records


@pytest.fixture
def finance_client(client_for):
    return client_for(Role.FINANCE)


def due_in(days):
    return timezone.localdate() + timedelta(days=days)


@pytest.mark.django_db
def test_invoice_numbers_are_sequential_per_year(customer):
    year = timezone.localdate().year
    assert generate_invoice_number() == f"INV-{year}-00001"

    create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('50')}], due_date=due_in(10))
    create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('50')}], due_date=due_in(10))
    assert generate_invoice_number() == f"INV-{year}-00003"
    assert generate_invoice_number(date(year + 1, 1, 2)) == f"INV-{year + 1}-00001"


@pytest.mark.django_db
def test_create_invoice_retries_when_number_is_taken(monkeypatch, customer):
    first = create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('50')}], due_date=due_in(10))
    real_generate = services.generate_invoice_number
    calls = []

    def stale_number(today=None):
        calls.append(today)
        return first.invoice_number if len(calls) == 1 else real_generate(today)

    monkeypatch.setattr(services, 'generate_invoice_number', stale_number)
    second = create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('50')}], due_date=due_in(10))

    assert len(calls) == 2
    assert second.invoice_number != first.invoice_number
    assert Invoice.objects.count() == 2
    assert second.items.count() == 1


@pytest.mark.django_db
@override_settings(INVOICE_NUMBER_PREFIX='NF')
def test_invoice_prefix_is_configurable():
    assert generate_invoice_number(date(2026, 3, 1)) == "NF-2026-00001"


@pytest.mark.django_db
def test_create_invoice_computes_totals_and_fills_from_service_type(customer, service_type):
    invoice = create_invoice(customer, [
        {'service_type': service_type, 'quantity': Decimal('2')},
        {'description': 'Cloro granulado', 'quantity': Decimal('3'), 'unit_price': Decimal('12.50')},
    ], due_date=due_in(15))

    first, second = invoice.items.order_by('id')
    assert first.description == service_type.name
    assert first.unit_price == service_type.price
    assert first.total_price == Decimal('360.00')
    assert second.total_price == Decimal('37.50')
    assert invoice.total_amount == Decimal('397.50')


@pytest.mark.django_db
def test_create_invoice_requires_items(customer):
    with pytest.raises(ValueError):
        create_invoice(customer, [], due_date=due_in(5))
    assert not Invoice.objects.exists()


@pytest.mark.django_db
def test_payable_records_outflow_with_default_category():
    payable = record_payable(supplier_name='Distribuidora Aqua', amount=Decimal('800.00'), due_date=due_in(7))
    entry = CashFlowEntry.objects.get(reference_type='accounts_payable', reference_id=str(payable.pk))
    assert entry.entry_type == CashFlowEntry.EntryType.OUTFLOW
    assert entry.category == 'Expenses'
    assert entry.amount == Decimal('800.00')


@pytest.mark.django_db
def test_receivable_records_inflow(customer):
    receivable = record_receivable(customer=customer, amount=Decimal('180.00'), due_date=due_in(7))
    entry = CashFlowEntry.objects.get(reference_type='accounts_receivable', reference_id=str(receivable.pk))
    assert entry.entry_type == CashFlowEntry.EntryType.INFLOW
    assert entry.category == 'Revenue'


@pytest.mark.django_db
def test_update_payment_status_stamps_dates(customer):
    receivable = record_receivable(customer=customer, amount=Decimal('100'), due_date=due_in(1))
    update_payment_status(receivable, 'paid')
    assert receivable.received_at is not None

    payable = record_payable(supplier_name='Luz', amount=Decimal('100'), due_date=due_in(1))
    update_payment_status(payable, 'paid')
    assert payable.paid_at is not None
    update_payment_status(payable, 'pending')
    assert payable.paid_at is None

    with pytest.raises(ValueError):
        update_payment_status(payable, 'cancelled')


@pytest.mark.django_db
def test_summary_and_overdue(customer):
    paid = create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('200')}], due_date=due_in(5))
    update_payment_status(paid, 'paid')
    create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('90')}], due_date=due_in(-3))
    cancelled = create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('10')}],
                               due_date=due_in(-3))
    update_payment_status(cancelled, 'cancelled')
    record_receivable(customer=customer, amount=Decimal('50'), due_date=due_in(3))
    record_payable(supplier_name='Aluguel', amount=Decimal('1000'), due_date=due_in(-1))
    record_receivable(customer=customer, amount=Decimal('70'), due_date=due_in(4),
                      status=AccountReceivable.Status.PARTIAL)
    record_payable(supplier_name='Energia', amount=Decimal('300'), due_date=due_in(2),
                   status=AccountPayable.Status.OVERDUE)

    summary = financial_summary()
    assert summary['total_revenue'] == Decimal('200.00')
    assert summary['pending_receivables'] == Decimal('50.00')
    assert summary['pending_payables'] == Decimal('1000.00')
    assert summary['overdue_count'] == 3


@pytest.mark.django_db
def test_mark_overdue_records(customer):
    create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('90')}], due_date=due_in(-3))
    record_payable(supplier_name='Aluguel', amount=Decimal('1000'), due_date=due_in(5))

    result = mark_overdue_records.delay().get()
    assert result['invoice'] == 1
    assert result['accountpayable'] == 0
    assert Invoice.objects.get().status == Invoice.Status.OVERDUE
    assert mark_overdue() == {'invoice': 0, 'accountpayable': 0, 'accountreceivable': 0}


@pytest.mark.django_db
def test_invoice_api(finance_client, customer, service_type):
    user, client = finance_client
    response = client.post(reverse('invoice-list'), {
        'customer': customer.id,
        'due_date': due_in(10).isoformat(),
        'items': [{'service_type': service_type.id}],
    }, format='json')

    assert response.status_code == 201
    assert response.data['invoice_number'].startswith('INV-')
    assert Decimal(response.data['total_amount']) == service_type.price
    invoice = Invoice.objects.get(pk=response.data['id'])
    assert invoice.created_by == user

    response = client.post(reverse('invoice-payment-status', args=[invoice.id]),
                           {'status': 'paid', 'payment_method': 'pix'}, format='json')
    assert response.status_code == 200
    invoice.refresh_from_db()
    assert invoice.status == Invoice.Status.PAID
    assert invoice.payment_method == 'pix'
    assert invoice.paid_at is not None


@pytest.mark.django_db
def test_invoice_api_rejects_empty_items(finance_client, customer):
    _, client = finance_client
    response = client.post(reverse('invoice-list'), {
        'customer': customer.id,
        'due_date': due_in(10).isoformat(),
        'items': [],
    }, format='json')
    assert response.status_code == 400
    assert 'items' in response.data['details']


@pytest.mark.django_db
def test_payable_api_creates_cash_flow(finance_client):
    _, client = finance_client
    response = client.post(reverse('account-payable-list'), {
        'supplier_name': 'Distribuidora Aqua',
        'amount': '320.00',
        'due_date': due_in(20).isoformat(),
        'category': 'Produtos químicos',
    }, format='json')
    assert response.status_code == 201
    entry = CashFlowEntry.objects.get(reference_id=str(response.data['id']))
    assert entry.category == 'Produtos químicos'
    assert AccountPayable.objects.get().created_by is not None


@pytest.mark.django_db
def test_receivable_api_checks_invoice_customer(finance_client, customer_factory, customer):
    _, client = finance_client
    invoice = create_invoice(customer, [{'description': 'Visita', 'unit_price': Decimal('90')}], due_date=due_in(3))
    response = client.post(reverse('account-receivable-list'), {
        'customer': customer_factory().id,
        'invoice': invoice.id,
        'amount': '90.00',
        'due_date': due_in(3).isoformat(),
    }, format='json')
    assert response.status_code == 400
    assert not AccountReceivable.objects.exists()


@pytest.mark.django_db
def test_summary_endpoint_requires_view_financial(client_for, finance_client):
    _, technician = client_for(Role.TECHNICIAN)
    assert technician.get(reverse('financial-summary')).status_code == 403

    _, client = finance_client
    response = client.get(reverse('financial-summary'))
    assert response.status_code == 200
    assert response.data['overdue_count'] == 0


@pytest.mark.django_db
def test_manager_views_but_cannot_invoice(client_for, customer):
    _, client = client_for(Role.MANAGER)
    assert client.get(reverse('invoice-list')).status_code == 200
    response = client.post(reverse('invoice-list'), {'customer': customer.id}, format='json')
    assert response.status_code == 403
