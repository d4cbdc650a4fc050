"""
Reglas de negocio del módulo financiero: numeración de facturas, cuentas
por pagar y por cobrar con su movimiento de caja, cambios de estado de
pago e indicadores.
"""
import logging
from decimal import Decimal

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q, Sum
from django.utils import timezone

from .models import AccountPayable, AccountReceivable, CashFlowEntry, Invoice, InvoiceItem

logger = logging.getLogger(__name__)

DEFAULT_EXPENSE_CATEGORY = 'Expenses'
DEFAULT_REVENUE_CATEGORY = 'Revenue'
INVOICE_NUMBER_ATTEMPTS = 3


def generate_invoice_number(today=None):
    """
    Siguiente número de la serie anual: INV-2026-00001, INV-2026-00002...

    El bloqueo solo dura mientras la transacción del llamador esté abierta y
    no cubre el primer número del año; create_invoice reintenta si otro
    proceso tomó el mismo número.
    """
    year = (today or timezone.localdate()).year
    series = f"{settings.INVOICE_NUMBER_PREFIX}-{year}-"
    with transaction.atomic():
        last = (Invoice.objects.select_for_update()
                .filter(invoice_number__startswith=series)
                .order_by('-invoice_number')
                .values_list('invoice_number', flat=True)
                .first())
    sequence = int(last[len(series):]) + 1 if last else 1
    return f"{series}{sequence:05d}"


def create_invoice(customer, items, user=None, **fields):
    """
    Crea la factura con sus ítems y calcula el total.

    Cada ítem es un dict {service_type?, description?, quantity?, unit_price?};
    el tipo de servicio completa la descripción y el precio que falten.
    """
    if not items:
        raise ValueError("La factura debe tener al menos un ítem.")

    for attempt in range(1, INVOICE_NUMBER_ATTEMPTS + 1):
        try:
            return _create_invoice(customer, items, user, fields)
        except IntegrityError:
            if attempt == INVOICE_NUMBER_ATTEMPTS:
                raise
            logger.warning("Número de factura en uso, reintentando (%s/%s)", attempt, INVOICE_NUMBER_ATTEMPTS)


def _create_invoice(customer, items, user, fields):
    with transaction.atomic():
        invoice = Invoice.objects.create(
            invoice_number=generate_invoice_number(fields.get('issue_date')),
            customer=customer,
            created_by=user,
            **fields,
        )
        total = Decimal('0.00')
        for item in items:
            service_type = item.get('service_type')
            description = item.get('description') or (service_type.name if service_type else '')
            unit_price = item.get('unit_price')
            if unit_price is None and service_type is not None:
                unit_price = service_type.price
            if not description or unit_price is None:
                raise ValueError("Cada ítem necesita descripción y precio unitario o un tipo de servicio.")

            invoice_item = InvoiceItem.objects.create(
                invoice=invoice,
                service_type=service_type,
                description=description,
                quantity=item.get('quantity') or Decimal('1'),
                unit_price=unit_price,
            )
            total += invoice_item.total_price

        invoice.total_amount = total
        invoice.save(update_fields=['total_amount', 'updated_at'])

    logger.info("Factura %s creada por un total de %s", invoice.invoice_number, total)
    return invoice


def record_payable(user=None, **fields):
    """Registra una cuenta por pagar y su salida de caja"""
    with transaction.atomic():
        payable = AccountPayable.objects.create(created_by=user, **fields)
        CashFlowEntry.objects.create(
            entry_type=CashFlowEntry.EntryType.OUTFLOW,
            amount=payable.amount,
            category=payable.category or DEFAULT_EXPENSE_CATEGORY,
            description=payable.description or payable.supplier_name,
            reference_type='accounts_payable',
            reference_id=str(payable.pk),
            created_by=user,
        )
    return payable


def record_receivable(user=None, **fields):
    """Registra una cuenta por cobrar y su entrada de caja"""
    with transaction.atomic():
        receivable = AccountReceivable.objects.create(created_by=user, **fields)
        CashFlowEntry.objects.create(
            entry_type=CashFlowEntry.EntryType.INFLOW,
            amount=receivable.amount,
            category=DEFAULT_REVENUE_CATEGORY,
            description=receivable.description,
            reference_type='accounts_receivable',
            reference_id=str(receivable.pk),
            created_by=user,
        )
    return receivable


def update_payment_status(record, status, payment_method=None):
    """
    Cambia el estado de pago de una factura o cuenta. Pasar a pagado marca
    la fecha de pago; cualquier otro estado la limpia.
    """
    valid = {choice for choice, _label in record.Status.choices}
    if status not in valid:
        raise ValueError(f"Estado inválido: {status}")

    paid = status == record.Status.PAID
    now = timezone.now() if paid else None
    record.status = status
    update_fields = ['status', 'updated_at']

    if isinstance(record, AccountReceivable):
        record.received_at = now
        update_fields.append('received_at')
    else:
        record.paid_at = now
        update_fields.append('paid_at')

    if payment_method and isinstance(record, Invoice):
        record.payment_method = payment_method
        update_fields.append('payment_method')

    record.save(update_fields=update_fields)
    return record


def overdue_filter(today=None):
    """Sin pagar (ni cancelada) y vencida por fecha o marcada como vencida"""
    today = today or timezone.localdate()
    return (
        ~Q(status__in=['paid', 'cancelled'])
        & (Q(due_date__lt=today) | Q(status='overdue'))
    )


def financial_summary(today=None):
    """Los saldos pendientes solo suman registros en estado pendiente."""
    condition = overdue_filter(today)
    pending = Q(status='pending')

    def total(queryset, field):
        return queryset.aggregate(total=Sum(field))['total'] or Decimal('0.00')

    return {
        'total_revenue': total(Invoice.objects.filter(status=Invoice.Status.PAID), 'total_amount'),
        'pending_receivables': total(AccountReceivable.objects.filter(pending), 'amount'),
        'pending_payables': total(AccountPayable.objects.filter(pending), 'amount'),
        'overdue_count': (
            Invoice.objects.filter(condition).count()
            + AccountReceivable.objects.filter(condition).count()
            + AccountPayable.objects.filter(condition).count()
        ),
    }


def mark_overdue(today=None):
    """Marca como vencidos los registros pendientes con vencimiento pasado"""
    today = today or timezone.localdate()
    return {
        model._meta.model_name: model.objects.filter(
            status__in=['pending', 'partial'], due_date__lt=today
        ).update(status='overdue', updated_at=timezone.now())
        for model in (Invoice, AccountPayable, AccountReceivable)
    }
