from rest_framework import serializers

from apps.services_api.models import ServiceType
from .models import AccountPayable, AccountReceivable, CashFlowEntry, Invoice, InvoiceItem, PaymentMethod
from .services import create_invoice, record_payable, record_receivable


class InvoiceItemSerializer(serializers.ModelSerializer):
    service_type = serializers.PrimaryKeyRelatedField(queryset=ServiceType.objects.all(), required=False,
                                                      allow_null=True)
    description = serializers.CharField(max_length=255, required=False, allow_blank=True)
    unit_price = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0, required=False)

    class Meta:
        model = InvoiceItem
        fields = ['id', 'service_type', 'description', 'quantity', 'unit_price', 'total_price']
        read_only_fields = ['total_price']

    def validate(self, data):
        if not data.get('service_type') and (not data.get('description') or data.get('unit_price') is None):
            raise serializers.ValidationError(
                "Indique un tipo de servicio o la descripción y el precio unitario."
            )
        return data


class InvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)
    items = InvoiceItemSerializer(many=True)

    class Meta:
        model = Invoice
        fields = [
            'id', 'invoice_number', 'customer', 'customer_name', 'appointment', 'issue_date', 'due_date',
            'total_amount', 'status', 'payment_method', 'paid_at', 'description', 'items',
            'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['invoice_number', 'total_amount', 'status', 'paid_at', 'created_by',
                            'created_at', 'updated_at']

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("La factura debe tener al menos un ítem.")
        return value

    def validate(self, data):
        appointment = data.get('appointment')
        customer = data.get('customer')
        if appointment is not None and customer is not None and appointment.customer_id != customer.pk:
            raise serializers.ValidationError({'appointment': "El agendamiento no pertenece al cliente."})
        issue_date = data.get('issue_date')
        due_date = data.get('due_date')
        if issue_date and due_date and due_date < issue_date:
            raise serializers.ValidationError({'due_date': "El vencimiento no puede ser anterior a la emisión."})
        return data

    def create(self, validated_data):
        items = validated_data.pop('items')
        customer = validated_data.pop('customer')
        user = validated_data.pop('created_by', None)
        try:
            return create_invoice(customer, items, user=user, **validated_data)
        except ValueError as exc:
            raise serializers.ValidationError(str(exc))

    def update(self, instance, validated_data):
        if validated_data.pop('items', None) is not None:
            raise serializers.ValidationError({'items': "Los ítems de una factura emitida no se pueden modificar."})
        return super().update(instance, validated_data)


class AccountPayableSerializer(serializers.ModelSerializer):
    class Meta:
        model = AccountPayable
        fields = [
            'id', 'supplier_name', 'description', 'amount', 'due_date', 'category', 'document_number',
            'status', 'paid_at', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['status', 'paid_at', 'created_by', 'created_at', 'updated_at']

    def create(self, validated_data):
        user = validated_data.pop('created_by', None)
        return record_payable(user=user, **validated_data)


class AccountReceivableSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)

    class Meta:
        model = AccountReceivable
        fields = [
            'id', 'customer', 'customer_name', 'invoice', 'description', 'amount', 'due_date',
            'status', 'received_at', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['status', 'received_at', 'created_by', 'created_at', 'updated_at']

    def create(self, validated_data):
        user = validated_data.pop('created_by', None)
        return record_receivable(user=user, **validated_data)

    def validate(self, data):
        invoice = data.get('invoice')
        customer = data.get('customer')
        if invoice is not None and customer is not None and invoice.customer_id != customer.pk:
            raise serializers.ValidationError({'invoice': "La factura no pertenece al cliente."})
        return data


class CashFlowEntrySerializer(serializers.ModelSerializer):
    class Meta:
        model = CashFlowEntry
        fields = ['id', 'entry_type', 'amount', 'category', 'description', 'date',
                  'reference_type', 'reference_id', 'created_at']
        read_only_fields = fields


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    payment_method = serializers.ChoiceField(choices=PaymentMethod.choices, required=False, allow_blank=True)

    def validate_status(self, value):
        choices = self.context.get('status_choices', ())
        if value not in choices:
            raise serializers.ValidationError(f"Estado inválido. Opciones: {', '.join(choices)}")
        return value
