from rest_framework import serializers
from .models import Customer, Pool, only_digits


class PoolSerializer(serializers.ModelSerializer):
    type_display = serializers.CharField(source='get_type_display', read_only=True)

    class Meta:
        model = Pool
        fields = [
            'id', 'customer', 'type', 'type_display', 'length', 'width', 'depth', 'volume',
            'filtration_system', 'last_maintenance', 'observations', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']


class CustomerSerializer(serializers.ModelSerializer):
    pools_count = serializers.IntegerField(source='pools.count', read_only=True)
    document = serializers.CharField(max_length=20, required=False, allow_blank=True)

    class Meta:
        model = Customer
        fields = [
            'id', 'full_name', 'person_type', 'document', 'phone', 'email',
            'address_zip', 'address_street', 'address_number', 'address_neighborhood',
            'address_city', 'address_state', 'observations', 'is_active',
            'pools_count', 'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = ['is_active', 'created_by', 'created_at', 'updated_at']

    def validate_full_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("El nombre es obligatorio.")
        return value.strip()

    def validate_phone(self, value):
        if not only_digits(value):
            raise serializers.ValidationError("El teléfono es obligatorio.")
        return value

    def validate_address_zip(self, value):
        digits = only_digits(value)
        if digits and len(digits) != 8:
            raise serializers.ValidationError("El CEP debe tener 8 dígitos.")
        return digits

    def validate_address_state(self, value):
        return (value or '').upper()

    def validate(self, attrs):
        person_type = attrs.get('person_type', getattr(self.instance, 'person_type', Customer.PersonType.INDIVIDUAL))
        if 'document' in attrs or 'person_type' in attrs:
            document = only_digits(attrs.get('document', getattr(self.instance, 'document', '')))
            expected = Customer.DOCUMENT_LENGTH[person_type]
            if document and len(document) != expected:
                label = 'CPF' if person_type == Customer.PersonType.INDIVIDUAL else 'CNPJ'
                raise serializers.ValidationError({'document': f"El {label} debe tener {expected} dígitos."})
            attrs['document'] = document
        return attrs
