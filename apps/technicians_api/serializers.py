from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Technician

User = get_user_model()

WEEKDAYS = ('monday', 'tuesday', 'wednesday', 'thursday', 'friday', 'saturday', 'sunday')


class TechnicianSerializer(serializers.ModelSerializer):
    user = serializers.PrimaryKeyRelatedField(queryset=User.objects.all(), required=False, allow_null=True)
    user_email = serializers.SerializerMethodField()
    specialties = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    certifications = serializers.ListField(child=serializers.CharField(max_length=100), required=False)

    class Meta:
        model = Technician
        fields = [
            'id', 'user', 'user_email', 'full_name', 'phone', 'email', 'specialties', 'certifications',
            'hourly_rate', 'work_radius_km', 'availability', 'emergency_contact', 'is_active',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def get_user_email(self, obj):
        return obj.user.email if obj.user else None

    def validate_user(self, value):
        if value is None:
            return value
        others = Technician.objects.filter(user=value)
        if self.instance is not None:
            others = others.exclude(pk=self.instance.pk)
        if others.exists():
            raise serializers.ValidationError("El usuario ya está vinculado a otro técnico.")
        return value

    def validate_availability(self, value):
        if not isinstance(value, dict):
            raise serializers.ValidationError("La disponibilidad debe ser un objeto por día de la semana.")
        unknown = sorted(set(value) - set(WEEKDAYS))
        if unknown:
            raise serializers.ValidationError(f"Días inválidos: {', '.join(unknown)}")
        return value
