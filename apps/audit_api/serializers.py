from rest_framework import serializers

from apps.roles_api.guards import permission_guard
from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    """
    Serializador de AuditLog. Las columnas del usuario solo se incluyen
    cuando el actor (context['session']) tiene view_audit_logs.
    """
    user_name = serializers.SerializerMethodField()
    user_email = serializers.SerializerMethodField()

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'user',
            'user_name',
            'user_email',
            'action',
            'table_name',
            'record_id',
            'old_values',
            'new_values',
            'ip_address',
            'user_agent',
            'created_at',
        ]
        read_only_fields = fields

    USER_FIELDS = ('user', 'user_name', 'user_email')

    def get_user_name(self, obj):
        if obj.user and obj.user.full_name:
            return obj.user.full_name
        return 'unknown'

    def get_user_email(self, obj):
        return obj.user.email if obj.user else None

    def to_representation(self, instance):
        data = super().to_representation(instance)
        user_columns = {name: data.pop(name) for name in self.USER_FIELDS}
        data.update(permission_guard(
            self.context.get('session'), 'view_audit_logs', user_columns, fallback={}
        ))
        return data
