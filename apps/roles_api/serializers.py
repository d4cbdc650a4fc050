from rest_framework import serializers

from .models import Permission, Role, RolePermission, UserRole


class PermissionSerializer(serializers.ModelSerializer):

    class Meta:
        model = Permission
        fields = ("id", "name", "description", "module", "action", "is_active")


class RoleSerializer(serializers.Serializer):
    """Un rol de la enumeración con los permisos que tiene asignados."""
    role = serializers.CharField()
    label = serializers.CharField()
    permissions = serializers.ListField(child=serializers.CharField())
    assigned_users = serializers.IntegerField()


class RolePermissionsUpdateSerializer(serializers.Serializer):
    permissions = serializers.ListField(child=serializers.CharField(), allow_empty=True)

    def validate_permissions(self, value):
        if len(value) != len(set(value)):
            raise serializers.ValidationError("No se permiten permisos duplicados.")
        existing = set(Permission.objects.filter(name__in=value).values_list('name', flat=True))
        unknown = sorted(set(value) - existing)
        if unknown:
            raise serializers.ValidationError(f"Permisos desconocidos: {', '.join(unknown)}")
        return value

    def save(self, role):
        names = self.validated_data['permissions']
        RolePermission.objects.filter(role=role).exclude(permission__name__in=names).delete()
        for permission in Permission.objects.filter(name__in=names):
            RolePermission.objects.get_or_create(role=role, permission=permission)
        return names


class RoleAssignmentSerializer(serializers.Serializer):
    roles = serializers.ListField(
        child=serializers.ChoiceField(choices=Role.choices), allow_empty=True
    )

    def validate_roles(self, value):
        return sorted(set(value))

    def save(self, user):
        roles = self.validated_data['roles']
        UserRole.objects.filter(user=user).exclude(role__in=roles).delete()
        for role in roles:
            UserRole.objects.get_or_create(user=user, role=role)
        return roles
