from django.contrib.auth import get_user_model
from rest_framework import serializers

User = get_user_model()


class RegisterSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name', 'phone', 'password']
        read_only_fields = ['id']

    def validate_full_name(self, value):
        if not value.strip():
            raise serializers.ValidationError("El nombre es obligatorio.")
        return value.strip()

    def create(self, validated_data):
        return User.objects.create_user(**validated_data)


class LoginSerializer(serializers.Serializer):
    email = serializers.EmailField()
    password = serializers.CharField()

    def validate(self, data):
        user = User.objects.filter(email__iexact=data.get('email')).first()
        if not user or not user.check_password(data.get('password')):
            raise serializers.ValidationError("Credenciales inválidas.")
        data['user'] = user
        return data


class LogoutSerializer(serializers.Serializer):
    refresh = serializers.CharField(required=False)


class UserProfileSerializer(serializers.ModelSerializer):
    roles = serializers.ListField(source='role_names', child=serializers.CharField(), read_only=True)

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name', 'phone', 'is_active', 'date_joined', 'roles']
        read_only_fields = ['id', 'email', 'is_active', 'date_joined', 'roles']


class PermissionRowSerializer(serializers.Serializer):
    permission_name = serializers.CharField()
    permission_description = serializers.CharField(allow_blank=True)
    module = serializers.CharField()
    action = serializers.CharField()


class SessionSerializer(serializers.Serializer):
    """Representación de una ActorSession"""
    user = UserProfileSerializer(read_only=True)
    roles = serializers.ListField(child=serializers.CharField())
    permissions = PermissionRowSerializer(many=True)

    def to_representation(self, session):
        return {
            'user': UserProfileSerializer(session.user).data if session.is_authenticated else None,
            'roles': sorted(str(role) for role in session.roles),
            'permissions': PermissionRowSerializer(session.permission_rows, many=True).data,
        }


class NavigationItemSerializer(serializers.Serializer):
    key = serializers.CharField()
    label = serializers.CharField()
    path = serializers.CharField()
