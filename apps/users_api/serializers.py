from django.contrib.auth import get_user_model
from django.db import transaction
from rest_framework import serializers

from apps.roles_api.models import Role, UserRole

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, required=False, min_length=8)
    roles = serializers.ListField(
        source='role_names',
        child=serializers.ChoiceField(choices=Role.choices),
        required=False,
    )

    class Meta:
        model = User
        fields = ['id', 'email', 'full_name', 'phone', 'password', 'is_active', 'date_joined',
                  'last_login', 'roles']
        read_only_fields = ['id', 'is_active', 'date_joined', 'last_login']

    def validate_email(self, value):
        others = User.objects.filter(email__iexact=value)
        if self.instance is not None:
            others = others.exclude(pk=self.instance.pk)
        if others.exists():
            raise serializers.ValidationError("Este correo ya está registrado.")
        return value

    def create(self, validated_data):
        roles = sorted(set(validated_data.pop('role_names', [])))
        password = validated_data.pop('password', None)

        with transaction.atomic():
            user = User.objects.create_user(password=password, **validated_data)
            for role in roles:
                UserRole.objects.create(user=user, role=role)
        return user

    def update(self, instance, validated_data):
        if validated_data.pop('role_names', None) is not None:
            raise serializers.ValidationError({"roles": "Use el endpoint de roles para cambiar los roles."})

        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance
