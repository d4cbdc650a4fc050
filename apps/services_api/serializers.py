from rest_framework import serializers

from apps.appointments_api.checklist import TaskList, TaskSkeletonSerializer, instantiate_from_template
from .models import ServiceTemplate, ServiceType, TaskTemplate


class ServiceTypeSerializer(serializers.ModelSerializer):
    templates_count = serializers.SerializerMethodField()

    class Meta:
        model = ServiceType
        fields = ['id', 'name', 'description', 'estimated_duration', 'price', 'is_active',
                  'templates_count', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def get_templates_count(self, obj):
        return obj.templates.filter(is_active=True).count()

    def validate_estimated_duration(self, value):
        if value <= 0:
            raise serializers.ValidationError("La duración debe ser mayor a 0 minutos.")
        return value


class ServiceTemplateSerializer(serializers.ModelSerializer):
    service_type_name = serializers.CharField(source='service_type.name', read_only=True)
    default_tasks = serializers.ListField(child=serializers.DictField(), required=False)
    total_estimated_minutes = serializers.SerializerMethodField()

    class Meta:
        model = ServiceTemplate
        fields = ['id', 'service_type', 'service_type_name', 'name', 'description', 'default_tasks',
                  'estimated_duration', 'total_estimated_minutes', 'is_active', 'created_at', 'updated_at']
        read_only_fields = ['created_at', 'updated_at']

    def validate_default_tasks(self, value):
        skeletons = TaskSkeletonSerializer(data=value, many=True)
        if not skeletons.is_valid():
            raise serializers.ValidationError(skeletons.errors)
        return [
            {key: item_value for key, item_value in item.items() if item_value is not None}
            for item in skeletons.validated_data
        ]

    def get_total_estimated_minutes(self, obj):
        return TaskList(instantiate_from_template(obj.default_tasks or [])).total_estimated_minutes


class TaskTemplateSerializer(serializers.ModelSerializer):
    requires_materials = serializers.ListField(child=serializers.CharField(max_length=100), required=False)

    class Meta:
        model = TaskTemplate
        fields = ['id', 'name', 'description', 'category', 'estimated_minutes', 'requires_materials',
                  'safety_requirements', 'is_active', 'created_at']
        read_only_fields = ['created_at']
