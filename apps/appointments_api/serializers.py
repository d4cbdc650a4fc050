from rest_framework import serializers

from apps.services_api.models import ServiceTemplate
from apps.services_api.utils import tasks_from_template
from apps.technicians_api.models import Technician
from .checklist import TaskList, TaskSerializer, TaskStatus
from .models import Appointment


class AppointmentSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source='customer.full_name', read_only=True)
    technician_name = serializers.CharField(source='technician.full_name', read_only=True, default=None)
    service_type_name = serializers.CharField(source='service_type.name', read_only=True)
    end_time = serializers.DateTimeField(required=False)
    tasks = serializers.SerializerMethodField()
    task_summary = serializers.SerializerMethodField()
    template = serializers.PrimaryKeyRelatedField(
        queryset=ServiceTemplate.objects.filter(is_active=True),
        write_only=True,
        required=False,
        allow_null=True,
    )

    class Meta:
        model = Appointment
        fields = [
            'id', 'customer', 'customer_name', 'pool', 'technician', 'technician_name',
            'service_type', 'service_type_name', 'start_time', 'end_time', 'status',
            'observations', 'tasks', 'task_summary', 'template', 'created_by',
            'created_at', 'updated_at',
        ]
        read_only_fields = ['status', 'created_by', 'created_at', 'updated_at']

    def get_tasks(self, obj):
        return TaskSerializer(obj.task_list.ordered(), many=True).data

    def get_task_summary(self, obj):
        return obj.task_list.summary()

    def validate(self, data):
        customer = data.get('customer', getattr(self.instance, 'customer', None))
        pool = data.get('pool', getattr(self.instance, 'pool', None))
        if pool is not None and customer is not None and pool.customer_id != customer.pk:
            raise serializers.ValidationError({'pool': "La piscina no pertenece al cliente."})

        start_time = data.get('start_time', getattr(self.instance, 'start_time', None))
        end_time = data.get('end_time')
        if end_time is not None and start_time is not None and end_time <= start_time:
            raise serializers.ValidationError({'end_time': "La hora de término debe ser posterior al inicio."})

        template = data.get('template')
        service_type = data.get('service_type', getattr(self.instance, 'service_type', None))
        if template is not None and service_type is not None and template.service_type_id != service_type.pk:
            raise serializers.ValidationError({'template': "La plantilla no corresponde al tipo de servicio."})
        return data

    def create(self, validated_data):
        template = validated_data.pop('template', None)
        if template is not None:
            validated_data['tasks'] = TaskList(tasks_from_template(template)).to_json()
        return super().create(validated_data)

    def update(self, instance, validated_data):
        validated_data.pop('template', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        # Solo los campos editados; el checklist se valida cuando se escribe
        instance.save(update_fields=[*validated_data, 'updated_at'])
        return instance


class AddTaskSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500, allow_blank=True, trim_whitespace=False)
    estimated_minutes = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class TaskUpdateSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=500)
    estimated_minutes = serializers.IntegerField(min_value=1)
    status = serializers.ChoiceField(choices=TaskStatus.choices)
    assigned_to = serializers.PrimaryKeyRelatedField(queryset=Technician.objects.all(), allow_null=True)
    notes = serializers.CharField(allow_blank=True, allow_null=True)
    order = serializers.IntegerField()

    def validate_assigned_to(self, value):
        return value.pk if value is not None else None


class ApplyTemplateSerializer(serializers.Serializer):
    MODE_REPLACE = 'replace'
    MODE_APPEND = 'append'

    template = serializers.PrimaryKeyRelatedField(queryset=ServiceTemplate.objects.filter(is_active=True))
    mode = serializers.ChoiceField(choices=[MODE_REPLACE, MODE_APPEND], default=MODE_REPLACE)

