from datetime import datetime, timedelta

from django.db.models import Count, Q
from django.utils import timezone
from django.utils.dateparse import parse_datetime
from rest_framework import viewsets, filters, status
from rest_framework.decorators import action, api_view, permission_classes
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.audit_api.mixins import AuditLoggingMixin
from apps.auth_api.session import ActorSession
from apps.notifications_api.services import NotificationType
from apps.notifications_api.tasks import send_appointment_notification
from apps.roles_api.decorators import require_permission
from apps.roles_api.permissions import HasActionPermission
from apps.services_api.utils import tasks_from_template
from .checklist import TaskList, TaskSerializer
from .models import Appointment
from .serializers import AddTaskSerializer, AppointmentSerializer, ApplyTemplateSerializer, TaskUpdateSerializer

VIEW_ACTIONS = ('view_appointments', 'view_own_tasks')

STATUS_COLORS = {
    Appointment.Status.SCHEDULED: '#3498db',
    Appointment.Status.CONFIRMED: '#9b59b6',
    Appointment.Status.IN_PROGRESS: '#f39c12',
    Appointment.Status.COMPLETED: '#2ecc71',
    Appointment.Status.CANCELLED: '#e74c3c',
}


def visible_appointments(request):
    """Agendamientos visibles para el actor de la petición"""
    session = ActorSession.for_request(request)
    queryset = Appointment.objects.select_related('customer', 'pool', 'technician', 'service_type')
    if session.has_permission('view_appointments'):
        return queryset
    if session.has_permission('view_own_tasks'):
        return queryset.filter(technician__user=request.user)
    return queryset.none()


class AppointmentViewSet(AuditLoggingMixin, viewsets.ModelViewSet):
    serializer_class = AppointmentSerializer
    permission_classes = [HasActionPermission]
    action_permissions = {
        'list': VIEW_ACTIONS,
        'retrieve': VIEW_ACTIONS,
        'stats': VIEW_ACTIONS,
        'today': VIEW_ACTIONS,
        'tasks': VIEW_ACTIONS,
        'create': 'create_appointments',
        'update': 'edit_appointments',
        'partial_update': 'edit_appointments',
        'confirm': 'edit_appointments',
        'complete': ('edit_appointments', 'manage_tasks'),
        'start': ('edit_appointments', 'manage_tasks'),
        'cancel': 'edit_appointments',
        'destroy': 'delete_appointments',
        'add_task': 'manage_tasks',
        'update_task': 'manage_tasks',
        'delete_task': 'manage_tasks',
        'toggle_task': 'manage_tasks',
        'apply_template': 'manage_tasks',
    }

    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter
    ]
    filterset_fields = ['status', 'customer', 'technician', 'service_type']
    search_fields = ['customer__full_name', 'observations']
    ordering_fields = ['start_time', 'created_at']
    ordering = ['-start_time']

    def get_queryset(self):
        return visible_appointments(self.request)

    def get_create_kwargs(self):
        return {'created_by': self.request.user}

    # Checklist de tareas

    def _save_tasks(self, appointment, task_list):
        old_values = {'tasks': appointment.tasks}
        appointment.set_tasks(task_list)
        appointment.save(update_fields=['tasks', 'updated_at'])
        self.log_action('update', appointment, old_values=old_values, new_values={'tasks': appointment.tasks})

    def _tasks_response(self, task_list, status_code=status.HTTP_200_OK):
        return Response({
            'tasks': TaskSerializer(task_list.ordered(), many=True).data,
            'summary': task_list.summary(),
        }, status=status_code)

    @action(detail=True, methods=['get'])
    def tasks(self, request, pk=None):
        """Checklist ordenado y su resumen de progreso"""
        return self._tasks_response(self.get_object().task_list)

    @tasks.mapping.post
    def add_task(self, request, pk=None):
        appointment = self.get_object()
        serializer = AddTaskSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        task_list = appointment.task_list
        task = task_list.add(serializer.validated_data['description'],
                             serializer.validated_data.get('estimated_minutes'))
        if task is None:
            raise ValidationError({'description': "La descripción de la tarea es obligatoria."})
        self._save_tasks(appointment, task_list)
        return self._tasks_response(task_list, status.HTTP_201_CREATED)

    def _get_task_list(self, appointment, task_id):
        task_list = appointment.task_list
        if task_list.get(task_id) is None:
            raise NotFound("Tarea no encontrada.")
        return task_list

    @action(detail=True, methods=['patch'], url_path=r'tasks/(?P<task_id>[^/.]+)')
    def update_task(self, request, pk=None, task_id=None):
        appointment = self.get_object()
        task_list = self._get_task_list(appointment, task_id)
        serializer = TaskUpdateSerializer(data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)

        task_list.update(task_id, serializer.validated_data)
        self._save_tasks(appointment, task_list)
        return self._tasks_response(task_list)

    @update_task.mapping.delete
    def delete_task(self, request, pk=None, task_id=None):
        appointment = self.get_object()
        task_list = self._get_task_list(appointment, task_id)
        task_list.delete(task_id)
        self._save_tasks(appointment, task_list)
        return self._tasks_response(task_list)

    @action(detail=True, methods=['post'], url_path=r'tasks/(?P<task_id>[^/.]+)/toggle')
    def toggle_task(self, request, pk=None, task_id=None):
        appointment = self.get_object()
        task_list = self._get_task_list(appointment, task_id)
        task_list.toggle_status(task_id)
        self._save_tasks(appointment, task_list)
        return self._tasks_response(task_list)

    @action(detail=True, methods=['post'], url_path='apply-template')
    def apply_template(self, request, pk=None):
        """
        Aplica una plantilla de servicio al checklist.

        `replace` sustituye la lista actual; `append` agrega las tareas nuevas
        después de las existentes, desplazando su orden.
        """
        appointment = self.get_object()
        serializer = ApplyTemplateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        new_tasks = tasks_from_template(serializer.validated_data['template'])
        if serializer.validated_data['mode'] == ApplyTemplateSerializer.MODE_APPEND:
            task_list = appointment.task_list
            offset = max((task.order for task in task_list), default=0)
            for task in new_tasks:
                task.order += offset
            task_list.extend(new_tasks)
        else:
            task_list = TaskList(new_tasks)

        self._save_tasks(appointment, task_list)
        return self._tasks_response(task_list)

    # Estado del agendamiento

    def _change_status(self, allowed_from, new_status, notification_type=None):
        appointment = self.get_object()
        if appointment.status not in allowed_from:
            raise ValidationError(
                f"No se puede pasar de '{appointment.get_status_display()}' a '{Appointment.Status(new_status).label}'."
            )
        old_values = {'status': appointment.status}
        appointment.status = new_status
        appointment.save(update_fields=['status', 'updated_at'])
        self.log_action('status_change', appointment, old_values=old_values,
                        new_values={'status': appointment.status})
        if notification_type:
            send_appointment_notification.delay(appointment.pk, notification_type)
        return Response(self.get_serializer(appointment).data)

    @action(detail=True, methods=['post'])
    def confirm(self, request, pk=None):
        return self._change_status(
            [Appointment.Status.SCHEDULED],
            Appointment.Status.CONFIRMED,
            NotificationType.CONFIRMATION,
        )

    @action(detail=True, methods=['post'])
    def start(self, request, pk=None):
        return self._change_status(
            [Appointment.Status.SCHEDULED, Appointment.Status.CONFIRMED],
            Appointment.Status.IN_PROGRESS,
        )

    @action(detail=True, methods=['post'])
    def complete(self, request, pk=None):
        return self._change_status(
            [Appointment.Status.CONFIRMED, Appointment.Status.IN_PROGRESS, Appointment.Status.SCHEDULED],
            Appointment.Status.COMPLETED,
            NotificationType.UPDATE,
        )

    @action(detail=True, methods=['post'])
    def cancel(self, request, pk=None):
        return self._change_status(
            [Appointment.Status.SCHEDULED, Appointment.Status.CONFIRMED, Appointment.Status.IN_PROGRESS],
            Appointment.Status.CANCELLED,
            NotificationType.CANCELLATION,
        )

    @action(detail=False, methods=['get'])
    def today(self, request):
        today = timezone.localdate()
        appointments = self.get_queryset().filter(start_time__date=today).order_by('start_time')
        return Response(self.get_serializer(appointments, many=True).data)

    @action(detail=False, methods=['get'])
    def stats(self, request):
        today = timezone.localdate()
        return Response(self.get_queryset().aggregate(
            today=Count('id', filter=Q(start_time__date=today)),
            pending=Count('id', filter=Q(status__in=[Appointment.Status.SCHEDULED, Appointment.Status.CONFIRMED])),
            completed=Count('id', filter=Q(status=Appointment.Status.COMPLETED)),
            cancelled=Count('id', filter=Q(status=Appointment.Status.CANCELLED)),
        ))


def _parse_range_value(value):
    if not value:
        return None
    try:
        parsed = parse_datetime(value.replace(' ', '+')) or datetime.fromisoformat(value[:10])
    except ValueError:
        return None
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed)
    return parsed


@api_view(['GET'])
@permission_classes([IsAuthenticated])
@require_permission('view_appointments')
def calendar_events(request):
    """Eventos para calendario - formato FullCalendar"""
    start = _parse_range_value(request.GET.get('start'))
    end = _parse_range_value(request.GET.get('end'))
    if start is None or end is None:
        return Response({'error': 'start y end son requeridos en formato ISO'}, status=400)

    appointments = visible_appointments(request).filter(start_time__gte=start, start_time__lte=end)

    events = []
    for apt in appointments:
        end_time = apt.end_time or apt.start_time + timedelta(minutes=apt.service_type.estimated_duration)
        color = STATUS_COLORS.get(apt.status, '#95a5a6')
        events.append({
            'id': apt.id,
            'title': f"{apt.customer.full_name} - {apt.service_type.name}",
            'start': apt.start_time.isoformat(),
            'end': end_time.isoformat(),
            'backgroundColor': color,
            'borderColor': color,
            'extendedProps': {
                'customerName': apt.customer.full_name,
                'customerPhone': apt.customer.phone,
                'technicianName': apt.technician.full_name if apt.technician else 'Sin asignar',
                'serviceName': apt.service_type.name,
                'status': apt.status,
                'progress': round(apt.task_list.progress_percentage),
                'notes': apt.observations,
            }
        })

    return Response(events)
