"""
Checklist de tareas de un agendamiento.

Las tareas se guardan en Appointment.tasks como una lista JSON validada con
TaskSerializer. Al guardar el agendamiento la lista se normaliza (id y orden
quedan persistidos); al leerla, una lista que no cumple el esquema se
registra en el log y se trata como vacía.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from django.conf import settings
from django.db import models
from django.utils import timezone
from rest_framework import serializers

logger = logging.getLogger(__name__)


class TaskStatus(models.TextChoices):
    PENDING = 'pending', 'Pendiente'
    IN_PROGRESS = 'in_progress', 'En progreso'
    COMPLETED = 'completed', 'Completada'


def default_task_minutes():
    return getattr(settings, 'DEFAULT_TASK_MINUTES', 30)


def new_task_id():
    return str(uuid.uuid4())


@dataclass
class Task:
    description: str
    estimated_minutes: int = field(default_factory=default_task_minutes)
    status: str = TaskStatus.PENDING
    order: int = 1
    id: str = field(default_factory=new_task_id)
    assigned_to: Optional[int] = None
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None

    @property
    def is_completed(self):
        return self.status == TaskStatus.COMPLETED


class TaskSerializer(serializers.Serializer):
    """Esquema de una tarea tal como se persiste en Appointment.tasks."""
    id = serializers.CharField(max_length=64, required=False)
    description = serializers.CharField(max_length=500)
    estimated_minutes = serializers.IntegerField(min_value=1, required=False)
    status = serializers.ChoiceField(choices=TaskStatus.choices, default=TaskStatus.PENDING)
    assigned_to = serializers.IntegerField(allow_null=True, required=False)
    completed_at = serializers.DateTimeField(allow_null=True, required=False)
    notes = serializers.CharField(allow_blank=True, allow_null=True, required=False)
    order = serializers.IntegerField(required=False)


class TaskSkeletonSerializer(serializers.Serializer):
    """Esquema de una tarea de plantilla: {description, estimated_minutes?, order?}."""
    description = serializers.CharField(max_length=500)
    estimated_minutes = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    order = serializers.IntegerField(required=False, allow_null=True)


def instantiate_from_template(skeletons):
    """
    Crea tareas nuevas a partir de los esqueletos de una plantilla: id
    nuevo, estado pendiente, 30 minutos y posición 1-based por defecto.
    No toca ninguna lista existente.
    """
    return [
        Task(
            description=skeleton['description'],
            estimated_minutes=skeleton.get('estimated_minutes') or default_task_minutes(),
            order=skeleton.get('order') or position,
        )
        for position, skeleton in enumerate(skeletons, start=1)
    ]


class TaskList:
    UPDATABLE_FIELDS = ('description', 'estimated_minutes', 'status', 'assigned_to', 'notes', 'order')

    def __init__(self, tasks=None):
        self._tasks = list(tasks or [])

    @classmethod
    def parse(cls, data):
        """Valida la lista guardada; lanza ValidationError si no cumple el esquema."""
        serializer = TaskSerializer(data=data or [], many=True)
        serializer.is_valid(raise_exception=True)
        tasks = []
        for position, item in enumerate(serializer.validated_data, start=1):
            item = dict(item)
            item.setdefault('order', position)
            tasks.append(Task(**item))
        return cls(tasks)

    @classmethod
    def from_json(cls, data):
        """Como parse, pero una lista inválida se registra y se lee vacía."""
        try:
            return cls.parse(data)
        except serializers.ValidationError as exc:
            logger.warning("Checklist inválido ignorado: %s", exc.detail)
            return cls()

    def to_json(self):
        return [dict(item) for item in TaskSerializer(self._tasks, many=True).data]

    def __len__(self):
        return len(self._tasks)

    def __iter__(self):
        return iter(self._tasks)

    @property
    def tasks(self):
        return list(self._tasks)

    def get(self, task_id):
        return next((task for task in self._tasks if task.id == task_id), None)

    def ordered(self):
        """Tareas por `order` ascendente; los empates conservan el orden de inserción."""
        return sorted(self._tasks, key=lambda task: task.order)

    def add(self, description, estimated_minutes=None):
        """Agrega una tarea pendiente al final. Una descripción vacía no hace nada."""
        if description is None or not str(description).strip():
            return None
        task = Task(
            description=str(description).strip(),
            estimated_minutes=estimated_minutes or default_task_minutes(),
            order=len(self._tasks) + 1,
        )
        self._tasks.append(task)
        return task

    def extend(self, tasks):
        self._tasks.extend(tasks)

    def update(self, task_id, changes):
        task = self.get(task_id)
        if task is None:
            return None
        for name, value in changes.items():
            if name not in self.UPDATABLE_FIELDS:
                continue
            if name == 'status':
                value = TaskStatus(value)
            setattr(task, name, value)
        if 'status' in changes:
            task.completed_at = timezone.now() if task.is_completed else None
        return task

    def delete(self, task_id):
        task = self.get(task_id)
        if task is not None:
            self._tasks.remove(task)
        return task

    def toggle_status(self, task_id):
        task = self.get(task_id)
        if task is None:
            return None
        new_status = TaskStatus.PENDING if task.is_completed else TaskStatus.COMPLETED
        return self.update(task_id, {'status': new_status})

    # Lecturas derivadas

    @property
    def completed_count(self):
        return sum(1 for task in self._tasks if task.is_completed)

    @property
    def progress(self):
        """Fracción completada, sin redondear. 0 con la lista vacía."""
        if not self._tasks:
            return 0.0
        return self.completed_count / len(self._tasks)

    @property
    def progress_percentage(self):
        return self.progress * 100

    @property
    def total_estimated_minutes(self):
        return sum(task.estimated_minutes for task in self._tasks)

    @property
    def completed_minutes(self):
        return sum(task.estimated_minutes for task in self._tasks if task.is_completed)

    def summary(self):
        return {
            'total': len(self._tasks),
            'completed': self.completed_count,
            'progress_percentage': round(self.progress_percentage),
            'total_estimated_minutes': self.total_estimated_minutes,
            'completed_minutes': self.completed_minutes,
        }
