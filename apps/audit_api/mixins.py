"""
Audit Logging Mixin for Django REST Framework ViewSets
Provides automatic audit logging for CRUD operations
"""

from .utils import log_audit_action, snapshot


class AuditLoggingMixin:
    """
    Mixin that logs create, update and delete operations of a ModelViewSet
    with the row values before and after the change.
    """

    def log_action(self, action, instance, old_values=None, new_values=None, record_id=None):
        """Create audit log entry for an instance"""
        return log_audit_action(
            user=self.request.user,
            action=action,
            table_name=instance._meta.db_table,
            record_id=instance.pk if record_id is None else record_id,
            old_values=old_values,
            new_values=new_values,
            request=self.request,
        )

    def get_create_kwargs(self):
        """Extra values passed to serializer.save() on create"""
        return {}

    def perform_create(self, serializer):
        instance = serializer.save(**self.get_create_kwargs())
        self.log_action('create', instance, new_values=snapshot(instance))
        return instance

    def perform_update(self, serializer):
        old_values = snapshot(serializer.instance)
        instance = serializer.save()
        self.log_action('update', instance, old_values=old_values, new_values=snapshot(instance))
        return instance

    def perform_destroy(self, instance):
        old_values = snapshot(instance)
        record_id = instance.pk
        instance.delete()
        self.log_action('delete', instance, old_values=old_values, record_id=record_id)
