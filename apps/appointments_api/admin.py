from django.contrib import admin
from .models import Appointment


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ('customer', 'service_type', 'technician', 'start_time', 'status', 'progress')
    list_filter = ('status', 'service_type')
    search_fields = ('customer__full_name', 'observations')
    date_hierarchy = 'start_time'
    raw_id_fields = ('customer', 'pool', 'technician', 'created_by')

    def progress(self, obj):
        return f"{round(obj.task_list.progress_percentage)}%"
    progress.short_description = 'Progreso'
