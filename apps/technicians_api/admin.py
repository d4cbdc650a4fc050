from django.contrib import admin
from .models import Technician


@admin.register(Technician)
class TechnicianAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'phone', 'hourly_rate', 'work_radius_km', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('full_name', 'email', 'phone')
