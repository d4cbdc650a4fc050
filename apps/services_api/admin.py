from django.contrib import admin
from .models import ServiceTemplate, ServiceType, TaskTemplate


class ServiceTemplateInline(admin.StackedInline):
    model = ServiceTemplate
    extra = 0
    fields = ('name', 'description', 'default_tasks', 'estimated_duration', 'is_active')


@admin.register(ServiceType)
class ServiceTypeAdmin(admin.ModelAdmin):
    list_display = ('name', 'estimated_duration', 'price', 'is_active')
    list_filter = ('is_active',)
    search_fields = ('name',)
    inlines = [ServiceTemplateInline]


@admin.register(TaskTemplate)
class TaskTemplateAdmin(admin.ModelAdmin):
    list_display = ('name', 'category', 'estimated_minutes', 'is_active')
    list_filter = ('category', 'is_active')
    search_fields = ('name', 'description')
