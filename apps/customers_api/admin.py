from django.contrib import admin
from .models import Customer, Pool


class PoolInline(admin.TabularInline):
    model = Pool
    extra = 0
    fields = ('type', 'volume', 'filtration_system', 'last_maintenance', 'is_active')


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ('full_name', 'person_type', 'document', 'phone', 'address_city', 'is_active')
    list_filter = ('person_type', 'is_active', 'address_state')
    search_fields = ('full_name', 'document', 'email', 'phone')
    inlines = [PoolInline]


@admin.register(Pool)
class PoolAdmin(admin.ModelAdmin):
    list_display = ('customer', 'type', 'volume', 'last_maintenance', 'is_active')
    list_filter = ('type', 'is_active')
    search_fields = ('customer__full_name',)
