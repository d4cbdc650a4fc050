from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin
from .models import User
from apps.roles_api.models import UserRole


class UserRoleInlineForUser(admin.TabularInline):
    model = UserRole
    extra = 1
    fields = ('role', 'assigned_at',)
    readonly_fields = ('assigned_at',)


@admin.register(User)
class CustomUserAdmin(BaseUserAdmin):
    list_display = ('email', 'full_name', 'is_active', 'is_staff', 'get_roles_display')
    list_filter = ('is_active', 'is_staff', 'user_roles__role')

    search_fields = ('email', 'full_name')
    ordering = ('email',)

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Datos personales', {'fields': ('full_name', 'phone')}),
        ('Acceso', {'fields': ('is_active', 'is_staff', 'is_superuser')}),
        ('Fechas', {'fields': ('last_login', 'date_joined', 'last_login_ip_address')}),
    )

    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'full_name', 'phone', 'password1', 'password2'),
        }),
    )

    inlines = (UserRoleInlineForUser,)

    @admin.display(description='Roles asignados')
    def get_roles_display(self, obj):
        return ", ".join(obj.role_names)
