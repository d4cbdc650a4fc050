from .models import Role

PERMISSION_CATALOG = {
    # Customers
    'view_customers': {
        'description': 'Ver clientes y piscinas',
        'module': 'customers',
        'action': 'view',
    },
    'create_customers': {
        'description': 'Registrar clientes y piscinas',
        'module': 'customers',
        'action': 'create',
    },
    'edit_customers': {
        'description': 'Editar y archivar clientes',
        'module': 'customers',
        'action': 'edit',
    },
    'delete_customers': {
        'description': 'Eliminar clientes',
        'module': 'customers',
        'action': 'delete',
    },

    # Appointments
    'view_appointments': {
        'description': 'Ver todos los agendamientos',
        'module': 'appointments',
        'action': 'view',
    },
    'create_appointments': {
        'description': 'Crear agendamientos',
        'module': 'appointments',
        'action': 'create',
    },
    'edit_appointments': {
        'description': 'Editar y cambiar el estado de agendamientos',
        'module': 'appointments',
        'action': 'edit',
    },
    'delete_appointments': {
        'description': 'Eliminar agendamientos',
        'module': 'appointments',
        'action': 'delete',
    },
    'view_own_tasks': {
        'description': 'Ver los agendamientos y tareas asignados a uno mismo',
        'module': 'appointments',
        'action': 'view_own',
    },
    'manage_tasks': {
        'description': 'Gestionar el checklist de tareas de un agendamiento',
        'module': 'appointments',
        'action': 'manage_tasks',
    },

    # Services
    'view_services': {
        'description': 'Ver tipos de servicio y plantillas',
        'module': 'services',
        'action': 'view',
    },
    'manage_services': {
        'description': 'Gestionar tipos de servicio y plantillas de tareas',
        'module': 'services',
        'action': 'manage',
    },

    # Technicians
    'view_technicians': {
        'description': 'Ver técnicos',
        'module': 'technicians',
        'action': 'view',
    },
    'manage_technicians': {
        'description': 'Gestionar técnicos',
        'module': 'technicians',
        'action': 'manage',
    },

    # Financial
    'view_financial': {
        'description': 'Ver facturas, cuentas y flujo de caja',
        'module': 'financial',
        'action': 'view',
    },
    'create_invoices': {
        'description': 'Emitir facturas',
        'module': 'financial',
        'action': 'create',
    },
    'manage_payables': {
        'description': 'Registrar cuentas por pagar',
        'module': 'financial',
        'action': 'manage_payables',
    },
    'manage_receivables': {
        'description': 'Registrar cuentas por cobrar',
        'module': 'financial',
        'action': 'manage_receivables',
    },
    'update_payments': {
        'description': 'Actualizar el estado de pagos',
        'module': 'financial',
        'action': 'update_payments',
    },

    # Users
    'view_users': {
        'description': 'Ver usuarios',
        'module': 'users',
        'action': 'view',
    },
    'create_users': {
        'description': 'Crear usuarios',
        'module': 'users',
        'action': 'create',
    },
    'edit_users': {
        'description': 'Editar y activar/desactivar usuarios',
        'module': 'users',
        'action': 'edit',
    },
    'manage_roles': {
        'description': 'Asignar roles y permisos',
        'module': 'users',
        'action': 'manage_roles',
    },

    # Audit
    'view_audit_logs': {
        'description': 'Ver todos los registros de auditoría',
        'module': 'audit',
        'action': 'view',
    },
}

# Configuración de roles predefinidos
ROLE_PERMISSIONS = {
    Role.ADMIN: 'ALL',  # Todos los permisos

    Role.MANAGER: [
        'view_customers', 'create_customers', 'edit_customers',
        'view_appointments', 'create_appointments', 'edit_appointments', 'delete_appointments',
        'view_own_tasks', 'manage_tasks',
        'view_services', 'manage_services',
        'view_technicians', 'manage_technicians',
        'view_financial',
        'view_users',
    ],

    Role.TECHNICIAN: [
        'view_own_tasks', 'manage_tasks',
        'view_customers',
        'view_services',
    ],

    Role.FINANCE: [
        'view_financial', 'create_invoices', 'manage_payables',
        'manage_receivables', 'update_payments',
        'view_customers',
    ],

    Role.SALESPERSON: [
        'view_customers', 'create_customers', 'edit_customers',
        'view_appointments', 'create_appointments',
        'view_services',
    ],
}


def permissions_for_role(role):
    """Nombres de permisos por defecto de un rol."""
    configured = ROLE_PERMISSIONS.get(role, [])
    if configured == 'ALL':
        return list(PERMISSION_CATALOG)
    return list(configured)
