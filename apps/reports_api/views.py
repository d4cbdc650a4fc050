from django.contrib.auth import get_user_model
from django.db.models import Count, Q
from django.utils import timezone
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.appointments_api.models import Appointment
from apps.appointments_api.views import visible_appointments
from apps.auth_api.session import ActorSession
from apps.customers_api.models import Customer
from apps.financial_api.services import financial_summary
from apps.roles_api.guards import permission_guard, role_guard
from apps.roles_api.models import Role

User = get_user_model()


def appointment_stats(request):
    today = timezone.localdate()
    return visible_appointments(request).aggregate(
        today=Count('id', filter=Q(start_time__date=today)),
        upcoming=Count('id', filter=Q(
            start_time__date__gt=today,
            status__in=[Appointment.Status.SCHEDULED, Appointment.Status.CONFIRMED],
        )),
        in_progress=Count('id', filter=Q(status=Appointment.Status.IN_PROGRESS)),
        completed_this_month=Count('id', filter=Q(
            status=Appointment.Status.COMPLETED,
            start_time__year=today.year,
            start_time__month=today.month,
        )),
    )


class DashboardView(APIView):
    """
    Indicadores del dashboard.

    Los bloques de usuarios y financiero solo aparecen para quien tiene el
    rol o el permiso correspondiente; para el resto se omiten.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        session = ActorSession.for_request(request)
        data = {
            'active_customers': Customer.objects.filter(is_active=True).count(),
            'appointments': appointment_stats(request),
            'active_users': role_guard(
                session, [Role.ADMIN],
                lambda: User.objects.filter(is_active=True).count(),
                hide_if_no_access=True,
            ),
            'financial': permission_guard(
                session, 'view_financial',
                financial_summary,
                hide_if_no_access=True,
            ),
        }
        return Response({key: value for key, value in data.items() if value is not None})
