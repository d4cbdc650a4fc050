from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import AppointmentViewSet, calendar_events

router = SimpleRouter()
router.register(r'', AppointmentViewSet, basename='appointment')

urlpatterns = [
    path('calendar-events/', calendar_events, name='calendar-events'),
    path('', include(router.urls)),
]
