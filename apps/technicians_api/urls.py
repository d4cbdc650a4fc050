from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import TechnicianViewSet

router = SimpleRouter()
router.register(r'', TechnicianViewSet, basename='technician')

urlpatterns = [
    path('', include(router.urls)),
]
