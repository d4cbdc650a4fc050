from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import PermissionViewSet, RoleViewSet

router = SimpleRouter()
router.register(r'permissions', PermissionViewSet, basename='permission')
router.register(r'', RoleViewSet, basename='role')

urlpatterns = [
    path('', include(router.urls)),
]
