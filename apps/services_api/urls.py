from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import ServiceTemplateViewSet, ServiceTypeViewSet, TaskTemplateViewSet

router = DefaultRouter()
router.register(r'types', ServiceTypeViewSet, basename='service-type')
router.register(r'templates', ServiceTemplateViewSet, basename='service-template')
router.register(r'task-templates', TaskTemplateViewSet, basename='task-template')

urlpatterns = [
    path('', include(router.urls)),
]
