from django.urls import path, include
from rest_framework.routers import SimpleRouter
from .views import CustomerViewSet, PoolViewSet

router = SimpleRouter()
router.register(r'pools', PoolViewSet, basename='pool')
router.register(r'', CustomerViewSet, basename='customer')

urlpatterns = [
    path('', include(router.urls)),
]
