from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.http import JsonResponse
from django.views.decorators.cache import cache_page
from django.views.decorators.http import require_http_methods

from django.urls import path, include
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView


@require_http_methods(["GET"])
@cache_page(60)
def health_check(request):
    return JsonResponse({"status": "ok"})


urlpatterns = [
    path('admin/', admin.site.urls),
    path('api/', include([
        path('auth/', include('apps.auth_api.urls')),
        path('roles/', include('apps.roles_api.urls')),
        path('audit/', include('apps.audit_api.urls')),
        path('users/', include('apps.users_api.urls')),
        path('customers/', include('apps.customers_api.urls')),
        path('technicians/', include('apps.technicians_api.urls')),
        path('services/', include('apps.services_api.urls')),
        path('appointments/', include('apps.appointments_api.urls')),
        path('financial/', include('apps.financial_api.urls')),
        path('reports/', include('apps.reports_api.urls')),
        path('schema/', SpectacularAPIView.as_view(), name='schema'),
        path('docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),

        path("healthz/", health_check, name="health_check"),
    ])),
]

if settings.DEBUG:
    urlpatterns += static(settings.STATIC_URL, document_root=settings.STATIC_ROOT)
