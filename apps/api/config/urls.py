"""
URL configuration for the Orthodontic Practice Management API.
"""
from django.contrib import admin
from django.urls import include, path, re_path
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)
from apps.core.observability.health import HealthzView, ReadyzView
from apps.core.views import api_not_found

urlpatterns = [
    # Health checks (no auth required)
    path('healthz', HealthzView.as_view(), name='healthz'),
    path('readyz', ReadyzView.as_view(), name='readyz'),

    # Admin
    path('admin/', admin.site.urls),

    # API Schema
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/schema/swagger-ui/', SpectacularSwaggerView.as_view(url_name='schema'), name='swagger-ui'),
    path('api/schema/redoc/', SpectacularRedocView.as_view(url_name='schema'), name='redoc'),

    # API
    path('api/', include('apps.core.urls')),  # index, health, status, docs
    path('api/auth/', include('apps.authz.urls')),
    path('api/patients/', include('apps.clinical.urls_patients')),
    path('api/appointments/', include('apps.clinical.urls_appointments')),
    path('api/treatments/', include('apps.treatments.urls')),
    path('api/photos/', include('apps.photos.urls')),
    path('api/payments/', include('apps.payments.urls')),
    path('api/sync/', include('apps.integrations.urls')),

    # Catch-all for undefined API endpoints
    re_path(r'^api/.*$', api_not_found, name='api-not-found'),
]
