"""
Core API URLs - index, health checks, status, docs.
"""
from django.urls import path

from .views import ApiIndexView, DetailedHealthView, DocsView, HealthView, StatusView

urlpatterns = [
    path('', ApiIndexView.as_view(), name='api-index'),
    path('health', HealthView.as_view(), name='api-health'),
    path('health/detailed', DetailedHealthView.as_view(), name='api-health-detailed'),
    path('status', StatusView.as_view(), name='api-status'),
    path('docs', DocsView.as_view(), name='api-docs'),
]
