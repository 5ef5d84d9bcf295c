"""
Core views - API index, health, status, docs, unknown-route handler.
"""
import platform
import time

from django.conf import settings
from django.http import HttpResponsePermanentRedirect, JsonResponse
from django.urls import Resolver404, resolve
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.views import APIView

from apps.authz.permissions import IsAdmin
from apps.core.observability.health import run_health_checks
from apps.core.responses import api_response

PROCESS_STARTED_AT = time.time()

API_ENDPOINTS = {
    'auth': '/api/auth',
    'patients': '/api/patients',
    'appointments': '/api/appointments',
    'photos': '/api/photos',
    'treatments': '/api/treatments',
    'payments': '/api/payments',
    'sync': '/api/sync',
    'health': '/api/health',
}


def _uptime_seconds():
    return round(time.time() - PROCESS_STARTED_AT, 2)


def _environment():
    return 'development' if settings.DEBUG else 'production'


class ApiIndexView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return api_response(
            message='Orthodontic Practice Management API',
            data={
                'version': settings.VERSION,
                'documentation': '/api/schema/swagger-ui/',
                'endpoints': API_ENDPOINTS,
            },
        )


class HealthView(APIView):
    """
    GET /api/health

    200 when every dependency is healthy, 503 with status=degraded otherwise.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        overall, services = run_health_checks()
        data = {
            'status': overall,
            'timestamp': timezone.now().isoformat(),
            'uptime': _uptime_seconds(),
            'version': settings.VERSION,
            'environment': _environment(),
            'services': services,
        }
        return api_response(
            data=data,
            status=status.HTTP_200_OK if overall == 'healthy' else status.HTTP_503_SERVICE_UNAVAILABLE,
        )


class DetailedHealthView(APIView):
    """GET /api/health/detailed - admin only, adds runtime and configuration flags."""
    permission_classes = [IsAdmin]

    def get(self, request):
        overall, services = run_health_checks()
        return api_response(data={
            'status': overall,
            'timestamp': timezone.now().isoformat(),
            'uptime': _uptime_seconds(),
            'version': settings.VERSION,
            'environment': _environment(),
            'python_version': platform.python_version(),
            'platform': platform.platform(),
            'services': services,
            'configuration': {
                'cors_enabled': bool(settings.CORS_ALLOWED_ORIGINS),
                'logging_level': settings.LOGGING['root']['level'],
                'jwt_configured': settings.SIMPLE_JWT['SIGNING_KEY'] != settings.SECRET_KEY,
                'legacy_sync_configured': bool(settings.LEGACY_MYSQL['DATABASE']),
                'object_storage_bucket': settings.MINIO_PHOTOS_BUCKET,
            },
        })


class StatusView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return api_response(data={
            'api': 'Orthodontic Practice Management API',
            'version': settings.VERSION,
            'status': 'operational',
            'timestamp': timezone.now().isoformat(),
            'uptime': _uptime_seconds(),
            'endpoints': {
                'auth': {'path': '/api/auth', 'description': 'Authentication and user management'},
                'patients': {'path': '/api/patients', 'description': 'Patient management and records'},
                'appointments': {'path': '/api/appointments', 'description': 'Appointment scheduling'},
                'photos': {'path': '/api/photos', 'description': 'Photo upload and management'},
                'treatments': {'path': '/api/treatments', 'description': 'Treatment plans and clinical notes'},
                'payments': {'path': '/api/payments', 'description': 'Payments and payment plans'},
                'sync': {'path': '/api/sync', 'description': 'Legacy booking system synchronisation'},
            },
        })


class DocsView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []

    def get(self, request):
        return api_response(
            message='API Documentation',
            data={
                'version': settings.VERSION,
                'documentation': {
                    'interactive': '/api/schema/swagger-ui/',
                    'redoc': '/api/schema/redoc/',
                    'openapi': '/api/schema/',
                },
                'examples': {
                    'authentication': {
                        'login': 'POST /api/auth/login/',
                        'register': 'POST /api/auth/register/',
                        'refresh': 'POST /api/auth/refresh-token/',
                    },
                    'patients': {
                        'create': 'POST /api/patients/',
                        'search': 'GET /api/patients/search/?query=john',
                        'details': 'GET /api/patients/{id}/',
                    },
                    'photos': {
                        'upload': 'POST /api/photos/upload/',
                        'categories': 'GET /api/photos/patient/{patient_id}/categories-summary/',
                    },
                    'treatments': {
                        'create_plan': 'POST /api/treatments/plans/',
                        'add_phase': 'POST /api/treatments/phases/',
                        'add_note': 'POST /api/treatments/notes/',
                    },
                },
            },
        )


def api_not_found(request, *args, **kwargs):
    """
    Catch-all for /api/... paths that match no route.

    A GET for a known route without its trailing slash is redirected there.
    """
    if request.method in ('GET', 'HEAD') and not request.path.endswith('/'):
        slashed = f'{request.path}/'
        try:
            match = resolve(f'{request.path_info}/')
        except Resolver404:
            match = None
        if match is not None and match.url_name != 'api-not-found':
            query = request.META.get('QUERY_STRING')
            return HttpResponsePermanentRedirect(f'{slashed}?{query}' if query else slashed)
    return JsonResponse(
        {
            'success': False,
            'message': f'API endpoint not found: {request.path}',
            'code': 'NOT_FOUND',
            'timestamp': timezone.now().isoformat().replace('+00:00', 'Z'),
            'path': request.path,
            'method': request.method,
            'available_endpoints': list(API_ENDPOINTS.values()) + ['/api/status', '/api/docs'],
        },
        status=404,
    )
