"""
Health check endpoints.

- /healthz: liveness, no dependency checks
- /readyz: readiness, checks the primary database
- /api/health (apps.core.views): database + object storage + legacy booking DB
"""
import logging
import time

from django.conf import settings
from django.db import connection
from django.http import JsonResponse
from django.views import View

logger = logging.getLogger(__name__)


def check_database():
    """Check the primary database with a trivial query."""
    started = time.monotonic()
    try:
        with connection.cursor() as cursor:
            cursor.execute('SELECT 1')
    except Exception as e:
        logger.error(
            'Database health check failed',
            extra={'event': 'health_check_failed', 'check': 'database', 'error': str(e)},
        )
        return {'status': 'unhealthy', 'error': str(e)}
    return {
        'status': 'healthy',
        'latency_ms': round((time.monotonic() - started) * 1000, 2),
    }


def run_health_checks():
    """
    Run every dependency check.

    Returns:
        (overall_status, services) where overall_status is 'healthy' or 'degraded'
    """
    from apps.integrations.legacy import check_legacy_health
    from apps.photos.storage import check_storage_health

    services = {
        'database': check_database(),
        'object_storage': check_storage_health(),
        'legacy_bookings': check_legacy_health(),
    }
    healthy = all(service['status'] in ('healthy', 'not_configured') for service in services.values())
    return ('healthy' if healthy else 'degraded'), services


class HealthzView(View):
    """Returns 200 while the process is up."""

    def get(self, request):
        health_data = {
            'status': 'ok',
            'version': getattr(settings, 'VERSION', 'unknown'),
        }
        commit_hash = getattr(settings, 'COMMIT_HASH', None)
        if commit_hash:
            health_data['commit'] = commit_hash
        return JsonResponse(health_data, status=200)


class ReadyzView(View):
    """Returns 200 when the database answers, 503 otherwise."""

    def get(self, request):
        checks = {'database': check_database()['status'] == 'healthy'}
        all_healthy = all(checks.values())
        return JsonResponse(
            {
                'status': 'ready' if all_healthy else 'not_ready',
                'checks': checks,
            },
            status=200 if all_healthy else 503,
        )
