"""
Celery tasks for the legacy booking sync.
"""
import logging

from celery import shared_task

from apps.core.exceptions import AppError

from .sync import LegacySyncService

logger = logging.getLogger(__name__)


@shared_task(name='apps.integrations.tasks.sync_legacy_bookings')
def sync_legacy_bookings():
    """Scheduled by CELERY_BEAT_SCHEDULE. Returns the SyncResult as a dict."""
    try:
        result = LegacySyncService().sync_all()
    except AppError as e:
        logger.error(
            'Scheduled legacy booking sync failed',
            extra={'event': 'legacy_sync_failed', 'error': e.message},
        )
        raise
    return result.as_dict()
