"""
Core models: app_setting
"""
import uuid
from django.db import models


class AppSetting(models.Model):
    """
    Key/value application settings.

    Used for runtime state that must survive restarts, e.g. the legacy
    booking sync bookkeeping (last_booking_sync, total_synced_bookings).
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    key = models.CharField(max_length=100, unique=True)
    value = models.TextField(blank=True, default='')
    description = models.CharField(max_length=255, blank=True, default='')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'app_setting'
        verbose_name = 'App Setting'
        verbose_name_plural = 'App Settings'

    def __str__(self):
        return f"{self.key}={self.value}"

    @classmethod
    def get_value(cls, key, default=None):
        setting = cls.objects.filter(key=key).first()
        return setting.value if setting else default

    @classmethod
    def set_value(cls, key, value, description=''):
        setting, _ = cls.objects.update_or_create(
            key=key,
            defaults={'value': str(value), 'description': description},
        )
        return setting
