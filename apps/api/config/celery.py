"""
Celery application for background work (photo renditions, legacy booking sync).
"""
import os

from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('ortho')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()
