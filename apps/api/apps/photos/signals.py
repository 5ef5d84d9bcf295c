"""
Photo signals - queue rendition generation once an upload is committed.
"""
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import receiver

from .models import Photo
from .tasks import generate_renditions


@receiver(post_save, sender=Photo)
def on_photo_created(sender, instance, created, **kwargs):
    if created and instance.object_key:
        photo_id = str(instance.id)
        transaction.on_commit(lambda: generate_renditions.delay(photo_id))
