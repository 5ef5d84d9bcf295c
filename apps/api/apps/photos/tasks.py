"""
Celery tasks for photo processing.
"""
import io
import logging

from celery import shared_task
from PIL import Image, ImageOps, UnidentifiedImageError

from .storage import STORAGE_ERRORS, get_object_bytes, put_object, rendition_key

logger = logging.getLogger(__name__)

# name -> (size, crop); crop=True fills the box, otherwise the image fits inside it
RENDITIONS = {
    'thumbnail': ((200, 200), True),
    'medium': ((800, 600), False),
    'high': ((1920, 1440), False),
}


def render(image, size, crop):
    """Return a JPEG-ready copy of image resized for one rendition."""
    if image.mode in ('RGBA', 'LA', 'P'):
        image = image.convert('RGB')
    if crop:
        return ImageOps.fit(image, size, Image.Resampling.LANCZOS)
    resized = image.copy()
    # thumbnail() never upscales, matching a "limit" resize
    resized.thumbnail(size, Image.Resampling.LANCZOS)
    return resized


@shared_task(name='apps.photos.tasks.generate_renditions')
def generate_renditions(photo_id):
    """
    Generate thumbnail/medium/high renditions for a photo and store their keys.

    Args:
        photo_id: Photo model ID (str)
    """
    from .models import Photo

    photo = Photo.objects.filter(id=photo_id).first()
    if photo is None:
        logger.warning('Photo not found for renditions', extra={'event': 'photo_renditions_skipped', 'photo_id': photo_id})
        return {'photo_id': photo_id, 'status': 'missing'}

    try:
        source = Image.open(io.BytesIO(get_object_bytes(photo.object_key)))
        source = ImageOps.exif_transpose(source)
        keys = {}
        for name, (size, crop) in RENDITIONS.items():
            output = io.BytesIO()
            render(source, size, crop).save(output, format='JPEG', quality=85)
            key = rendition_key(photo.object_key, name)
            put_object(key, output.getvalue(), 'image/jpeg')
            keys[f'{name}_key'] = key
    except (UnidentifiedImageError, *STORAGE_ERRORS) as e:
        logger.error(
            'Photo rendition generation failed',
            extra={'event': 'photo_renditions_failed', 'photo_id': str(photo.id), 'error': str(e)},
        )
        return {'photo_id': str(photo.id), 'status': 'failed', 'error': str(e)}

    Photo.objects.filter(id=photo.id).update(**keys)
    logger.info('Photo renditions generated', extra={'event': 'photo_renditions_generated', 'photo_id': str(photo.id)})
    return {'photo_id': str(photo.id), 'status': 'generated', 'keys': keys}
