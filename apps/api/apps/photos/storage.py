"""
MinIO storage for clinical photos.

Object layout:
    {PHOTO_STORAGE_FOLDER}/patients/{patient_id}/{category}/{filename}
    {PHOTO_STORAGE_FOLDER}/patients/{patient_id}/{category}/renditions/{name}_{filename}

Photos are private; clients get presigned GET URLs.
"""
import io
import logging
import time
from datetime import timedelta

from django.conf import settings
from minio import Minio
from minio.error import MinioException
from urllib3.exceptions import HTTPError as TransportError

logger = logging.getLogger(__name__)

# Anything the client can raise when MinIO is unreachable or rejects a call
STORAGE_ERRORS = (MinioException, TransportError, OSError)


def get_minio_client():
    """Get configured MinIO client instance."""
    return Minio(
        settings.MINIO_ENDPOINT,
        access_key=settings.MINIO_ACCESS_KEY,
        secret_key=settings.MINIO_SECRET_KEY,
        secure=settings.MINIO_USE_SSL,
        # Avoids a bucket-location round trip when presigning
        region=settings.MINIO_REGION,
    )


def photo_folder(patient_id, category):
    return f"{settings.PHOTO_STORAGE_FOLDER}/patients/{patient_id}/{category.lower()}"


def rendition_key(object_key, rendition):
    folder, _, filename = object_key.rpartition('/')
    return f"{folder}/renditions/{rendition}_{filename}"


def ensure_bucket(client, bucket_name=None):
    bucket_name = bucket_name or settings.MINIO_PHOTOS_BUCKET
    if not client.bucket_exists(bucket_name):
        client.make_bucket(bucket_name)
        logger.info('Created bucket', extra={'event': 'storage_bucket_created', 'bucket': bucket_name})


def put_object(object_key, data, content_type, metadata=None):
    """
    Upload bytes to the photos bucket.

    Raises:
        MinioException / urllib3 errors when storage fails
    """
    client = get_minio_client()
    ensure_bucket(client)
    client.put_object(
        settings.MINIO_PHOTOS_BUCKET,
        object_key,
        io.BytesIO(data),
        length=len(data),
        content_type=content_type,
        metadata=metadata,
    )
    return object_key


def get_object_bytes(object_key):
    client = get_minio_client()
    response = client.get_object(settings.MINIO_PHOTOS_BUCKET, object_key)
    try:
        return response.read()
    finally:
        response.close()
        response.release_conn()


def remove_objects(object_keys):
    """Delete every key; raises on the first storage failure."""
    client = get_minio_client()
    for key in object_keys:
        client.remove_object(settings.MINIO_PHOTOS_BUCKET, key)


def presigned_url(object_key, expires=None):
    client = get_minio_client()
    return client.presigned_get_object(
        settings.MINIO_PHOTOS_BUCKET,
        object_key,
        expires=expires or timedelta(hours=settings.PHOTO_URL_EXPIRY_HOURS),
    )


def build_photo_urls(photo):
    """
    Presigned {thumbnail, medium, high, original} URLs for a photo.

    Missing renditions fall back to the original URL. When storage is
    unreachable every URL is None.
    """
    try:
        original = presigned_url(photo.object_key)
        urls = {
            name: presigned_url(key) if key else original
            for name, key in photo.rendition_keys.items()
        }
    except STORAGE_ERRORS as e:
        logger.warning(
            'Could not presign photo URLs',
            extra={'event': 'photo_url_failed', 'photo_id': str(photo.id), 'error': str(e)},
        )
        return {'thumbnail': None, 'medium': None, 'high': None, 'original': None}
    urls['original'] = original
    return urls


def check_storage_health():
    started = time.monotonic()
    try:
        get_minio_client().bucket_exists(settings.MINIO_PHOTOS_BUCKET)
    except STORAGE_ERRORS as e:
        logger.error(
            'Object storage health check failed',
            extra={'event': 'health_check_failed', 'check': 'object_storage', 'error': str(e)},
        )
        return {'status': 'unhealthy', 'error': str(e)}
    return {
        'status': 'healthy',
        'latency_ms': round((time.monotonic() - started) * 1000, 2),
    }
