"""
Photo upload, query and maintenance operations.

Uploads go to MinIO (apps.photos.storage); the row is written only after
the object is stored. Renditions are produced asynchronously
(apps.photos.tasks.generate_renditions).
"""
import io
import logging
import os
import random
import re
import time
from collections import OrderedDict

from django.conf import settings
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone
from PIL import Image, UnidentifiedImageError
from rest_framework import status

from apps.core.exceptions import AppError, BadRequestError, NotFoundError
from apps.core.observability import log_domain_event

from . import storage
from .models import Photo, PhotoCategoryChoices

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = {
    'image/jpeg',
    'image/jpg',
    'image/png',
    'image/gif',
    'image/webp',
    'image/bmp',
    'image/tiff',
}

# multipart field -> (category, max files)
UPLOAD_FIELDS = OrderedDict([
    ('intraoral', (PhotoCategoryChoices.INTRAORAL, 10)),
    ('extraoral', (PhotoCategoryChoices.EXTRAORAL, 10)),
    ('radiographs', (PhotoCategoryChoices.RADIOGRAPH, 5)),
    ('models', (PhotoCategoryChoices.MODELS, 5)),
    ('clinical', (PhotoCategoryChoices.CLINICAL, 10)),
    ('progress', (PhotoCategoryChoices.PROGRESS, 10)),
])

PHOTO_SORT_FIELDS = {
    'uploadedAt': 'uploaded_at',
    'category': 'category',
    'filename': 'filename',
}

MAX_SEARCH_LIMIT = 50

UPDATABLE_FIELDS = {
    'category',
    'subcategory',
    'description',
    'tags',
    'is_before_after',
    'before_after_pair_id',
    'treatment_phase',
    'appointment',
}


class StorageUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'STORAGE_UNAVAILABLE'
    default_message = 'Photo storage is unavailable'


def _random_suffix():
    return random.randint(0, 1000)


def build_filename(category, original_name, timestamp_ms=None):
    """
    {category_lower}_{safeName}_{timestamp}_{random}{ext}

    safeName keeps [A-Za-z0-9] (anything else becomes '_'), cut to 50 chars.
    """
    base, extension = os.path.splitext(original_name or '')
    safe_name = re.sub(r'[^a-zA-Z0-9]', '_', base)[:50]
    timestamp_ms = timestamp_ms or int(time.time() * 1000)
    return f'{category.lower()}_{safe_name}_{timestamp_ms}_{_random_suffix()}{extension.lower()}'


def build_pair_id():
    return f'pair_{int(time.time() * 1000)}_{_random_suffix()}'


def validate_upload(uploaded_file):
    if uploaded_file.content_type not in ALLOWED_MIME_TYPES:
        raise BadRequestError('Only image files are allowed')
    if uploaded_file.size > settings.MAX_PHOTO_SIZE:
        max_mb = settings.MAX_PHOTO_SIZE / (1024 * 1024)
        raise BadRequestError(f'File size exceeds maximum of {max_mb:g}MB')


def read_dimensions(data):
    try:
        with Image.open(io.BytesIO(data)) as image:
            return image.size
    except UnidentifiedImageError:
        raise BadRequestError('Uploaded file is not a valid image')


def discard_stored_object(object_key):
    """Remove an object whose Photo row was never written."""
    try:
        storage.remove_objects([object_key])
    except storage.STORAGE_ERRORS as e:
        logger.warning(
            'Failed to remove orphaned photo object',
            extra={'event': 'photo_orphan_cleanup_failed', 'object_key': object_key, 'error': str(e)},
        )


def upload_photo(uploaded_file, metadata, uploaded_by=None):
    """
    Store one file and create its Photo row.

    Args:
        uploaded_file: Django UploadedFile
        metadata: validated upload fields (patient, category, subcategory,
            description, tags, treatment_phase, appointment, is_before_after,
            before_after_pair_id)
    """
    validate_upload(uploaded_file)
    data = uploaded_file.read()
    width, height = read_dimensions(data)

    patient = metadata['patient']
    category = metadata['category']
    filename = build_filename(category, uploaded_file.name)
    object_key = f'{storage.photo_folder(patient.id, category)}/{filename}'

    try:
        storage.put_object(
            object_key,
            data,
            uploaded_file.content_type,
            metadata={'tags': f'orthodontic,patient_{patient.id},{category.lower()}'},
        )
    except storage.STORAGE_ERRORS as e:
        logger.error(
            'Photo upload to storage failed',
            extra={'event': 'photo_upload_failed', 'patient_id': str(patient.id), 'error': str(e)},
        )
        raise StorageUnavailableError()

    try:
        photo = Photo.objects.create(
            filename=filename,
            original_name=uploaded_file.name,
            mime_type=uploaded_file.content_type,
            file_size=uploaded_file.size,
            width=width,
            height=height,
            object_key=object_key,
            uploaded_by=uploaded_by,
            **metadata
        )
    except Exception:
        discard_stored_object(object_key)
        raise
    log_domain_event(
        'photo_uploaded',
        entity_type='Photo',
        entity_id=photo.id,
        patient_id=str(patient.id),
        category=category,
        file_size=photo.file_size,
    )
    return photo


def upload_many(files, metadata, uploaded_by=None):
    """
    Upload files one by one; a failing file does not stop the others.

    Returns:
        (photos, errors) with errors as '<original name>: <message>'
    """
    if not files:
        raise BadRequestError('No photo files provided')
    if len(files) > settings.MAX_UPLOAD_FILES:
        raise BadRequestError(f'Too many files. Maximum is {settings.MAX_UPLOAD_FILES}')

    photos, errors = [], []
    for uploaded_file in files:
        try:
            photos.append(upload_photo(uploaded_file, metadata, uploaded_by=uploaded_by))
        except AppError as e:
            errors.append(f'{uploaded_file.name}: {e.message}')

    log_domain_event(
        'photos_uploaded',
        entity_type='Photo',
        result='success' if not errors else 'partial',
        patient_id=str(metadata['patient'].id),
        uploaded=len(photos),
        failed=len(errors),
    )
    return photos, errors


def upload_fields(files_by_field, metadata, uploaded_by=None):
    """
    Upload files sent under category fields (intraoral, extraoral, ...).

    Returns:
        (photos, errors)
    """
    selected = {field: files_by_field.get(field, []) for field in UPLOAD_FIELDS}
    if not any(selected.values()):
        raise BadRequestError('No photo files provided')
    for field, files in selected.items():
        max_files = UPLOAD_FIELDS[field][1]
        if len(files) > max_files:
            raise BadRequestError(f'Too many files for {field}. Maximum is {max_files}')

    photos, errors = [], []
    for field, files in selected.items():
        field_metadata = dict(metadata, category=UPLOAD_FIELDS[field][0])
        for uploaded_file in files:
            try:
                photos.append(upload_photo(uploaded_file, field_metadata, uploaded_by=uploaded_by))
            except AppError as e:
                errors.append(f'{field}/{uploaded_file.name}: {e.message}')
    return photos, errors


# ============================================================================
# Queries
# ============================================================================

def _photo_queryset():
    return Photo.objects.select_related('patient', 'uploaded_by', 'treatment_phase', 'appointment')


def get_photo(photo_id):
    try:
        photo = _photo_queryset().filter(id=photo_id).first()
    except DjangoValidationError:
        photo = None
    if photo is None:
        raise NotFoundError('Photo not found')
    return photo


def filter_photos(params):
    """
    Filters: patient_id, category, subcategory, treatment_phase_id,
    is_before_after, tags (any of).
    """
    queryset = _photo_queryset()
    if params.get('patient_id'):
        queryset = queryset.filter(patient_id=params['patient_id'])
    if params.get('category'):
        queryset = queryset.filter(category=params['category'])
    if params.get('subcategory'):
        queryset = queryset.filter(subcategory__icontains=params['subcategory'])
    if params.get('treatment_phase_id'):
        queryset = queryset.filter(treatment_phase_id=params['treatment_phase_id'])
    if params.get('is_before_after') is not None:
        queryset = queryset.filter(is_before_after=params['is_before_after'])
    if params.get('tags'):
        any_tag = Q()
        for tag in params['tags']:
            any_tag |= Q(tags__icontains=f'"{tag}"')
        queryset = queryset.filter(any_tag)
    return queryset


def search_photos(params, sort_by='uploadedAt', sort_order='desc'):
    field = PHOTO_SORT_FIELDS.get(sort_by, 'uploaded_at')
    ordering = field if sort_order == 'asc' else f'-{field}'
    queryset = filter_photos(params).order_by(ordering, 'id')
    return queryset


def get_recent_photos(limit=10, patient_id=None):
    queryset = _photo_queryset()
    if patient_id:
        queryset = queryset.filter(patient_id=patient_id)
    return list(queryset.order_by('-uploaded_at')[:limit])


def get_photo_stats(now=None):
    now = now or timezone.now()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    by_category = dict(
        Photo.objects.values_list('category').annotate(total=Count('id')).order_by('category')
    )
    return {
        'totalPhotos': Photo.objects.count(),
        'byCategory': by_category,
        'thisMonth': Photo.objects.filter(uploaded_at__gte=month_start).count(),
        'totalFileSize': Photo.objects.aggregate(total=Sum('file_size'))['total'] or 0,
    }


def get_patient_photos(patient_id, category=None, limit=None):
    from apps.clinical.services import get_patient

    patient = get_patient(patient_id)
    queryset = _photo_queryset().filter(patient=patient)
    if category:
        queryset = queryset.filter(category=category)
    queryset = queryset.order_by('-uploaded_at')
    return list(queryset[:limit] if limit else queryset)


def get_before_after_pairs(patient_id):
    """
    Pairs grouped by pair id: photos oldest first, pairs by their oldest
    photo, newest pair first.
    """
    photos = (
        _photo_queryset()
        .filter(patient_id=patient_id, is_before_after=True)
        .exclude(before_after_pair_id__isnull=True)
        .exclude(before_after_pair_id='')
        .order_by('uploaded_at')
    )
    pairs = OrderedDict()
    for photo in photos:
        pairs.setdefault(photo.before_after_pair_id, []).append(photo)

    result = [
        {'pair_id': pair_id, 'photos': members, 'created_at': members[0].uploaded_at}
        for pair_id, members in pairs.items()
    ]
    result.sort(key=lambda pair: pair['created_at'], reverse=True)
    return result


def get_categories_summary(patient_id):
    """{category: {count, latest_photo, subcategories}} over the patient's photos."""
    summary = {}
    photos = _photo_queryset().filter(patient_id=patient_id).order_by('-uploaded_at')
    for photo in photos:
        entry = summary.setdefault(photo.category, {
            'count': 0,
            'latest_photo': photo,
            'subcategories': [],
        })
        entry['count'] += 1
        if photo.subcategory and photo.subcategory not in entry['subcategories']:
            entry['subcategories'].append(photo.subcategory)
    return summary


def get_phase_photos(phase_id):
    queryset = _photo_queryset().filter(treatment_phase_id=phase_id).order_by('uploaded_at', 'id')
    return queryset


# ============================================================================
# Updates and deletes
# ============================================================================

def update_photo(photo_id, data, actor=None):
    """Metadata only; the stored image never changes."""
    photo = get_photo(photo_id)
    changes = {field: value for field, value in data.items() if field in UPDATABLE_FIELDS}
    for field, value in changes.items():
        setattr(photo, field, value)
    photo.save()
    log_domain_event('photo_updated', entity_type='Photo', entity_id=photo.id, updated_fields=list(changes))
    return photo


def _remove_stored_objects(photos):
    for photo in photos:
        try:
            storage.remove_objects(photo.object_keys)
        except storage.STORAGE_ERRORS as e:
            logger.warning(
                'Failed to delete photo objects from storage',
                extra={'event': 'photo_storage_delete_failed', 'photo_id': str(photo.id), 'error': str(e)},
            )


def delete_photo(photo_id, actor=None):
    """Storage failures are logged; the row is deleted regardless."""
    photo = get_photo(photo_id)
    _remove_stored_objects([photo])
    photo.delete()
    log_domain_event(
        'photo_deleted',
        entity_type='Photo',
        entity_id=photo_id,
        deleted_by=str(actor.id) if actor else None,
    )


def bulk_delete_photos(photo_ids, actor=None):
    if not isinstance(photo_ids, list) or not photo_ids:
        raise BadRequestError('Photo IDs array is required')
    try:
        photos = list(Photo.objects.filter(id__in=photo_ids))
    except DjangoValidationError:
        raise BadRequestError('Photo IDs must be valid UUIDs')
    if not photos:
        raise NotFoundError('No photos found')

    _remove_stored_objects(photos)
    Photo.objects.filter(id__in=[photo.id for photo in photos]).delete()
    log_domain_event(
        'photos_bulk_deleted',
        entity_type='Photo',
        requested=len(photo_ids),
        deleted=len(photos),
        deleted_by=str(actor.id) if actor else None,
    )
    return len(photos)


@transaction.atomic
def create_before_after_pair(before_photo_id, after_photo_id, actor=None):
    try:
        photos = {str(p.id): p for p in Photo.objects.filter(id__in=[before_photo_id, after_photo_id])}
    except DjangoValidationError:
        photos = {}
    before = photos.get(str(before_photo_id))
    after = photos.get(str(after_photo_id))
    if before is None or after is None:
        raise NotFoundError('One or both photos not found')

    pair_id = build_pair_id()
    Photo.objects.filter(id__in=[before.id, after.id]).update(
        is_before_after=True,
        before_after_pair_id=pair_id,
        updated_at=timezone.now(),
    )
    log_domain_event(
        'before_after_pair_created',
        entity_type='Photo',
        pair_id=pair_id,
        before_photo_id=str(before.id),
        after_photo_id=str(after.id),
    )
    return pair_id, get_photo(before.id), get_photo(after.id)


def batch_update_photos(updates, actor=None):
    """
    Apply a list of {id, updateData} items independently.

    Each updateData must already be validated (see PhotoUpdateSerializer).

    Returns:
        {'successful', 'failed', 'errors': ['<id>: <message>']}
    """
    results = {'successful': 0, 'failed': 0, 'errors': []}
    for item in updates:
        try:
            update_photo(item['id'], item['update_data'], actor=actor)
            results['successful'] += 1
        except AppError as e:
            results['failed'] += 1
            results['errors'].append(f"{item['id']}: {e.message}")

    log_domain_event(
        'photos_batch_updated',
        entity_type='Photo',
        result='success' if results['failed'] == 0 else 'partial',
        successful=results['successful'],
        failed=results['failed'],
    )
    return results


def get_download_url(photo_id):
    photo = get_photo(photo_id)
    url = storage.build_photo_urls(photo)['original']
    if url is None:
        raise StorageUnavailableError()
    return url
