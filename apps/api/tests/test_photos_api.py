"""
Tests for /api/photos: uploads, queries, pairing and bulk operations.

MinIO is never contacted: uploads patch storage.put_object and presigned
URLs are stubbed.
"""
import io
from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from PIL import Image

from apps.photos import services, tasks
from apps.photos.models import Photo

PHOTOS_URL = '/api/photos/'
FAKE_URLS = {
    'thumbnail': 'http://minio/thumb',
    'medium': 'http://minio/medium',
    'high': 'http://minio/high',
    'original': 'http://minio/original',
}


def image_file(name='smile.png', size=(40, 30)):
    buffer = io.BytesIO()
    Image.new('RGB', size, 'white').save(buffer, format='PNG')
    return SimpleUploadedFile(name, buffer.getvalue(), content_type='image/png')


@pytest.fixture(autouse=True)
def stub_photo_urls():
    with patch('apps.photos.serializers.build_photo_urls', return_value=FAKE_URLS):
        yield


@pytest.fixture
def put_object():
    with patch('apps.photos.storage.put_object') as mocked:
        yield mocked


@pytest.mark.django_db
class TestUploads:

    def test_upload_single(self, assistant_client, patient, put_object):
        response = assistant_client.post(f'{PHOTOS_URL}upload/', {
            'photo': image_file(),
            'patient_id': str(patient.id),
            'category': 'INTRAORAL',
            'tags': 'braces,upper',
        }, format='multipart')

        assert response.status_code == 201
        photo = response.json()['data']['photo']
        assert photo['filename'].startswith('intraoral_smile_')
        assert photo['filename'].endswith('.png')
        assert (photo['width'], photo['height']) == (40, 30)
        assert photo['tags'] == ['braces', 'upper']
        assert photo['urls'] == FAKE_URLS

        object_key = put_object.call_args[0][0]
        assert object_key == Photo.objects.get().object_key
        assert object_key.startswith(f'orthodontic-app/patients/{patient.id}/intraoral/')

    def test_upload_requires_file(self, doctor_client, patient):
        response = doctor_client.post(f'{PHOTOS_URL}upload/', {
            'patient_id': str(patient.id),
            'category': 'INTRAORAL',
        }, format='multipart')

        assert response.status_code == 400
        assert response.json()['message'] == 'No photo file provided'

    def test_upload_rejects_non_image(self, doctor_client, patient, put_object):
        text = SimpleUploadedFile('notes.txt', b'hello', content_type='text/plain')

        response = doctor_client.post(f'{PHOTOS_URL}upload/', {
            'photo': text,
            'patient_id': str(patient.id),
            'category': 'CLINICAL',
        }, format='multipart')

        assert response.status_code == 400
        assert response.json()['message'] == 'Only image files are allowed'
        put_object.assert_not_called()

    def test_storage_failure_is_503(self, doctor_client, patient, put_object):
        put_object.side_effect = OSError('connection refused')

        response = doctor_client.post(f'{PHOTOS_URL}upload/', {
            'photo': image_file(),
            'patient_id': str(patient.id),
            'category': 'INTRAORAL',
        }, format='multipart')

        assert response.status_code == 503
        assert response.json()['code'] == 'STORAGE_UNAVAILABLE'
        assert Photo.objects.count() == 0

    def test_failed_row_write_removes_stored_object(self, patient, put_object):
        metadata = {'patient': patient, 'category': 'INTRAORAL'}

        with patch.object(Photo.objects, 'create', side_effect=DatabaseError('disk full')), \
                patch('apps.photos.storage.remove_objects') as remove_objects:
            with pytest.raises(DatabaseError):
                services.upload_photo(image_file(), metadata)

        remove_objects.assert_called_once_with([put_object.call_args[0][0]])

    def test_failed_cleanup_keeps_original_error(self, patient, put_object):
        metadata = {'patient': patient, 'category': 'INTRAORAL'}

        with patch.object(Photo.objects, 'create', side_effect=DatabaseError('disk full')), \
                patch('apps.photos.storage.remove_objects', side_effect=OSError('down')):
            with pytest.raises(DatabaseError, match='disk full'):
                services.upload_photo(image_file(), metadata)

    def test_upload_multiple_partial_failure(self, doctor_client, patient, put_object):
        response = doctor_client.post(f'{PHOTOS_URL}upload-multiple/', {
            'photos': [
                image_file('front.png'),
                SimpleUploadedFile('scan.pdf', b'%PDF', content_type='application/pdf'),
            ],
            'patient_id': str(patient.id),
            'category': 'EXTRAORAL',
        }, format='multipart')

        assert response.status_code == 201
        body = response.json()
        assert body['success'] is False
        assert body['data']['uploaded'] == 1
        assert body['data']['failed'] == 1
        assert body['data']['errors'] == ['scan.pdf: Only image files are allowed']

    def test_upload_multiple_all_failed(self, doctor_client, patient, put_object):
        response = doctor_client.post(f'{PHOTOS_URL}upload-multiple/', {
            'photos': [SimpleUploadedFile('scan.pdf', b'%PDF', content_type='application/pdf')],
            'patient_id': str(patient.id),
            'category': 'EXTRAORAL',
        }, format='multipart')

        assert response.status_code == 400
        assert response.json()['message'] == 'No photos were uploaded'

    def test_upload_fields_assigns_categories(self, doctor_client, patient, put_object):
        response = doctor_client.post(f'{PHOTOS_URL}upload-fields/', {
            'intraoral': [image_file('a.png'), image_file('b.png')],
            'radiographs': [image_file('xray.png')],
            'patient_id': str(patient.id),
        }, format='multipart')

        assert response.status_code == 201
        categories = sorted(Photo.objects.values_list('category', flat=True))
        assert categories == ['INTRAORAL', 'INTRAORAL', 'RADIOGRAPH']

    def test_build_filename_sanitizes(self):
        with patch('apps.photos.services._random_suffix', return_value=7):
            filename = services.build_filename('PROGRESS', 'Front view (1).JPG', timestamp_ms=1700000000000)

        assert filename == 'progress_Front_view__1__1700000000000_7.jpg'


@pytest.mark.django_db
class TestQueries:

    def test_search_by_category_and_tags(self, doctor_client, patient, make_photo):
        braces = make_photo(patient, tags=['braces'])
        make_photo(patient, tags=['retainer'])
        make_photo(patient, category='EXTRAORAL', tags=['braces'])

        response = doctor_client.get(f'{PHOTOS_URL}search/?category=INTRAORAL&tags=braces,aligners')

        ids = [row['id'] for row in response.json()['data']['photos']]
        assert ids == [str(braces.id)]

    def test_list_by_patient(self, assistant_client, patient, other_patient, make_photo):
        make_photo(patient)
        make_photo(other_patient)

        response = assistant_client.get(f'{PHOTOS_URL}?patient_id={patient.id}')

        assert response.json()['data']['pagination']['total'] == 1

    def test_stats(self, doctor_client, patient, make_photo):
        make_photo(patient, file_size=100)
        make_photo(patient, file_size=200)
        make_photo(patient, category='RADIOGRAPH', file_size=300)

        response = doctor_client.get(f'{PHOTOS_URL}stats/')

        stats = response.json()['data']['stats']
        assert stats['totalPhotos'] == 3
        assert stats['byCategory'] == {'INTRAORAL': 2, 'RADIOGRAPH': 1}
        assert stats['thisMonth'] == 3
        assert stats['totalFileSize'] == 600

    def test_patient_category_rejects_unknown(self, doctor_client, patient):
        response = doctor_client.get(f'{PHOTOS_URL}patient/{patient.id}/category/selfie/')

        assert response.status_code == 400

    def test_categories_summary(self, doctor_client, patient, make_photo):
        make_photo(patient, subcategory='frontal')
        make_photo(patient, subcategory='lateral')
        make_photo(patient, category='MODELS')

        response = doctor_client.get(f'{PHOTOS_URL}patient/{patient.id}/categories-summary/')

        data = response.json()['data']
        assert data['total_photos'] == 3
        assert data['category_summary']['INTRAORAL']['count'] == 2
        assert sorted(data['category_summary']['INTRAORAL']['subcategories']) == ['frontal', 'lateral']

    def test_phase_photos(self, doctor_client, patient, treatment_phase, make_photo):
        in_phase = make_photo(patient, treatment_phase=treatment_phase)
        make_photo(patient)

        response = doctor_client.get(f'{PHOTOS_URL}treatment-phase/{treatment_phase.id}/')

        assert [row['id'] for row in response.json()['data']['photos']] == [str(in_phase.id)]

    def test_unknown_photo(self, doctor_client):
        response = doctor_client.get(f'{PHOTOS_URL}00000000-0000-0000-0000-000000000000/')

        assert response.status_code == 404
        assert response.json()['message'] == 'Photo not found'


@pytest.mark.django_db
class TestPhotoChanges:

    def test_before_after_pair(self, doctor_client, patient, make_photo):
        before = make_photo(patient)
        after = make_photo(patient, category='PROGRESS')

        response = doctor_client.post(f'{PHOTOS_URL}create-before-after-pair/', {
            'beforePhotoId': str(before.id),
            'afterPhotoId': str(after.id),
        }, format='json')

        assert response.status_code == 200
        pair_id = response.json()['data']['pair_id']
        assert pair_id.startswith('pair_')

        response = doctor_client.get(f'{PHOTOS_URL}patient/{patient.id}/before-after/')
        data = response.json()['data']
        assert data['total_pairs'] == 1
        assert data['pairs'][0]['pair_id'] == pair_id
        assert {row['id'] for row in data['pairs'][0]['photos']} == {str(before.id), str(after.id)}

    def test_pair_with_missing_photo(self, doctor_client, patient, make_photo):
        before = make_photo(patient)

        response = doctor_client.post(f'{PHOTOS_URL}create-before-after-pair/', {
            'beforePhotoId': str(before.id),
            'afterPhotoId': '00000000-0000-0000-0000-000000000000',
        }, format='json')

        assert response.status_code == 404

    def test_update_metadata(self, doctor_client, patient, make_photo):
        photo = make_photo(patient)

        response = doctor_client.put(f'{PHOTOS_URL}{photo.id}/', {
            'description': 'Upper arch',
            'tags': ['upper'],
        }, format='json')

        assert response.status_code == 200
        photo.refresh_from_db()
        assert photo.description == 'Upper arch'
        assert photo.tags == ['upper']

    def test_delete_removes_objects(self, doctor_client, patient, make_photo):
        photo = make_photo(patient, thumbnail_key='orthodontic-app/thumb.jpg')

        with patch('apps.photos.storage.remove_objects') as remove_objects:
            response = doctor_client.delete(f'{PHOTOS_URL}{photo.id}/')

        assert response.status_code == 200
        remove_objects.assert_called_once_with([photo.object_key, 'orthodontic-app/thumb.jpg'])
        assert not Photo.objects.filter(id=photo.id).exists()

    def test_delete_survives_storage_failure(self, doctor_client, patient, make_photo):
        photo = make_photo(patient)

        with patch('apps.photos.storage.remove_objects', side_effect=OSError('down')):
            response = doctor_client.delete(f'{PHOTOS_URL}{photo.id}/')

        assert response.status_code == 200
        assert not Photo.objects.filter(id=photo.id).exists()

    def test_assistant_cannot_delete(self, assistant_client, patient, make_photo):
        photo = make_photo(patient)

        response = assistant_client.delete(f'{PHOTOS_URL}{photo.id}/')

        assert response.status_code == 403

    def test_bulk_delete(self, doctor_client, patient, make_photo):
        photos = [make_photo(patient), make_photo(patient)]

        with patch('apps.photos.storage.remove_objects'):
            response = doctor_client.delete(f'{PHOTOS_URL}bulk/', {
                'photoIds': [str(photo.id) for photo in photos] + ['00000000-0000-0000-0000-000000000000'],
            }, format='json')

        assert response.status_code == 200
        assert response.json()['data'] == {'deleted': 2}
        assert Photo.objects.count() == 0

    def test_bulk_delete_requires_ids(self, doctor_client):
        response = doctor_client.delete(f'{PHOTOS_URL}bulk/', {'photoIds': []}, format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'Photo IDs array is required'

    def test_batch_update_reports_failures(self, doctor_client, patient, make_photo):
        photo = make_photo(patient)

        response = doctor_client.put(f'{PHOTOS_URL}batch-update/', {
            'photoUpdates': [
                {'id': str(photo.id), 'updateData': {'subcategory': 'occlusal'}},
                {'id': '00000000-0000-0000-0000-000000000000', 'updateData': {'subcategory': 'x'}},
            ],
        }, format='json')

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is False
        assert body['data']['successful'] == 1
        assert body['data']['failed'] == 1
        photo.refresh_from_db()
        assert photo.subcategory == 'occlusal'

    def test_download_redirects_to_presigned_url(self, doctor_client, patient, make_photo):
        photo = make_photo(patient)

        with patch('apps.photos.storage.build_photo_urls', return_value=FAKE_URLS):
            response = doctor_client.get(f'{PHOTOS_URL}{photo.id}/download/')

        assert response.status_code == 302
        assert response['Location'] == 'http://minio/original'


@pytest.mark.django_db
class TestRenditions:

    def test_generate_renditions_stores_keys(self, patient, make_photo):
        photo = make_photo(patient)
        buffer = io.BytesIO()
        Image.new('RGBA', (1000, 800), 'red').save(buffer, format='PNG')

        with patch.object(tasks, 'get_object_bytes', return_value=buffer.getvalue()), \
                patch.object(tasks, 'put_object') as put_object:
            result = tasks.generate_renditions(str(photo.id))

        assert result['status'] == 'generated'
        assert put_object.call_count == 3
        photo.refresh_from_db()
        assert photo.thumbnail_key.endswith('/renditions/thumbnail_test.jpg')
        assert photo.medium_key and photo.high_key

    def test_render_never_upscales(self):
        small = Image.new('RGB', (100, 50))

        assert tasks.render(small, (800, 600), crop=False).size == (100, 50)
        assert tasks.render(small, (200, 200), crop=True).size == (200, 200)

    def test_missing_photo(self):
        result = tasks.generate_renditions('00000000-0000-0000-0000-000000000000')

        assert result['status'] == 'missing'
