"""
Photo endpoints (/api/photos/).

Uploads (multipart):
- POST upload/            file: photo
- POST upload-multiple/   files: photos (up to MAX_UPLOAD_FILES)
- POST upload-fields/     files: intraoral, extraoral, radiographs, models, clinical, progress

Reads: list/search, stats, recent, per patient, per treatment phase, detail, download.
Writes: update, delete, bulk delete, batch update, before/after pairing.

Uploads are open to every staff role; other writes need DOCTOR or ADMIN.
"""
from django.http import HttpResponseRedirect
from rest_framework import status
from rest_framework.parsers import FormParser, MultiPartParser
from rest_framework.views import APIView

from apps.authz.permissions import IsStaffUser, ReadAnyWriteDoctorOrAdmin
from apps.core.exceptions import BadRequestError
from apps.core.pagination import PagePagination
from apps.core.responses import api_response

from . import services
from .models import PhotoCategoryChoices
from .serializers import (
    BatchUpdateSerializer,
    BeforeAfterPairSerializer,
    BulkDeleteSerializer,
    PhotoFieldsUploadSerializer,
    PhotoSearchSerializer,
    PhotoSerializer,
    PhotoUpdateSerializer,
    PhotoUploadSerializer,
    RecentPhotosSerializer,
)


class PhotoAPIView(APIView):
    permission_classes = [ReadAnyWriteDoctorOrAdmin]


class UploadAPIView(APIView):
    permission_classes = [IsStaffUser]
    parser_classes = [MultiPartParser, FormParser]


def _upload_result(photos, errors, message):
    """201 when at least one file was stored; success is false if any failed."""
    if not photos:
        raise BadRequestError('No photos were uploaded', details=[
            {'field': 'files', 'message': error, 'code': 'upload_failed'} for error in errors
        ])
    return api_response(
        data={
            'photos': PhotoSerializer(photos, many=True).data,
            'uploaded': len(photos),
            'failed': len(errors),
            'errors': errors,
        },
        message=message.format(count=len(photos)),
        status=status.HTTP_201_CREATED,
        success=not errors,
    )


# ============================================================================
# Uploads
# ============================================================================

class PhotoUploadView(UploadAPIView):

    def post(self, request):
        uploaded_file = request.FILES.get('photo')
        if uploaded_file is None:
            raise BadRequestError('No photo file provided')
        serializer = PhotoUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        photo = services.upload_photo(uploaded_file, serializer.validated_data, uploaded_by=request.user)
        return api_response(
            data={'photo': PhotoSerializer(photo).data},
            message='Photo uploaded successfully',
            status=status.HTTP_201_CREATED,
        )


class PhotoUploadMultipleView(UploadAPIView):

    def post(self, request):
        serializer = PhotoUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        photos, errors = services.upload_many(
            request.FILES.getlist('photos'),
            serializer.validated_data,
            uploaded_by=request.user,
        )
        return _upload_result(photos, errors, '{count} photos uploaded successfully')


class PhotoUploadFieldsView(UploadAPIView):

    def post(self, request):
        serializer = PhotoFieldsUploadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        files_by_field = {field: request.FILES.getlist(field) for field in services.UPLOAD_FIELDS}
        photos, errors = services.upload_fields(
            files_by_field,
            serializer.validated_data,
            uploaded_by=request.user,
        )
        return _upload_result(photos, errors, '{count} photos uploaded successfully')


# ============================================================================
# Queries
# ============================================================================

class PhotoSearchView(PhotoAPIView):
    """GET / and GET search/."""

    def get(self, request):
        params = PhotoSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        query = params.validated_data
        paginator = PagePagination(max_page_size=services.MAX_SEARCH_LIMIT)
        photos = paginator.paginate_queryset(
            services.search_photos(query, sort_by=query['sortBy'], sort_order=query['sortOrder']),
            request,
            view=self,
        )
        return paginator.get_paginated_response(
            PhotoSerializer(photos, many=True).data,
            'photos',
            message='Photos retrieved successfully',
        )


class PhotoStatsView(PhotoAPIView):

    def get(self, request):
        return api_response(data={'stats': services.get_photo_stats()}, message='Photo statistics retrieved successfully')


class RecentPhotosView(PhotoAPIView):

    def get(self, request):
        params = RecentPhotosSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        photos = services.get_recent_photos(
            limit=params.validated_data['limit'],
            patient_id=params.validated_data.get('patient_id'),
        )
        return api_response(
            data={'photos': PhotoSerializer(photos, many=True).data},
            message='Recent photos retrieved successfully',
        )


class PatientPhotosView(PhotoAPIView):

    def get(self, request, patient_id):
        category = request.query_params.get('category')
        if category and category not in PhotoCategoryChoices.values:
            raise BadRequestError('Invalid photo category')
        limit = None
        if 'limit' in request.query_params:
            limit = PagePagination(max_page_size=1000).get_page_size(request)
        photos = services.get_patient_photos(patient_id, category=category, limit=limit)
        return api_response(
            data={'photos': PhotoSerializer(photos, many=True).data},
            message='Patient photos retrieved successfully',
        )


class PatientCategoryPhotosView(PhotoAPIView):

    def get(self, request, patient_id, category):
        category = category.upper()
        if category not in PhotoCategoryChoices.values:
            raise BadRequestError('Invalid photo category')
        paginator = PagePagination(max_page_size=services.MAX_SEARCH_LIMIT)
        photos = paginator.paginate_queryset(
            services.search_photos({'patient_id': patient_id, 'category': category}),
            request,
            view=self,
        )
        return paginator.get_paginated_response(
            PhotoSerializer(photos, many=True).data,
            'photos',
            message=f'{category} photos retrieved successfully',
        )


class BeforeAfterPairsView(PhotoAPIView):

    def get(self, request, patient_id):
        pairs = services.get_before_after_pairs(patient_id)
        return api_response(
            data={
                'pairs': [
                    {
                        'pair_id': pair['pair_id'],
                        'created_at': pair['created_at'],
                        'photos': PhotoSerializer(pair['photos'], many=True).data,
                    }
                    for pair in pairs
                ],
                'total_pairs': len(pairs),
            },
            message='Before/after pairs retrieved successfully',
        )


class CategoriesSummaryView(PhotoAPIView):

    def get(self, request, patient_id):
        summary = services.get_categories_summary(patient_id)
        return api_response(
            data={
                'category_summary': {
                    category: {
                        'count': entry['count'],
                        'latest_photo': PhotoSerializer(entry['latest_photo']).data,
                        'subcategories': entry['subcategories'],
                    }
                    for category, entry in summary.items()
                },
                'total_photos': sum(entry['count'] for entry in summary.values()),
            },
            message='Photo categories summary retrieved successfully',
        )


class PhasePhotosView(PhotoAPIView):

    def get(self, request, phase_id):
        paginator = PagePagination(max_page_size=services.MAX_SEARCH_LIMIT)
        photos = paginator.paginate_queryset(services.get_phase_photos(phase_id), request, view=self)
        return paginator.get_paginated_response(
            PhotoSerializer(photos, many=True).data,
            'photos',
            message='Treatment phase photos retrieved successfully',
        )


# ============================================================================
# Single photo
# ============================================================================

class PhotoDetailView(PhotoAPIView):

    def get(self, request, photo_id):
        photo = services.get_photo(photo_id)
        return api_response(data={'photo': PhotoSerializer(photo).data}, message='Photo retrieved successfully')

    def put(self, request, photo_id):
        serializer = PhotoUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        photo = services.update_photo(photo_id, serializer.validated_data, actor=request.user)
        return api_response(data={'photo': PhotoSerializer(photo).data}, message='Photo updated successfully')

    def delete(self, request, photo_id):
        services.delete_photo(photo_id, actor=request.user)
        return api_response(message='Photo deleted successfully')


class PhotoDownloadView(PhotoAPIView):

    def get(self, request, photo_id):
        return HttpResponseRedirect(services.get_download_url(photo_id))


# ============================================================================
# Bulk
# ============================================================================

class BeforeAfterPairCreateView(PhotoAPIView):

    def post(self, request):
        serializer = BeforeAfterPairSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        pair_id, before, after = services.create_before_after_pair(
            serializer.validated_data['beforePhotoId'],
            serializer.validated_data['afterPhotoId'],
            actor=request.user,
        )
        return api_response(
            data={
                'pair_id': pair_id,
                'before_photo': PhotoSerializer(before).data,
                'after_photo': PhotoSerializer(after).data,
            },
            message='Before/after pair created successfully',
        )


class BulkDeleteView(PhotoAPIView):

    def delete(self, request):
        serializer = BulkDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        deleted = services.bulk_delete_photos(serializer.validated_data.get('photoIds'), actor=request.user)
        return api_response(data={'deleted': deleted}, message=f'{deleted} photos deleted successfully')


class BatchUpdateView(PhotoAPIView):

    def put(self, request):
        if not request.data.get('photoUpdates'):
            raise BadRequestError('Photo updates array is required')
        serializer = BatchUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        results = services.batch_update_photos(
            [
                {'id': item['id'], 'update_data': item['updateData']}
                for item in serializer.validated_data['photoUpdates']
            ],
            actor=request.user,
        )
        return api_response(
            data=results,
            message=f"Batch update completed. {results['successful']} successful, {results['failed']} failed.",
            success=results['failed'] == 0,
        )
