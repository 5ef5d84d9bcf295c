"""
Photo serializers. Every photo is returned with presigned
{thumbnail, medium, high, original} URLs.
"""
from rest_framework import serializers

from apps.clinical.models import Appointment, Patient
from apps.clinical.serializers import PatientRefSerializer, StaffRefSerializer
from apps.treatments.models import TreatmentPhase

from .models import Photo, PhotoCategoryChoices
from .services import PHOTO_SORT_FIELDS
from .storage import build_photo_urls


class CommaSeparatedListField(serializers.ListField):
    """Accepts a list, repeated form keys, or a single comma separated string."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = [item.strip() for item in data.split(',') if item.strip()]
        elif isinstance(data, list) and len(data) == 1 and isinstance(data[0], str) and ',' in data[0]:
            data = [item.strip() for item in data[0].split(',') if item.strip()]
        return super().to_internal_value(data)


class PhaseRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = TreatmentPhase
        fields = ['id', 'title', 'phase_number']
        read_only_fields = fields


class AppointmentRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Appointment
        fields = ['id', 'appointment_date', 'appointment_time']
        read_only_fields = fields


class PhotoSerializer(serializers.ModelSerializer):
    patient = PatientRefSerializer(read_only=True)
    uploaded_by = StaffRefSerializer(read_only=True)
    treatment_phase = PhaseRefSerializer(read_only=True)
    appointment = AppointmentRefSerializer(read_only=True)
    urls = serializers.SerializerMethodField()

    class Meta:
        model = Photo
        fields = [
            'id',
            'patient',
            'treatment_phase',
            'appointment',
            'filename',
            'original_name',
            'mime_type',
            'file_size',
            'width',
            'height',
            'category',
            'subcategory',
            'description',
            'tags',
            'is_before_after',
            'before_after_pair_id',
            'uploaded_by',
            'uploaded_at',
            'updated_at',
            'urls',
        ]
        read_only_fields = fields

    def get_urls(self, obj):
        return build_photo_urls(obj)


class PhotoMetadataSerializer(serializers.Serializer):
    """Writable photo metadata shared by upload and update."""
    subcategory = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, allow_null=True)
    tags = CommaSeparatedListField(child=serializers.CharField(max_length=50), required=False)
    treatment_phase_id = serializers.PrimaryKeyRelatedField(
        source='treatment_phase',
        queryset=TreatmentPhase.objects.all(),
        pk_field=serializers.UUIDField(),
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Treatment phase not found'},
    )
    appointment_id = serializers.PrimaryKeyRelatedField(
        source='appointment',
        queryset=Appointment.objects.all(),
        pk_field=serializers.UUIDField(),
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Appointment not found'},
    )
    is_before_after = serializers.BooleanField(required=False)
    before_after_pair_id = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)


class PhotoUploadSerializer(PhotoMetadataSerializer):
    patient_id = serializers.PrimaryKeyRelatedField(
        source='patient',
        queryset=Patient.objects.all(),
        pk_field=serializers.UUIDField(),
        error_messages={'does_not_exist': 'Patient not found'},
    )
    category = serializers.ChoiceField(choices=PhotoCategoryChoices.choices)


class PhotoFieldsUploadSerializer(PhotoUploadSerializer):
    """Category comes from the multipart field name."""
    category = serializers.ChoiceField(choices=PhotoCategoryChoices.choices, required=False)


class PhotoUpdateSerializer(PhotoMetadataSerializer):
    category = serializers.ChoiceField(choices=PhotoCategoryChoices.choices, required=False)


class PhotoSearchSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField(required=False)
    category = serializers.ChoiceField(choices=PhotoCategoryChoices.choices, required=False)
    subcategory = serializers.CharField(max_length=100, required=False)
    treatment_phase_id = serializers.UUIDField(required=False)
    is_before_after = serializers.BooleanField(required=False, allow_null=True, default=None)
    tags = CommaSeparatedListField(child=serializers.CharField(max_length=50), required=False)
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=50, default=20)
    sortBy = serializers.ChoiceField(choices=list(PHOTO_SORT_FIELDS), default='uploadedAt')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], default='desc')


class RecentPhotosSerializer(serializers.Serializer):
    limit = serializers.IntegerField(min_value=1, max_value=50, default=10)
    patient_id = serializers.UUIDField(required=False)


class BeforeAfterPairSerializer(serializers.Serializer):
    beforePhotoId = serializers.UUIDField()
    afterPhotoId = serializers.UUIDField()


class BulkDeleteSerializer(serializers.Serializer):
    photoIds = serializers.ListField(child=serializers.CharField(), required=False)


class PhotoUpdateItemSerializer(serializers.Serializer):
    id = serializers.UUIDField()
    updateData = PhotoUpdateSerializer()


class BatchUpdateSerializer(serializers.Serializer):
    photoUpdates = PhotoUpdateItemSerializer(many=True, allow_empty=False)
