"""
Clinical serializers for Patient, Appointment and ClinicalAuditLog.
"""
from django.utils import timezone
from rest_framework import serializers

from apps.clinical.models import (
    Appointment,
    AppointmentStatusChoices,
    AppointmentTypeChoices,
    ClinicalAuditLog,
    GenderChoices,
    Patient,
)
from apps.clinical.services import PATIENT_SORT_FIELDS
from apps.treatments.models import TreatmentPlan


class StaffRefSerializer(serializers.Serializer):
    """Minimal staff user reference (creator, uploader, author)."""
    id = serializers.UUIDField()
    first_name = serializers.CharField()
    last_name = serializers.CharField()


class PatientRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Patient
        fields = ['id', 'first_name', 'last_name']
        read_only_fields = fields


class PatientListSerializer(serializers.ModelSerializer):
    """List/search rows; counts come from services.with_relation_counts."""
    counts = serializers.SerializerMethodField()

    class Meta:
        model = Patient
        fields = [
            'id',
            'first_name',
            'last_name',
            'email',
            'phone',
            'date_of_birth',
            'gender',
            'city',
            'is_active',
            'created_at',
            'updated_at',
            'counts',
        ]
        read_only_fields = fields

    def get_counts(self, obj):
        if not hasattr(obj, 'appointments_count'):
            return None
        return {
            'treatment_plans': obj.treatment_plans_count,
            'appointments': obj.appointments_count,
            'photos': obj.photos_count,
        }


class PatientSerializer(serializers.ModelSerializer):
    """
    Full patient record, used for create/update/detail.

    Validation:
    - first_name, last_name: 1..100 characters
    - phone: Greek format (model validator)
    - date_of_birth: not in the future
    """
    first_name = serializers.CharField(min_length=1, max_length=100)
    last_name = serializers.CharField(min_length=1, max_length=100)
    created_by = StaffRefSerializer(read_only=True)

    class Meta:
        model = Patient
        fields = [
            'id',
            'first_name',
            'last_name',
            'email',
            'phone',
            'date_of_birth',
            'gender',
            'address',
            'city',
            'postal_code',
            'country',
            'medical_history',
            'allergies',
            'medications',
            'emergency_contact',
            'insurance_info',
            'orthodontic_history',
            'referral_source',
            'is_active',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'is_active', 'created_by', 'created_at', 'updated_at']

    def validate_email(self, value):
        return value.strip().lower() if value else value

    def validate_date_of_birth(self, value):
        if value and value > timezone.localdate():
            raise serializers.ValidationError('Date of birth cannot be in the future')
        return value


class PatientSearchSerializer(serializers.Serializer):
    query = serializers.CharField(min_length=1, max_length=100)
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=20)
    sortBy = serializers.ChoiceField(choices=list(PATIENT_SORT_FIELDS), default='lastName')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], default='asc')


class AdvancedSearchSerializer(serializers.Serializer):
    firstName = serializers.CharField(required=False, max_length=100)
    lastName = serializers.CharField(required=False, max_length=100)
    email = serializers.CharField(required=False, max_length=255)
    phone = serializers.CharField(required=False, max_length=20)
    city = serializers.CharField(required=False, max_length=100)
    gender = serializers.ChoiceField(choices=GenderChoices.choices, required=False)
    ageMin = serializers.IntegerField(required=False, min_value=0, max_value=150)
    ageMax = serializers.IntegerField(required=False, min_value=0, max_value=150)
    hasActiveTreatment = serializers.BooleanField(required=False, allow_null=True, default=None)
    hasUpcomingAppointments = serializers.BooleanField(required=False, allow_null=True, default=None)
    createdAfter = serializers.DateField(required=False)
    createdBefore = serializers.DateField(required=False)
    page = serializers.IntegerField(min_value=1, default=1)
    limit = serializers.IntegerField(min_value=1, max_value=100, default=20)
    sortBy = serializers.ChoiceField(choices=list(PATIENT_SORT_FIELDS), default='lastName')
    sortOrder = serializers.ChoiceField(choices=['asc', 'desc'], default='asc')

    def validate(self, attrs):
        age_min, age_max = attrs.get('ageMin'), attrs.get('ageMax')
        if age_min is not None and age_max is not None and age_min > age_max:
            raise serializers.ValidationError({'ageMin': 'ageMin cannot be greater than ageMax'})
        return attrs


class BulkUpdateSerializer(serializers.Serializer):
    patientIds = serializers.ListField(child=serializers.CharField(), required=False)
    updateData = serializers.DictField(required=False, default=dict)


class ClinicalAuditLogSerializer(serializers.ModelSerializer):
    actor = serializers.SerializerMethodField()

    class Meta:
        model = ClinicalAuditLog
        fields = ['id', 'created_at', 'actor', 'action', 'entity_type', 'entity_id', 'metadata']
        read_only_fields = fields

    def get_actor(self, obj):
        if obj.actor_user is None:
            return None
        return {'id': str(obj.actor_user.id), 'email': obj.actor_user.email}


class AppointmentSerializer(serializers.ModelSerializer):
    """
    Appointment read/write.

    patient_id / treatment_plan_id must reference existing rows (400 otherwise).
    """
    patient_id = serializers.PrimaryKeyRelatedField(
        source='patient',
        queryset=Patient.objects.all(),
        pk_field=serializers.UUIDField(),
        error_messages={'does_not_exist': 'Patient not found'},
    )
    treatment_plan_id = serializers.PrimaryKeyRelatedField(
        source='treatment_plan',
        queryset=TreatmentPlan.objects.all(),
        pk_field=serializers.UUIDField(),
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Treatment plan not found'},
    )
    patient = PatientRefSerializer(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id',
            'patient_id',
            'patient',
            'treatment_plan_id',
            'appointment_date',
            'appointment_time',
            'duration',
            'type',
            'status',
            'notes',
            'reason_for_visit',
            'legacy_booking_id',
            'booking_number',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'patient', 'legacy_booking_id', 'booking_number', 'created_at', 'updated_at']

    def validate(self, attrs):
        plan = attrs.get('treatment_plan')
        patient = attrs.get('patient') or getattr(self.instance, 'patient', None)
        if plan is not None and patient is not None and plan.patient_id != patient.id:
            raise serializers.ValidationError({
                'treatment_plan_id': 'Treatment plan belongs to a different patient'
            })
        return attrs


class AppointmentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=AppointmentStatusChoices.choices)
    notes = serializers.CharField(required=False, allow_blank=True)


class AppointmentFilterSerializer(serializers.Serializer):
    patient_id = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=AppointmentStatusChoices.choices, required=False)
    type = serializers.ChoiceField(choices=AppointmentTypeChoices.choices, required=False)
    date_from = serializers.DateField(required=False)
    date_to = serializers.DateField(required=False)
