"""
Treatment serializers: plans, phases, clinical notes.
"""
from rest_framework import serializers

from apps.clinical.models import Appointment, Patient
from apps.clinical.serializers import PatientRefSerializer, StaffRefSerializer
from apps.payments.models import Payment
from apps.treatments.models import (
    ClinicalNote,
    NoteTypeChoices,
    PhaseStatusChoices,
    TreatmentPhase,
    TreatmentPlan,
    TreatmentPlanStatusChoices,
)


def _patient_field(**kwargs):
    return serializers.PrimaryKeyRelatedField(
        source='patient',
        queryset=Patient.objects.all(),
        pk_field=serializers.UUIDField(),
        error_messages={'does_not_exist': 'Patient not found'},
        **kwargs
    )


class TreatmentPhaseSerializer(serializers.ModelSerializer):
    treatment_plan_id = serializers.PrimaryKeyRelatedField(
        source='treatment_plan',
        queryset=TreatmentPlan.objects.all(),
        pk_field=serializers.UUIDField(),
        error_messages={'does_not_exist': 'Treatment plan not found'},
    )
    patient_id = _patient_field()

    class Meta:
        model = TreatmentPhase
        fields = [
            'id',
            'treatment_plan_id',
            'patient_id',
            'phase_number',
            'title',
            'description',
            'objectives',
            'appliances',
            'instructions',
            'start_date',
            'estimated_end_date',
            'actual_end_date',
            'status',
            'progress',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at']

    def validate(self, attrs):
        plan = attrs.get('treatment_plan') or getattr(self.instance, 'treatment_plan', None)
        patient = attrs.get('patient') or getattr(self.instance, 'patient', None)
        if plan is not None and patient is not None and plan.patient_id != patient.id:
            raise serializers.ValidationError({'patient_id': 'Patient does not own this treatment plan'})
        return attrs


class PhaseStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PhaseStatusChoices.choices)
    progress = serializers.IntegerField(min_value=0, max_value=100, required=False)
    actual_end_date = serializers.DateField(required=False, allow_null=True)


class PlanAppointmentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Appointment
        fields = ['id', 'appointment_date', 'appointment_time', 'type', 'status']
        read_only_fields = fields


class PlanPaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = ['id', 'amount', 'status', 'method', 'created_at']
        read_only_fields = fields


class TreatmentPlanSerializer(serializers.ModelSerializer):
    """
    Plan read/write.

    total_cost must be positive when given; estimated_duration is in months.
    """
    patient_id = _patient_field()
    patient = PatientRefSerializer(read_only=True)
    created_by = StaffRefSerializer(read_only=True)
    treatment_goals = serializers.ListField(child=serializers.CharField(max_length=500), required=False)
    appliances_used = serializers.ListField(child=serializers.CharField(max_length=200), required=False)
    estimated_duration = serializers.IntegerField(min_value=1, max_value=120, required=False, allow_null=True)

    class Meta:
        model = TreatmentPlan
        fields = [
            'id',
            'patient_id',
            'patient',
            'title',
            'description',
            'diagnosis',
            'treatment_goals',
            'estimated_duration',
            'complexity',
            'initial_assessment',
            'treatment_options',
            'selected_option',
            'appliances_used',
            'materials_list',
            'start_date',
            'estimated_end_date',
            'actual_end_date',
            'total_cost',
            'payment_plan',
            'status',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'patient', 'created_by', 'created_at', 'updated_at']

    def validate(self, attrs):
        start = attrs.get('start_date', getattr(self.instance, 'start_date', None))
        end = attrs.get('estimated_end_date', getattr(self.instance, 'estimated_end_date', None))
        if start and end and end < start:
            raise serializers.ValidationError({'estimated_end_date': 'Estimated end date must be after start date'})
        return attrs


class TreatmentPlanDetailSerializer(TreatmentPlanSerializer):
    """Plan with phases, the last 5 appointments and the last 5 payments (set in context)."""
    phases = serializers.SerializerMethodField()
    appointments = serializers.SerializerMethodField()
    payments = serializers.SerializerMethodField()

    class Meta(TreatmentPlanSerializer.Meta):
        fields = TreatmentPlanSerializer.Meta.fields + ['phases', 'appointments', 'payments']

    def get_phases(self, obj):
        return TreatmentPhaseSerializer(self.context.get('phases', []), many=True).data

    def get_appointments(self, obj):
        return PlanAppointmentSerializer(self.context.get('appointments', []), many=True).data

    def get_payments(self, obj):
        return PlanPaymentSerializer(self.context.get('payments', []), many=True).data


class PlanStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TreatmentPlanStatusChoices.choices)
    actual_end_date = serializers.DateField(required=False, allow_null=True)


class ClinicalNoteSerializer(serializers.ModelSerializer):
    patient_id = _patient_field()
    treatment_plan_id = serializers.PrimaryKeyRelatedField(
        source='treatment_plan',
        queryset=TreatmentPlan.objects.all(),
        pk_field=serializers.UUIDField(),
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Treatment plan not found'},
    )
    treatment_phase_id = serializers.PrimaryKeyRelatedField(
        source='treatment_phase',
        queryset=TreatmentPhase.objects.all(),
        pk_field=serializers.UUIDField(),
        required=False,
        allow_null=True,
        error_messages={'does_not_exist': 'Treatment phase not found'},
    )
    content = serializers.CharField(max_length=5000)
    tags = serializers.ListField(child=serializers.CharField(max_length=50), required=False)
    created_by = StaffRefSerializer(read_only=True)

    class Meta:
        model = ClinicalNote
        fields = [
            'id',
            'patient_id',
            'treatment_plan_id',
            'treatment_phase_id',
            'title',
            'content',
            'note_type',
            'tags',
            'observations',
            'recommendations',
            'next_steps',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'created_by', 'created_at', 'updated_at']


class NoteFilterSerializer(serializers.Serializer):
    noteType = serializers.ChoiceField(choices=NoteTypeChoices.choices, required=False)


class PlanFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=TreatmentPlanStatusChoices.choices, required=False)
