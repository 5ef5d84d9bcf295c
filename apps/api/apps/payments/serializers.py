"""
Payment serializers.
"""
from decimal import Decimal

from rest_framework import serializers

from apps.clinical.models import Patient
from apps.clinical.serializers import PatientRefSerializer, StaffRefSerializer
from apps.payments.models import Payment, PaymentStatusChoices
from apps.treatments.models import TreatmentPlan


class PlanRefSerializer(serializers.ModelSerializer):
    class Meta:
        model = TreatmentPlan
        fields = ['id', 'title']
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
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
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    currency = serializers.CharField(min_length=3, max_length=3, required=False)
    patient = PatientRefSerializer(read_only=True)
    treatment_plan = PlanRefSerializer(read_only=True)
    created_by = StaffRefSerializer(read_only=True)

    class Meta:
        model = Payment
        fields = [
            'id',
            'patient_id',
            'patient',
            'treatment_plan_id',
            'treatment_plan',
            'amount',
            'currency',
            'method',
            'status',
            'description',
            'notes',
            'due_date',
            'paid_date',
            'transaction_id',
            'created_by',
            'created_at',
            'updated_at',
        ]
        read_only_fields = ['id', 'patient', 'treatment_plan', 'created_by', 'created_at', 'updated_at']

    def validate_currency(self, value):
        return value.upper()

    def validate(self, attrs):
        plan = attrs.get('treatment_plan')
        patient = attrs.get('patient') or getattr(self.instance, 'patient', None)
        if plan is not None and patient is not None and plan.patient_id != patient.id:
            raise serializers.ValidationError({'treatment_plan_id': 'Treatment plan belongs to a different patient'})
        return attrs


class PaymentStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PaymentStatusChoices.choices)
    paid_date = serializers.DateTimeField(required=False, allow_null=True)


class MarkPaidSerializer(serializers.Serializer):
    paid_date = serializers.DateTimeField(required=False, allow_null=True)
    transaction_id = serializers.CharField(max_length=100, required=False, allow_blank=True)


class PaymentFilterSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=PaymentStatusChoices.choices, required=False)


class UpcomingFilterSerializer(serializers.Serializer):
    days = serializers.IntegerField(min_value=1, max_value=365, default=7)


class ReportFilterSerializer(serializers.Serializer):
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
    patientId = serializers.UUIDField(required=False)
    treatmentPlanId = serializers.UUIDField(required=False)
    status = serializers.ChoiceField(choices=PaymentStatusChoices.choices, required=False)


class PaymentPlanSerializer(serializers.Serializer):
    """Missing required fields are reported by the service as a single 400."""
    treatmentPlanId = serializers.UUIDField(required=False)
    totalAmount = serializers.DecimalField(
        max_digits=10, decimal_places=2, min_value=Decimal('0.01'), required=False
    )
    numberOfPayments = serializers.IntegerField(min_value=1, max_value=120, required=False)
    firstPaymentDate = serializers.DateField(required=False)

    def validate(self, attrs):
        total_amount = attrs.get('totalAmount')
        number_of_payments = attrs.get('numberOfPayments')
        if total_amount is not None and number_of_payments is not None:
            if total_amount < number_of_payments * Decimal('0.01'):
                raise serializers.ValidationError({
                    'totalAmount': 'Total amount must cover at least 0.01 per installment',
                })
        return attrs
