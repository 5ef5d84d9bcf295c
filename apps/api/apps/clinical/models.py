"""
Clinical models: patient, appointment, clinical_audit_log
"""
import uuid

from django.conf import settings
from django.core.validators import MinValueValidator, RegexValidator
from django.db import models

GREEK_PHONE_REGEX = r'^(\+30)?[6-7]\d{8}$'
TIME_REGEX = r'^([01]\d|2[0-3]):[0-5]\d$'

phone_validator = RegexValidator(
    GREEK_PHONE_REGEX,
    'Please provide a valid Greek phone number',
)
time_validator = RegexValidator(TIME_REGEX, 'Time must be in HH:MM format')


# ============================================================================
# Choices
# ============================================================================

class GenderChoices(models.TextChoices):
    MALE = 'MALE', 'Male'
    FEMALE = 'FEMALE', 'Female'
    OTHER = 'OTHER', 'Other'


class AppointmentTypeChoices(models.TextChoices):
    CONSULTATION = 'CONSULTATION', 'Consultation'
    EXAMINATION = 'EXAMINATION', 'Examination'
    TREATMENT = 'TREATMENT', 'Treatment'
    FOLLOW_UP = 'FOLLOW_UP', 'Follow Up'
    EMERGENCY = 'EMERGENCY', 'Emergency'
    REVIEW = 'REVIEW', 'Review'


class AppointmentStatusChoices(models.TextChoices):
    SCHEDULED = 'SCHEDULED', 'Scheduled'
    CONFIRMED = 'CONFIRMED', 'Confirmed'
    IN_PROGRESS = 'IN_PROGRESS', 'In Progress'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'
    NO_SHOW = 'NO_SHOW', 'No Show'


class AuditActionChoices(models.TextChoices):
    CREATE = 'create', 'Create'
    UPDATE = 'update', 'Update'
    DEACTIVATE = 'deactivate', 'Deactivate'
    REACTIVATE = 'reactivate', 'Reactivate'
    DELETE = 'delete', 'Delete'


class AuditEntityTypeChoices(models.TextChoices):
    PATIENT = 'Patient', 'Patient'
    APPOINTMENT = 'Appointment', 'Appointment'
    TREATMENT_PLAN = 'TreatmentPlan', 'Treatment Plan'
    TREATMENT_PHASE = 'TreatmentPhase', 'Treatment Phase'
    CLINICAL_NOTE = 'ClinicalNote', 'Clinical Note'
    PHOTO = 'Photo', 'Photo'
    PAYMENT = 'Payment', 'Payment'


# ============================================================================
# Patient
# ============================================================================

class Patient(models.Model):
    """
    Patient record.

    - id: UUID PK
    - first_name, last_name (1..100)
    - email nullable, phone (Greek mobile/landline format)
    - date_of_birth, gender
    - address fields, country defaults to Greece
    - medical_history, emergency_contact, insurance_info, orthodontic_history: JSON
    - allergies, medications (<=500), referral_source (<=200)
    - is_active: deactivated patients are hidden from search/recent
    - created_by: staff user who created the record (null for scheduled sync imports)
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(max_length=255, blank=True, null=True)
    phone = models.CharField(max_length=20, validators=[phone_validator])
    date_of_birth = models.DateField(blank=True, null=True)
    gender = models.CharField(
        max_length=10,
        choices=GenderChoices.choices,
        blank=True,
        null=True
    )

    # Address
    address = models.CharField(max_length=255, blank=True, null=True)
    city = models.CharField(max_length=100, blank=True, null=True)
    postal_code = models.CharField(max_length=10, blank=True, null=True)
    country = models.CharField(max_length=100, default='Greece')

    # Clinical background
    medical_history = models.JSONField(blank=True, null=True)
    allergies = models.CharField(max_length=500, blank=True, null=True)
    medications = models.CharField(max_length=500, blank=True, null=True)
    emergency_contact = models.JSONField(blank=True, null=True)
    insurance_info = models.JSONField(blank=True, null=True)
    orthodontic_history = models.JSONField(blank=True, null=True)
    referral_source = models.CharField(max_length=200, blank=True, null=True)

    is_active = models.BooleanField(default=True)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='created_patients'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'patient'
        verbose_name = 'Patient'
        verbose_name_plural = 'Patients'
        indexes = [
            models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
            models.Index(fields=['email'], name='idx_patient_email'),
            models.Index(fields=['phone'], name='idx_patient_phone'),
            models.Index(fields=['is_active'], name='idx_patient_active'),
            models.Index(fields=['created_at'], name='idx_patient_created'),
        ]

    def __str__(self):
        return f"{self.first_name} {self.last_name}"

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}"


# ============================================================================
# Appointment
# ============================================================================

class Appointment(models.Model):
    """
    Scheduled visit, created by staff or imported from the legacy booking system.

    legacy_booking_id / booking_number identify the source booking for synced rows.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    patient = models.ForeignKey(
        'Patient',
        on_delete=models.CASCADE,
        related_name='appointments'
    )
    treatment_plan = models.ForeignKey(
        'treatments.TreatmentPlan',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='appointments'
    )
    appointment_date = models.DateField()
    appointment_time = models.CharField(max_length=5, validators=[time_validator])
    duration = models.PositiveIntegerField(default=30, validators=[MinValueValidator(5)])
    type = models.CharField(
        max_length=20,
        choices=AppointmentTypeChoices.choices,
        default=AppointmentTypeChoices.CONSULTATION
    )
    status = models.CharField(
        max_length=20,
        choices=AppointmentStatusChoices.choices,
        default=AppointmentStatusChoices.SCHEDULED
    )
    notes = models.TextField(blank=True, null=True)
    reason_for_visit = models.CharField(max_length=500, blank=True, null=True)

    # Legacy booking system link
    legacy_booking_id = models.CharField(max_length=50, blank=True, null=True)
    booking_number = models.CharField(max_length=50, blank=True, null=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='created_appointments'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'appointment'
        verbose_name = 'Appointment'
        verbose_name_plural = 'Appointments'
        ordering = ['appointment_date', 'appointment_time']
        indexes = [
            models.Index(fields=['patient'], name='idx_appointment_patient'),
            models.Index(fields=['appointment_date'], name='idx_appointment_date'),
            models.Index(fields=['status'], name='idx_appointment_status'),
            models.Index(fields=['legacy_booking_id'], name='idx_appointment_legacy_id'),
            models.Index(fields=['booking_number'], name='idx_appointment_booking_no'),
        ]

    def __str__(self):
        return f"{self.patient} - {self.appointment_date} {self.appointment_time}"


# ============================================================================
# Clinical Audit Log
# ============================================================================

class ClinicalAuditLog(models.Model):
    """
    Lightweight audit trail for clinical entity changes.

    Fields:
    - actor_user: who made the change (null for system actions such as legacy sync)
    - action: create|update|deactivate|reactivate|delete
    - entity_type / entity_id: what changed
    - patient: related patient (for the patient audit-log endpoint)
    - metadata: changed fields, before/after snapshots, request info
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    actor_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='clinical_audit_logs',
        help_text='User who performed the action (null for system actions)'
    )
    action = models.CharField(
        max_length=12,
        choices=AuditActionChoices.choices
    )
    entity_type = models.CharField(
        max_length=50,
        choices=AuditEntityTypeChoices.choices
    )
    entity_id = models.UUIDField()
    patient = models.ForeignKey(
        'Patient',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='audit_logs'
    )
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = 'clinical_audit_log'
        verbose_name = 'Clinical Audit Log'
        verbose_name_plural = 'Clinical Audit Logs'
        indexes = [
            models.Index(fields=['created_at'], name='idx_audit_created_at'),
            models.Index(fields=['entity_type'], name='idx_audit_entity_type'),
            models.Index(fields=['entity_id'], name='idx_audit_entity_id'),
            models.Index(fields=['patient'], name='idx_audit_patient'),
            models.Index(fields=['action'], name='idx_audit_action'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        actor = self.actor_user.email if self.actor_user else 'system'
        return f"{self.action} on {self.entity_type}[{str(self.entity_id)[:8]}] by {actor}"


def log_clinical_audit(actor, instance, action, changed_fields=None, before=None, after=None,
                       patient=None, request=None):
    """
    Create a clinical audit log entry.

    Args:
        actor: User instance or None for system actions
        instance: The clinical entity being audited
        action: AuditActionChoices value
        changed_fields: list of changed field names (updates)
        before / after: JSON-safe snapshots (updates)
        patient: Patient; inferred from instance.patient or the instance itself
        request: captures IP and user agent when given
    """
    if patient is None:
        patient = instance if isinstance(instance, Patient) else getattr(instance, 'patient', None)

    metadata = {}
    if changed_fields:
        metadata['changed_fields'] = changed_fields
    if before:
        metadata['before'] = before
    if after:
        metadata['after'] = after
    if request is not None:
        metadata['request'] = {
            'ip': request.META.get('REMOTE_ADDR'),
            'user_agent': request.META.get('HTTP_USER_AGENT', '')[:200],
        }

    return ClinicalAuditLog.objects.create(
        actor_user=actor if actor is not None and actor.is_authenticated else None,
        action=action,
        entity_type=instance.__class__.__name__,
        entity_id=instance.pk,
        patient=patient,
        metadata=metadata,
    )
