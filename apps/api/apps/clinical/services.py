"""
Clinical services: patient lifecycle, search, statistics and timeline,
plus appointment scheduling.

Business rules:
- An active patient's email and phone are unique among active patients.
- Patients are never hard-deleted from the API; DELETE deactivates.
- Every write records a ClinicalAuditLog entry.
"""
import csv
import io
import json
import logging
from datetime import datetime

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.serializers.json import DjangoJSONEncoder
from django.db import transaction
from django.db import models
from django.db.models import Count, Q
from django.utils import timezone

from apps.clinical.models import (
    Appointment,
    AppointmentStatusChoices,
    AuditActionChoices,
    ClinicalAuditLog,
    Patient,
    log_clinical_audit,
)
from apps.core.dates import add_months, calculate_age
from apps.core.exceptions import AppError, BadRequestError, ConflictError, NotFoundError
from apps.core.observability import log_domain_event

logger = logging.getLogger(__name__)

PATIENT_SORT_FIELDS = {
    'firstName': 'first_name',
    'lastName': 'last_name',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
}

UPCOMING_STATUSES = [AppointmentStatusChoices.SCHEDULED, AppointmentStatusChoices.CONFIRMED]

EXPORT_FIELDS = [
    'id', 'first_name', 'last_name', 'email', 'phone', 'date_of_birth',
    'gender', 'city', 'country', 'is_active', 'created_at',
]


def audit_snapshot(instance, fields):
    """JSON-safe {field: value} for audit metadata; related objects are stored by pk."""
    values = {}
    for field in fields:
        value = getattr(instance, field)
        values[field] = value.pk if isinstance(value, models.Model) else value
    return json.loads(json.dumps(
        values,
        cls=DjangoJSONEncoder,
    ))


def parse_bool(value):
    if value is None or value == '':
        return None
    return str(value).lower() in ('true', '1', 'yes')


# ============================================================================
# Patients
# ============================================================================

def get_patient(patient_id):
    try:
        patient = Patient.objects.filter(id=patient_id).first()
    except DjangoValidationError:
        patient = None
    if patient is None:
        raise NotFoundError('Patient not found')
    return patient


def _check_contact_conflicts(email, phone, exclude_id=None):
    active = Patient.objects.filter(is_active=True)
    if exclude_id:
        active = active.exclude(id=exclude_id)
    prefix = 'Another patient' if exclude_id else 'Patient'
    if email and active.filter(email=email).exists():
        raise ConflictError(f'{prefix} with this email already exists')
    if phone and active.filter(phone=phone).exists():
        raise ConflictError(f'{prefix} with this phone number already exists')


@transaction.atomic
def create_patient(data, created_by=None, request=None):
    data = dict(data)
    if data.get('email'):
        data['email'] = data['email'].strip().lower()
    _check_contact_conflicts(data.get('email'), data.get('phone'))

    patient = Patient.objects.create(created_by=created_by, **data)
    log_clinical_audit(created_by, patient, AuditActionChoices.CREATE, request=request)
    log_domain_event(
        'patient_created',
        entity_type='Patient',
        entity_id=patient.id,
        created_by=str(created_by.id) if created_by else None,
    )
    return patient


@transaction.atomic
def update_patient(patient_id, data, actor=None, request=None):
    patient = get_patient(patient_id)
    data = dict(data)
    if data.get('email'):
        data['email'] = data['email'].strip().lower()
    _check_contact_conflicts(data.get('email'), data.get('phone'), exclude_id=patient.id)

    before = audit_snapshot(patient, data.keys())
    for field, value in data.items():
        setattr(patient, field, value)
    patient.save()
    after = audit_snapshot(patient, data.keys())

    changed_fields = [field for field in data if before[field] != after[field]]
    if changed_fields:
        log_clinical_audit(
            actor,
            patient,
            AuditActionChoices.UPDATE,
            changed_fields=changed_fields,
            before={field: before[field] for field in changed_fields},
            after={field: after[field] for field in changed_fields},
            request=request,
        )
    log_domain_event('patient_updated', entity_type='Patient', entity_id=patient.id, updated_fields=changed_fields)
    return patient


def _set_active(patient_id, is_active, actor, request):
    patient = get_patient(patient_id)
    patient.is_active = is_active
    patient.save(update_fields=['is_active', 'updated_at'])
    action = AuditActionChoices.REACTIVATE if is_active else AuditActionChoices.DEACTIVATE
    log_clinical_audit(actor, patient, action, request=request)
    log_domain_event(f'patient_{action}d', entity_type='Patient', entity_id=patient.id)
    return patient


@transaction.atomic
def deactivate_patient(patient_id, actor=None, request=None):
    return _set_active(patient_id, False, actor, request)


@transaction.atomic
def reactivate_patient(patient_id, actor=None, request=None):
    return _set_active(patient_id, True, actor, request)


def bulk_update_patients(patient_ids, data, actor=None, request=None):
    """
    Update each patient independently; one failure does not stop the rest.

    Returns:
        {'successful': int, 'failed': int, 'errors': ['<id>: <message>', ...]}
    """
    if not isinstance(patient_ids, list) or not patient_ids:
        raise BadRequestError('Patient IDs array is required')

    results = {'successful': 0, 'failed': 0, 'errors': []}
    for patient_id in patient_ids:
        try:
            update_patient(patient_id, data, actor=actor, request=request)
            results['successful'] += 1
        except AppError as e:
            results['failed'] += 1
            results['errors'].append(f'{patient_id}: {e.message}')

    log_domain_event(
        'patients_bulk_updated',
        entity_type='Patient',
        result='success' if results['failed'] == 0 else 'partial',
        total=len(patient_ids),
        successful=results['successful'],
        failed=results['failed'],
    )
    return results


def with_relation_counts(queryset):
    return queryset.annotate(
        treatment_plans_count=Count('treatment_plans', distinct=True),
        appointments_count=Count('appointments', distinct=True),
        photos_count=Count('photos', distinct=True),
    )


def _ordering(sort_by, sort_order, default='lastName'):
    field = PATIENT_SORT_FIELDS.get(sort_by, PATIENT_SORT_FIELDS[default])
    return f'-{field}' if sort_order == 'desc' else field


def search_patients(query='', sort_by='lastName', sort_order='asc', is_active=True):
    """Case-insensitive contains over name, email and phone."""
    queryset = Patient.objects.all()
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    if query:
        queryset = queryset.filter(
            Q(first_name__icontains=query)
            | Q(last_name__icontains=query)
            | Q(email__icontains=query)
            | Q(phone__icontains=query)
        )
    queryset = with_relation_counts(queryset).order_by(_ordering(sort_by, sort_order), 'id')
    return queryset


def advanced_search(filters, sort_by='lastName', sort_order='asc'):
    """
    Field filters (firstName, lastName, email, phone, city, gender), age range,
    created range, hasActiveTreatment and hasUpcomingAppointments.
    """
    queryset = Patient.objects.filter(is_active=True)

    for param, lookup in (
        ('firstName', 'first_name__icontains'),
        ('lastName', 'last_name__icontains'),
        ('email', 'email__icontains'),
        ('phone', 'phone__icontains'),
        ('city', 'city__icontains'),
    ):
        if filters.get(param):
            queryset = queryset.filter(**{lookup: filters[param]})
    if filters.get('gender'):
        queryset = queryset.filter(gender=filters['gender'])

    today = timezone.localdate()
    if filters.get('ageMin') is not None:
        queryset = queryset.filter(date_of_birth__lte=add_months(today, -12 * filters['ageMin']))
    if filters.get('ageMax') is not None:
        queryset = queryset.filter(date_of_birth__gt=add_months(today, -12 * (filters['ageMax'] + 1)))

    if filters.get('createdAfter'):
        queryset = queryset.filter(created_at__date__gte=filters['createdAfter'])
    if filters.get('createdBefore'):
        queryset = queryset.filter(created_at__date__lte=filters['createdBefore'])

    has_active_treatment = filters.get('hasActiveTreatment')
    if has_active_treatment is not None:
        active_plan = Q(treatment_plans__status='ACTIVE')
        queryset = queryset.filter(active_plan) if has_active_treatment else queryset.exclude(active_plan)

    has_upcoming = filters.get('hasUpcomingAppointments')
    if has_upcoming is not None:
        upcoming = Q(appointments__appointment_date__gte=today, appointments__status__in=UPCOMING_STATUSES)
        queryset = queryset.filter(upcoming) if has_upcoming else queryset.exclude(upcoming)

    queryset = with_relation_counts(queryset.distinct()).order_by(_ordering(sort_by, sort_order), 'id')
    return queryset


def list_patients(is_active=None):
    queryset = Patient.objects.all()
    if is_active is not None:
        queryset = queryset.filter(is_active=is_active)
    return with_relation_counts(queryset).order_by('-created_at')


def get_recent_patients(limit=10):
    return list(Patient.objects.filter(is_active=True).order_by('-created_at')[:limit])


def get_patient_stats():
    now = timezone.now()
    month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    total = Patient.objects.count()
    active = Patient.objects.filter(is_active=True).count()
    return {
        'totalPatients': total,
        'activePatients': active,
        'inactivePatients': total - active,
        'newPatientsThisMonth': Patient.objects.filter(created_at__gte=month_start).count(),
        'patientsWithTreatmentPlans': Patient.objects.filter(treatment_plans__isnull=False).distinct().count(),
        'patientsWithAppointments': Patient.objects.filter(appointments__isnull=False).distinct().count(),
    }


def get_patient_record_stats(patient):
    """Relation counts plus last completed and next upcoming appointment dates."""
    last_appointment = (
        patient.appointments
        .filter(status=AppointmentStatusChoices.COMPLETED)
        .order_by('-appointment_date', '-appointment_time')
        .first()
    )
    next_appointment = (
        patient.appointments
        .filter(status__in=UPCOMING_STATUSES, appointment_date__gte=timezone.localdate())
        .order_by('appointment_date', 'appointment_time')
        .first()
    )
    return {
        'totalPhotos': patient.photos.count(),
        'totalTreatmentPlans': patient.treatment_plans.count(),
        'totalAppointments': patient.appointments.count(),
        'totalPayments': patient.payments.count(),
        'lastAppointment': last_appointment.appointment_date if last_appointment else None,
        'nextAppointment': next_appointment.appointment_date if next_appointment else None,
    }


def get_patient_summary(patient_id):
    patient = get_patient(patient_id)
    return {
        'basic_info': {
            'id': str(patient.id),
            'name': patient.full_name,
            'email': patient.email,
            'phone': patient.phone,
            'age': calculate_age(patient.date_of_birth),
            'city': patient.city,
        },
        'stats': get_patient_record_stats(patient),
        'status': {
            'is_active': patient.is_active,
            'created_at': patient.created_at,
            'updated_at': patient.updated_at,
        },
    }


def get_patient_timeline(patient_id, limit=50):
    """
    Newest-first feed of appointments, photos, clinical notes, treatment plans
    and payments for one patient.
    """
    patient = get_patient(patient_id)
    events = []

    for appointment in patient.appointments.all():
        events.append({
            'type': 'appointment',
            'id': str(appointment.id),
            'date': timezone.make_aware(
                datetime.combine(
                    appointment.appointment_date,
                    datetime.strptime(appointment.appointment_time, '%H:%M').time(),
                )
            ),
            'title': f'{appointment.get_type_display()} appointment',
            'status': appointment.status,
        })
    for photo in patient.photos.all():
        events.append({
            'type': 'photo',
            'id': str(photo.id),
            'date': photo.uploaded_at,
            'title': f'{photo.get_category_display()} photo uploaded',
            'category': photo.category,
        })
    for note in patient.clinical_notes.all():
        events.append({
            'type': 'clinical_note',
            'id': str(note.id),
            'date': note.created_at,
            'title': note.title,
            'note_type': note.note_type,
        })
    for plan in patient.treatment_plans.all():
        events.append({
            'type': 'treatment_plan',
            'id': str(plan.id),
            'date': plan.created_at,
            'title': plan.title,
            'status': plan.status,
        })
    for payment in patient.payments.all():
        events.append({
            'type': 'payment',
            'id': str(payment.id),
            'date': payment.paid_date or payment.created_at,
            'title': f'Payment of {payment.amount} {payment.currency}',
            'status': payment.status,
        })

    events.sort(key=lambda event: event['date'], reverse=True)
    return {
        'patient_id': str(patient.id),
        'events': events[:limit],
        'total_events': len(events),
    }


def get_patient_documents(patient_id):
    patient = get_patient(patient_id)
    by_category = dict(
        patient.photos.values_list('category').annotate(total=Count('id')).order_by('category')
    )
    return {
        'patient_id': str(patient.id),
        'photos': {
            'total': sum(by_category.values()),
            'by_category': by_category,
        },
    }


def get_patient_audit_log(patient_id):
    patient = get_patient(patient_id)
    queryset = ClinicalAuditLog.objects.filter(patient=patient).select_related('actor_user')
    return queryset


def export_patients(export_format='json', include_inactive=False):
    """
    Returns:
        (content: str, content_type, filename)
    """
    queryset = Patient.objects.order_by('last_name', 'first_name')
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    rows = list(queryset.values(*EXPORT_FIELDS))

    if export_format == 'csv':
        buffer = io.StringIO()
        writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS)
        writer.writeheader()
        writer.writerows(rows)
        content, content_type, filename = buffer.getvalue(), 'text/csv', 'patients-export.csv'
    else:
        content = json.dumps(
            {'export_date': timezone.now(), 'total_patients': len(rows), 'patients': rows},
            cls=DjangoJSONEncoder,
        )
        content_type, filename = 'application/json', 'patients-export.json'

    log_domain_event('patients_exported', entity_type='Patient', format=export_format, count=len(rows))
    return content, content_type, filename


# ============================================================================
# Appointments
# ============================================================================

def get_appointment(appointment_id):
    try:
        appointment = Appointment.objects.select_related('patient').filter(id=appointment_id).first()
    except DjangoValidationError:
        appointment = None
    if appointment is None:
        raise NotFoundError('Appointment not found')
    return appointment


def filter_appointments(params):
    queryset = Appointment.objects.select_related('patient')
    if params.get('patient_id'):
        queryset = queryset.filter(patient_id=params['patient_id'])
    if params.get('status'):
        queryset = queryset.filter(status=params['status'])
    if params.get('type'):
        queryset = queryset.filter(type=params['type'])
    if params.get('date_from'):
        queryset = queryset.filter(appointment_date__gte=params['date_from'])
    if params.get('date_to'):
        queryset = queryset.filter(appointment_date__lte=params['date_to'])
    return queryset.order_by('appointment_date', 'appointment_time')


@transaction.atomic
def create_appointment(data, created_by=None, request=None):
    appointment = Appointment.objects.create(created_by=created_by, **data)
    log_clinical_audit(created_by, appointment, AuditActionChoices.CREATE, request=request)
    log_domain_event(
        'appointment_created',
        entity_type='Appointment',
        entity_id=appointment.id,
        patient_id=str(appointment.patient_id),
    )
    return appointment


@transaction.atomic
def update_appointment(appointment, data, actor=None, request=None):
    before = audit_snapshot(appointment, data.keys())
    for field, value in data.items():
        setattr(appointment, field, value)
    appointment.save()
    after = audit_snapshot(appointment, data.keys())
    changed_fields = [field for field in data if before[field] != after[field]]
    if changed_fields:
        log_clinical_audit(
            actor,
            appointment,
            AuditActionChoices.UPDATE,
            changed_fields=changed_fields,
            before={field: before[field] for field in changed_fields},
            after={field: after[field] for field in changed_fields},
            request=request,
        )
    return appointment


@transaction.atomic
def delete_appointment(appointment, actor=None, request=None):
    log_clinical_audit(actor, appointment, AuditActionChoices.DELETE, request=request)
    appointment_id = appointment.id
    appointment.delete()
    log_domain_event('appointment_deleted', entity_type='Appointment', entity_id=appointment_id)

