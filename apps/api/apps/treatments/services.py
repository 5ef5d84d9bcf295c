"""
Treatment plan, phase and clinical note operations.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.utils import timezone

from apps.clinical.services import get_patient
from apps.core.dates import add_months
from apps.core.exceptions import NotFoundError
from apps.core.observability import log_domain_event
from apps.treatments.models import (
    ClinicalNote,
    PhaseStatusChoices,
    TreatmentPhase,
    TreatmentPlan,
    TreatmentPlanStatusChoices,
)

logger = logging.getLogger(__name__)

DEFAULT_PLAN_DURATION_MONTHS = 12
RECENT_RELATED_LIMIT = 5


def _get_or_404(queryset, object_id, message):
    try:
        instance = queryset.filter(id=object_id).first()
    except DjangoValidationError:
        instance = None
    if instance is None:
        raise NotFoundError(message)
    return instance


def _apply(instance, data):
    for field, value in data.items():
        setattr(instance, field, value)
    instance.save()
    return instance


# ============================================================================
# Plans
# ============================================================================

def get_plan(plan_id):
    return _get_or_404(
        TreatmentPlan.objects.select_related('patient', 'created_by'),
        plan_id,
        'Treatment plan not found',
    )


def get_plan_detail(plan_id):
    """
    Plan with phases (by phase_number), its 5 latest appointments and payments.

    Returns:
        (plan, phases, appointments, payments)
    """
    plan = get_plan(plan_id)
    phases = list(plan.phases.order_by('phase_number'))
    appointments = list(
        plan.appointments.order_by('-appointment_date', '-appointment_time')[:RECENT_RELATED_LIMIT]
    )
    payments = list(plan.payments.order_by('-created_at')[:RECENT_RELATED_LIMIT])
    return plan, phases, appointments, payments


@transaction.atomic
def create_plan(data, created_by=None):
    plan = TreatmentPlan.objects.create(created_by=created_by, **data)
    log_domain_event(
        'treatment_plan_created',
        entity_type='TreatmentPlan',
        entity_id=plan.id,
        patient_id=str(plan.patient_id),
        created_by=str(created_by.id) if created_by else None,
    )
    return plan


def update_plan(plan_id, data, actor=None):
    plan = _apply(get_plan(plan_id), data)
    log_domain_event(
        'treatment_plan_updated',
        entity_type='TreatmentPlan',
        entity_id=plan.id,
        updated_fields=list(data),
        updated_by=str(actor.id) if actor else None,
    )
    return plan


def update_plan_status(plan_id, status, actual_end_date=None, actor=None):
    plan = get_plan(plan_id)
    plan.status = status
    if actual_end_date:
        plan.actual_end_date = actual_end_date
    plan.save()
    log_domain_event(
        'treatment_plan_status_updated',
        entity_type='TreatmentPlan',
        entity_id=plan.id,
        new_status=status,
        updated_by=str(actor.id) if actor else None,
    )
    return plan


def delete_plan(plan_id, actor=None):
    """Phases and clinical notes go with the plan (CASCADE)."""
    plan = get_plan(plan_id)
    plan.delete()
    log_domain_event(
        'treatment_plan_deleted',
        entity_type='TreatmentPlan',
        entity_id=plan_id,
        deleted_by=str(actor.id) if actor else None,
    )


def list_patient_plans(patient_id, status=None):
    patient = get_patient(patient_id)
    queryset = patient.treatment_plans.select_related('created_by')
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by('-created_at')


def calculate_progress(plan, now=None):
    """
    Completed phases over all phases, plus a projected completion date.

    estimatedCompletion is only projected for plans with an estimated_end_date:
    the remaining share of estimated_duration (default 12 months), in whole
    months from now.
    """
    phases = list(plan.phases.order_by('phase_number'))
    total = len(phases)
    completed = sum(1 for phase in phases if phase.status == PhaseStatusChoices.COMPLETED)
    overall = int((Decimal(completed * 100) / total).quantize(Decimal(1), ROUND_HALF_UP)) if total else 0

    estimated_completion = None
    if plan.estimated_end_date:
        duration = plan.estimated_duration or DEFAULT_PLAN_DURATION_MONTHS
        remaining = duration * (1 - overall / 100)
        if remaining > 0:
            estimated_completion = add_months(now or timezone.now(), int(remaining))

    return {
        'treatmentPlanId': str(plan.id),
        'overallProgress': overall,
        'totalPhases': total,
        'completedPhases': completed,
        'activePhases': sum(1 for phase in phases if phase.status == PhaseStatusChoices.ACTIVE),
        'estimatedCompletion': estimated_completion,
        'phases': phases,
        'status': plan.status,
        'startDate': plan.start_date,
        'estimatedEndDate': plan.estimated_end_date,
        'actualEndDate': plan.actual_end_date,
    }


def get_treatment_stats():
    plans = TreatmentPlan.objects
    phases = TreatmentPhase.objects
    return {
        'treatmentPlans': {
            'total': plans.count(),
            'active': plans.filter(status=TreatmentPlanStatusChoices.ACTIVE).count(),
            'completed': plans.filter(status=TreatmentPlanStatusChoices.COMPLETED).count(),
            'planning': plans.filter(status=TreatmentPlanStatusChoices.PLANNING).count(),
        },
        'treatmentPhases': {
            'total': phases.count(),
            'active': phases.filter(status=PhaseStatusChoices.ACTIVE).count(),
            'completed': phases.filter(status=PhaseStatusChoices.COMPLETED).count(),
        },
        'clinicalNotes': {
            'total': ClinicalNote.objects.count(),
        },
    }


# ============================================================================
# Phases
# ============================================================================

def get_phase(phase_id):
    return _get_or_404(
        TreatmentPhase.objects.select_related('treatment_plan', 'patient'),
        phase_id,
        'Treatment phase not found',
    )


def list_plan_phases(plan_id):
    return list(get_plan(plan_id).phases.order_by('phase_number'))


def create_phase(data, actor=None):
    phase = TreatmentPhase.objects.create(**data)
    log_domain_event(
        'treatment_phase_created',
        entity_type='TreatmentPhase',
        entity_id=phase.id,
        treatment_plan_id=str(phase.treatment_plan_id),
        phase_number=phase.phase_number,
        created_by=str(actor.id) if actor else None,
    )
    return phase


def update_phase(phase_id, data, actor=None):
    phase = _apply(get_phase(phase_id), data)
    log_domain_event(
        'treatment_phase_updated',
        entity_type='TreatmentPhase',
        entity_id=phase.id,
        updated_fields=list(data),
    )
    return phase


def update_phase_status(phase_id, status, progress=None, actual_end_date=None, actor=None):
    phase = get_phase(phase_id)
    phase.status = status
    if progress is not None:
        phase.progress = progress
    if actual_end_date:
        phase.actual_end_date = actual_end_date
    phase.save()
    log_domain_event(
        'treatment_phase_status_updated',
        entity_type='TreatmentPhase',
        entity_id=phase.id,
        new_status=status,
        progress=phase.progress,
        updated_by=str(actor.id) if actor else None,
    )
    return phase


def delete_phase(phase_id, actor=None):
    get_phase(phase_id).delete()
    log_domain_event(
        'treatment_phase_deleted',
        entity_type='TreatmentPhase',
        entity_id=phase_id,
        deleted_by=str(actor.id) if actor else None,
    )


# ============================================================================
# Clinical notes
# ============================================================================

def get_note(note_id):
    return _get_or_404(ClinicalNote.objects.all(), note_id, 'Clinical note not found')


def create_note(data, created_by=None):
    note = ClinicalNote.objects.create(created_by=created_by, **data)
    log_domain_event(
        'clinical_note_created',
        entity_type='ClinicalNote',
        entity_id=note.id,
        patient_id=str(note.patient_id),
        note_type=note.note_type,
    )
    return note


def update_note(note_id, data, actor=None):
    note = _apply(get_note(note_id), data)
    log_domain_event(
        'clinical_note_updated',
        entity_type='ClinicalNote',
        entity_id=note.id,
        updated_fields=list(data),
    )
    return note


def delete_note(note_id, actor=None):
    get_note(note_id).delete()
    log_domain_event(
        'clinical_note_deleted',
        entity_type='ClinicalNote',
        entity_id=note_id,
        deleted_by=str(actor.id) if actor else None,
    )


def list_patient_notes(patient_id, note_type=None):
    patient = get_patient(patient_id)
    queryset = patient.clinical_notes.select_related('created_by', 'treatment_plan', 'treatment_phase')
    if note_type:
        queryset = queryset.filter(note_type=note_type)
    return queryset.order_by('-created_at')
