"""
Treatment models: treatment_plan, treatment_phase, clinical_note
"""
import uuid
from decimal import Decimal

from django.conf import settings
from django.core.validators import MaxValueValidator, MinValueValidator
from django.db import models


class ComplexityChoices(models.TextChoices):
    SIMPLE = 'SIMPLE', 'Simple'
    MODERATE = 'MODERATE', 'Moderate'
    COMPLEX = 'COMPLEX', 'Complex'
    SEVERE = 'SEVERE', 'Severe'


class TreatmentPlanStatusChoices(models.TextChoices):
    PLANNING = 'PLANNING', 'Planning'
    ACTIVE = 'ACTIVE', 'Active'
    ON_HOLD = 'ON_HOLD', 'On Hold'
    COMPLETED = 'COMPLETED', 'Completed'
    CANCELLED = 'CANCELLED', 'Cancelled'


class PhaseStatusChoices(models.TextChoices):
    PLANNED = 'PLANNED', 'Planned'
    ACTIVE = 'ACTIVE', 'Active'
    COMPLETED = 'COMPLETED', 'Completed'
    PAUSED = 'PAUSED', 'Paused'
    CANCELLED = 'CANCELLED', 'Cancelled'


class NoteTypeChoices(models.TextChoices):
    CONSULTATION = 'CONSULTATION', 'Consultation'
    EXAMINATION = 'EXAMINATION', 'Examination'
    TREATMENT = 'TREATMENT', 'Treatment'
    FOLLOW_UP = 'FOLLOW_UP', 'Follow Up'
    EMERGENCY = 'EMERGENCY', 'Emergency'
    GENERAL = 'GENERAL', 'General'


class TreatmentPlan(models.Model):
    """
    Orthodontic treatment plan for a patient.

    - estimated_duration: months
    - treatment_goals, appliances_used: lists of strings
    - initial_assessment, treatment_options, materials_list, payment_plan: JSON
    - Deleting a plan deletes its phases and notes.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.CASCADE,
        related_name='treatment_plans'
    )

    title = models.CharField(max_length=200)
    description = models.CharField(max_length=1000, blank=True, null=True)
    diagnosis = models.CharField(max_length=500, blank=True, null=True)
    treatment_goals = models.JSONField(default=list, blank=True)
    estimated_duration = models.PositiveIntegerField(blank=True, null=True)
    complexity = models.CharField(
        max_length=10,
        choices=ComplexityChoices.choices,
        default=ComplexityChoices.MODERATE
    )

    initial_assessment = models.JSONField(blank=True, null=True)
    treatment_options = models.JSONField(blank=True, null=True)
    selected_option = models.CharField(max_length=200, blank=True, null=True)
    appliances_used = models.JSONField(default=list, blank=True)
    materials_list = models.JSONField(blank=True, null=True)

    start_date = models.DateField(blank=True, null=True)
    estimated_end_date = models.DateField(blank=True, null=True)
    actual_end_date = models.DateField(blank=True, null=True)

    total_cost = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        blank=True,
        null=True,
        validators=[MinValueValidator(Decimal('0.01'))]
    )
    payment_plan = models.JSONField(blank=True, null=True)

    status = models.CharField(
        max_length=20,
        choices=TreatmentPlanStatusChoices.choices,
        default=TreatmentPlanStatusChoices.PLANNING
    )
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='created_treatment_plans'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'treatment_plan'
        verbose_name = 'Treatment Plan'
        verbose_name_plural = 'Treatment Plans'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['patient'], name='idx_plan_patient'),
            models.Index(fields=['status'], name='idx_plan_status'),
        ]

    def __str__(self):
        return f"{self.title} ({self.patient})"


class TreatmentPhase(models.Model):
    """Ordered stage of a plan; progress is a 0..100 percentage."""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    treatment_plan = models.ForeignKey(
        'TreatmentPlan',
        on_delete=models.CASCADE,
        related_name='phases'
    )
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.CASCADE,
        related_name='treatment_phases'
    )

    phase_number = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    title = models.CharField(max_length=200)
    description = models.CharField(max_length=1000, blank=True, null=True)
    objectives = models.JSONField(default=list, blank=True)
    appliances = models.JSONField(blank=True, null=True)
    instructions = models.TextField(blank=True, null=True)

    start_date = models.DateField(blank=True, null=True)
    estimated_end_date = models.DateField(blank=True, null=True)
    actual_end_date = models.DateField(blank=True, null=True)

    status = models.CharField(
        max_length=20,
        choices=PhaseStatusChoices.choices,
        default=PhaseStatusChoices.PLANNED
    )
    progress = models.PositiveSmallIntegerField(
        default=0,
        validators=[MinValueValidator(0), MaxValueValidator(100)]
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'treatment_phase'
        verbose_name = 'Treatment Phase'
        verbose_name_plural = 'Treatment Phases'
        ordering = ['phase_number']
        indexes = [
            models.Index(fields=['treatment_plan', 'phase_number'], name='idx_phase_plan_number'),
            models.Index(fields=['status'], name='idx_phase_status'),
        ]

    def __str__(self):
        return f"Phase {self.phase_number}: {self.title}"


class ClinicalNote(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.CASCADE,
        related_name='clinical_notes'
    )
    treatment_plan = models.ForeignKey(
        'TreatmentPlan',
        on_delete=models.CASCADE,
        blank=True,
        null=True,
        related_name='clinical_notes'
    )
    treatment_phase = models.ForeignKey(
        'TreatmentPhase',
        on_delete=models.CASCADE,
        blank=True,
        null=True,
        related_name='clinical_notes'
    )

    title = models.CharField(max_length=200)
    content = models.TextField(max_length=5000)
    note_type = models.CharField(
        max_length=20,
        choices=NoteTypeChoices.choices,
        default=NoteTypeChoices.GENERAL
    )
    tags = models.JSONField(default=list, blank=True)
    observations = models.TextField(blank=True, null=True)
    recommendations = models.TextField(blank=True, null=True)
    next_steps = models.TextField(blank=True, null=True)

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='clinical_notes'
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'clinical_note'
        verbose_name = 'Clinical Note'
        verbose_name_plural = 'Clinical Notes'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['patient', 'created_at'], name='idx_note_patient_created'),
            models.Index(fields=['note_type'], name='idx_note_type'),
        ]

    def __str__(self):
        return self.title
