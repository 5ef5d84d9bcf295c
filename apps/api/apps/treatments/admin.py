from django.contrib import admin

from .models import ClinicalNote, TreatmentPhase, TreatmentPlan


class TreatmentPhaseInline(admin.TabularInline):
    model = TreatmentPhase
    extra = 0
    fields = ['phase_number', 'title', 'status', 'progress', 'start_date', 'estimated_end_date']
    ordering = ['phase_number']


@admin.register(TreatmentPlan)
class TreatmentPlanAdmin(admin.ModelAdmin):
    list_display = ['title', 'patient', 'status', 'complexity', 'start_date', 'estimated_end_date', 'total_cost']
    list_filter = ['status', 'complexity']
    search_fields = ['title', 'diagnosis', 'patient__first_name', 'patient__last_name']
    readonly_fields = ['id', 'created_by', 'created_at', 'updated_at']
    raw_id_fields = ['patient']
    inlines = [TreatmentPhaseInline]


@admin.register(TreatmentPhase)
class TreatmentPhaseAdmin(admin.ModelAdmin):
    list_display = ['treatment_plan', 'phase_number', 'title', 'status', 'progress']
    list_filter = ['status']
    raw_id_fields = ['treatment_plan', 'patient']


@admin.register(ClinicalNote)
class ClinicalNoteAdmin(admin.ModelAdmin):
    list_display = ['title', 'patient', 'note_type', 'created_by', 'created_at']
    list_filter = ['note_type']
    search_fields = ['title', 'content', 'patient__first_name', 'patient__last_name']
    readonly_fields = ['id', 'created_by', 'created_at', 'updated_at']
    raw_id_fields = ['patient', 'treatment_plan', 'treatment_phase']
