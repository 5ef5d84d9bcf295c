"""
Treatment URLs (/api/treatments/).
"""
from django.urls import path

from . import views

urlpatterns = [
    # Plans
    path('plans/', views.PlanCreateView.as_view(), name='treatment-plan-create'),
    path('plans/stats/', views.PlanStatsView.as_view(), name='treatment-plan-stats'),
    path('plans/patient/<uuid:patient_id>/', views.PatientPlansView.as_view(), name='treatment-plans-by-patient'),
    path('plans/<uuid:plan_id>/', views.PlanDetailView.as_view(), name='treatment-plan-detail'),
    path('plans/<uuid:plan_id>/status/', views.PlanStatusView.as_view(), name='treatment-plan-status'),
    path('plans/<uuid:plan_id>/progress/', views.PlanProgressView.as_view(), name='treatment-plan-progress'),
    path('plans/<uuid:plan_id>/phases/', views.PlanPhasesView.as_view(), name='treatment-plan-phases'),

    # Phases
    path('phases/', views.PhaseCreateView.as_view(), name='treatment-phase-create'),
    path('phases/<uuid:phase_id>/', views.PhaseDetailView.as_view(), name='treatment-phase-detail'),
    path('phases/<uuid:phase_id>/status/', views.PhaseStatusView.as_view(), name='treatment-phase-status'),

    # Clinical notes
    path('notes/', views.NoteCreateView.as_view(), name='clinical-note-create'),
    path('notes/patient/<uuid:patient_id>/', views.PatientNotesView.as_view(), name='clinical-notes-by-patient'),
    path('notes/<uuid:note_id>/', views.NoteDetailView.as_view(), name='clinical-note-detail'),
]
