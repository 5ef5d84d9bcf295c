"""
Treatment endpoints (/api/treatments/).

- plans: CRUD, stats, status, progress, phases, patient listing
- phases: CRUD, status
- notes: CRUD, patient listing (?noteType)

ADMIN and DOCTOR write; ASSISTANT reads.
"""
from rest_framework.views import APIView

from apps.authz.permissions import ReadAnyWriteDoctorOrAdmin
from apps.core.pagination import PagePagination
from apps.core.responses import api_response, created_response
from apps.treatments import services
from apps.treatments.serializers import (
    ClinicalNoteSerializer,
    NoteFilterSerializer,
    PhaseStatusSerializer,
    PlanFilterSerializer,
    PlanStatusSerializer,
    TreatmentPhaseSerializer,
    TreatmentPlanDetailSerializer,
    TreatmentPlanSerializer,
)


class TreatmentAPIView(APIView):
    permission_classes = [ReadAnyWriteDoctorOrAdmin]


# ============================================================================
# Plans
# ============================================================================

class PlanCreateView(TreatmentAPIView):

    def post(self, request):
        serializer = TreatmentPlanSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        plan = services.create_plan(serializer.validated_data, created_by=request.user)
        return created_response(
            data={'treatment_plan': TreatmentPlanSerializer(plan).data},
            message='Treatment plan created successfully',
        )


class PlanDetailView(TreatmentAPIView):

    def get(self, request, plan_id):
        plan, phases, appointments, payments = services.get_plan_detail(plan_id)
        serializer = TreatmentPlanDetailSerializer(
            plan,
            context={'phases': phases, 'appointments': appointments, 'payments': payments},
        )
        return api_response(
            data={'treatment_plan': serializer.data},
            message='Treatment plan retrieved successfully',
        )

    def put(self, request, plan_id):
        plan = services.get_plan(plan_id)
        serializer = TreatmentPlanSerializer(plan, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        plan = services.update_plan(plan_id, serializer.validated_data, actor=request.user)
        return api_response(
            data={'treatment_plan': TreatmentPlanSerializer(plan).data},
            message='Treatment plan updated successfully',
        )

    def delete(self, request, plan_id):
        services.delete_plan(plan_id, actor=request.user)
        return api_response(message='Treatment plan deleted successfully')


class PlanStatsView(TreatmentAPIView):

    def get(self, request):
        return api_response(
            data={'stats': services.get_treatment_stats()},
            message='Treatment statistics retrieved successfully',
        )


class PlanStatusView(TreatmentAPIView):

    def patch(self, request, plan_id):
        serializer = PlanStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        plan = services.update_plan_status(
            plan_id,
            serializer.validated_data['status'],
            actual_end_date=serializer.validated_data.get('actual_end_date'),
            actor=request.user,
        )
        return api_response(
            data={'treatment_plan': TreatmentPlanSerializer(plan).data},
            message='Treatment plan status updated successfully',
        )


class PlanProgressView(TreatmentAPIView):

    def get(self, request, plan_id):
        progress = services.calculate_progress(services.get_plan(plan_id))
        progress['phases'] = TreatmentPhaseSerializer(progress['phases'], many=True).data
        return api_response(
            data={'progress': progress},
            message='Treatment progress retrieved successfully',
        )


class PlanPhasesView(TreatmentAPIView):

    def get(self, request, plan_id):
        phases = services.list_plan_phases(plan_id)
        return api_response(
            data={'phases': TreatmentPhaseSerializer(phases, many=True).data},
            message='Treatment phases retrieved successfully',
        )


class PatientPlansView(TreatmentAPIView):

    def get(self, request, patient_id):
        filters = PlanFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        paginator = PagePagination()
        plans = paginator.paginate_queryset(
            services.list_patient_plans(patient_id, status=filters.validated_data.get('status')),
            request,
            view=self,
        )
        return paginator.get_paginated_response(
            TreatmentPlanSerializer(plans, many=True).data,
            'treatment_plans',
            message='Patient treatment plans retrieved successfully',
        )


# ============================================================================
# Phases
# ============================================================================

class PhaseCreateView(TreatmentAPIView):

    def post(self, request):
        serializer = TreatmentPhaseSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        phase = services.create_phase(serializer.validated_data, actor=request.user)
        return created_response(
            data={'phase': TreatmentPhaseSerializer(phase).data},
            message='Treatment phase created successfully',
        )


class PhaseDetailView(TreatmentAPIView):

    def get(self, request, phase_id):
        phase = services.get_phase(phase_id)
        return api_response(
            data={'phase': TreatmentPhaseSerializer(phase).data},
            message='Treatment phase retrieved successfully',
        )

    def put(self, request, phase_id):
        phase = services.get_phase(phase_id)
        serializer = TreatmentPhaseSerializer(phase, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        phase = services.update_phase(phase_id, serializer.validated_data, actor=request.user)
        return api_response(
            data={'phase': TreatmentPhaseSerializer(phase).data},
            message='Treatment phase updated successfully',
        )

    def delete(self, request, phase_id):
        services.delete_phase(phase_id, actor=request.user)
        return api_response(message='Treatment phase deleted successfully')


class PhaseStatusView(TreatmentAPIView):

    def patch(self, request, phase_id):
        serializer = PhaseStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        phase = services.update_phase_status(
            phase_id,
            serializer.validated_data['status'],
            progress=serializer.validated_data.get('progress'),
            actual_end_date=serializer.validated_data.get('actual_end_date'),
            actor=request.user,
        )
        return api_response(
            data={'phase': TreatmentPhaseSerializer(phase).data},
            message='Treatment phase status updated successfully',
        )


# ============================================================================
# Clinical notes
# ============================================================================

class NoteCreateView(TreatmentAPIView):

    def post(self, request):
        serializer = ClinicalNoteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        note = services.create_note(serializer.validated_data, created_by=request.user)
        return created_response(
            data={'clinical_note': ClinicalNoteSerializer(note).data},
            message='Clinical note created successfully',
        )


class NoteDetailView(TreatmentAPIView):

    def get(self, request, note_id):
        note = services.get_note(note_id)
        return api_response(
            data={'clinical_note': ClinicalNoteSerializer(note).data},
            message='Clinical note retrieved successfully',
        )

    def put(self, request, note_id):
        note = services.get_note(note_id)
        serializer = ClinicalNoteSerializer(note, data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        note = services.update_note(note_id, serializer.validated_data, actor=request.user)
        return api_response(
            data={'clinical_note': ClinicalNoteSerializer(note).data},
            message='Clinical note updated successfully',
        )

    def delete(self, request, note_id):
        services.delete_note(note_id, actor=request.user)
        return api_response(message='Clinical note deleted successfully')


class PatientNotesView(TreatmentAPIView):

    def get(self, request, patient_id):
        filters = NoteFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        paginator = PagePagination()
        notes = paginator.paginate_queryset(
            services.list_patient_notes(patient_id, note_type=filters.validated_data.get('noteType')),
            request,
            view=self,
        )
        return paginator.get_paginated_response(
            ClinicalNoteSerializer(notes, many=True).data,
            'clinical_notes',
            message='Clinical notes retrieved successfully',
        )
