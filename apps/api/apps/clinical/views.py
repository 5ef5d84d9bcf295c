"""
Clinical viewsets for Patient and Appointment.

Endpoints (/api/patients/):
- GET/POST /                      list (?isActive), create
- GET/PUT/PATCH/DELETE /{id}/     detail with stats, update, deactivate
- GET search/, stats/, recent/, export/, advanced-search/
- POST bulk-update/, import-from-booking/
- GET {id}/summary/, {id}/timeline/, {id}/documents/, {id}/audit-log/
- POST {id}/reactivate/

Endpoints (/api/appointments/):
- CRUD plus PATCH {id}/status/
"""
import logging

from django.http import HttpResponse
from rest_framework import serializers, viewsets
from rest_framework.decorators import action

from apps.authz.permissions import IsStaffUser, ReadAnyWriteDoctorOrAdmin
from apps.clinical import services
from apps.clinical.serializers import (
    AdvancedSearchSerializer,
    AppointmentFilterSerializer,
    AppointmentSerializer,
    AppointmentStatusSerializer,
    BulkUpdateSerializer,
    ClinicalAuditLogSerializer,
    PatientListSerializer,
    PatientSearchSerializer,
    PatientSerializer,
)
from apps.core.exceptions import BadRequestError
from apps.core.pagination import PagePagination
from apps.core.responses import api_response, created_response

logger = logging.getLogger(__name__)

UUID_REGEX = r'[0-9a-fA-F-]{36}'


class BookingImportSerializer(serializers.Serializer):
    bookingId = serializers.CharField(max_length=50)


class PatientViewSet(viewsets.GenericViewSet):
    """
    Patients.

    - ADMIN, DOCTOR: full access
    - ASSISTANT: read-only
    """
    permission_classes = [ReadAnyWriteDoctorOrAdmin]
    serializer_class = PatientSerializer
    lookup_value_regex = UUID_REGEX

    def perform_content_negotiation(self, request, force=False):
        # export/ reads ?format=json|csv itself
        return super().perform_content_negotiation(request, force=force or self.action == 'export')

    def list(self, request):
        patients = self.paginate_queryset(
            services.list_patients(is_active=services.parse_bool(request.query_params.get('isActive')))
        )
        return self.paginator.get_paginated_response(
            PatientListSerializer(patients, many=True).data,
            'patients',
            message='Patients retrieved successfully',
        )

    def create(self, request):
        serializer = PatientSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        patient = services.create_patient(serializer.validated_data, created_by=request.user, request=request)
        return created_response(
            data={'patient': PatientSerializer(patient).data},
            message='Patient created successfully',
        )

    def retrieve(self, request, pk=None):
        patient = services.get_patient(pk)
        data = PatientSerializer(patient).data
        data['stats'] = services.get_patient_record_stats(patient)
        return api_response(data={'patient': data}, message='Patient retrieved successfully')

    def update(self, request, pk=None, partial=False):
        patient = services.get_patient(pk)
        serializer = PatientSerializer(patient, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        patient = services.update_patient(pk, serializer.validated_data, actor=request.user, request=request)
        return api_response(
            data={'patient': PatientSerializer(patient).data},
            message='Patient updated successfully',
        )

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        services.deactivate_patient(pk, actor=request.user, request=request)
        return api_response(message='Patient deactivated successfully')

    @action(detail=True, methods=['post'])
    def reactivate(self, request, pk=None):
        patient = services.reactivate_patient(pk, actor=request.user, request=request)
        return api_response(
            data={'patient': PatientSerializer(patient).data},
            message='Patient reactivated successfully',
        )

    @action(detail=False, methods=['get'])
    def search(self, request):
        params = PatientSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        query = params.validated_data
        patients = self.paginate_queryset(services.search_patients(
            query=query['query'],
            sort_by=query['sortBy'],
            sort_order=query['sortOrder'],
        ))
        return self.paginator.get_paginated_response(
            PatientListSerializer(patients, many=True).data,
            'patients',
            message='Patients retrieved successfully',
        )

    @action(detail=False, methods=['get'], url_path='advanced-search')
    def advanced_search(self, request):
        params = AdvancedSearchSerializer(data=request.query_params)
        params.is_valid(raise_exception=True)
        filters = params.validated_data
        patients = self.paginate_queryset(services.advanced_search(
            filters,
            sort_by=filters['sortBy'],
            sort_order=filters['sortOrder'],
        ))
        return self.paginator.get_paginated_response(
            PatientListSerializer(patients, many=True).data,
            'patients',
            message='Advanced search completed successfully',
        )

    @action(detail=False, methods=['get'])
    def stats(self, request):
        return api_response(
            data={'stats': services.get_patient_stats()},
            message='Patient statistics retrieved successfully',
        )

    @action(detail=False, methods=['get'])
    def recent(self, request):
        limit = PagePagination(page_size=10).get_page_size(request)
        patients = services.get_recent_patients(limit)
        return api_response(
            data={'patients': PatientSerializer(patients, many=True).data},
            message='Recent patients retrieved successfully',
        )

    @action(detail=False, methods=['get'])
    def export(self, request):
        export_format = request.query_params.get('format', 'json').lower()
        if export_format not in ('json', 'csv'):
            raise BadRequestError('Export format must be json or csv')
        content, content_type, filename = services.export_patients(
            export_format,
            include_inactive=bool(services.parse_bool(request.query_params.get('includeInactive'))),
        )
        response = HttpResponse(content, content_type=content_type)
        response['Content-Disposition'] = f'attachment; filename="{filename}"'
        return response

    @action(detail=False, methods=['post'], url_path='bulk-update')
    def bulk_update(self, request):
        payload = BulkUpdateSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        update_data = PatientSerializer(data=payload.validated_data['updateData'], partial=True)
        update_data.is_valid(raise_exception=True)
        results = services.bulk_update_patients(
            payload.validated_data.get('patientIds'),
            update_data.validated_data,
            actor=request.user,
            request=request,
        )
        return api_response(
            data=results,
            message=f"Bulk update completed: {results['successful']} successful, {results['failed']} failed",
            success=results['failed'] == 0,
        )

    @action(detail=False, methods=['post'], url_path='import-from-booking')
    def import_from_booking(self, request):
        from apps.integrations.sync import LegacySyncService

        payload = BookingImportSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        result = LegacySyncService(actor=request.user).sync_booking(payload.validated_data['bookingId'])
        return created_response(
            data={
                'patient': PatientSerializer(result['patient']).data,
                'appointment': AppointmentSerializer(result['appointment']).data,
                'patient_created': result['patient_created'],
                'appointment_created': result['appointment_created'],
            },
            message='Patient imported from booking successfully',
        )

    @action(detail=True, methods=['get'])
    def summary(self, request, pk=None):
        return api_response(
            data={'summary': services.get_patient_summary(pk)},
            message='Patient summary retrieved successfully',
        )

    @action(detail=True, methods=['get'])
    def timeline(self, request, pk=None):
        limit = PagePagination(page_size=50, max_page_size=200).get_page_size(request)
        return api_response(
            data=services.get_patient_timeline(pk, limit=limit),
            message='Patient timeline retrieved successfully',
        )

    @action(detail=True, methods=['get'])
    def documents(self, request, pk=None):
        return api_response(
            data=services.get_patient_documents(pk),
            message='Patient documents retrieved successfully',
        )

    @action(detail=True, methods=['get'], url_path='audit-log')
    def audit_log(self, request, pk=None):
        entries = self.paginate_queryset(services.get_patient_audit_log(pk))
        return self.paginator.get_paginated_response(
            ClinicalAuditLogSerializer(entries, many=True).data,
            'audit_log',
            message='Patient audit log retrieved successfully',
        )


class AppointmentViewSet(viewsets.GenericViewSet):
    """
    Appointments. Every staff role may manage them.

    List filters: patient_id, status, type, date_from, date_to
    """
    permission_classes = [IsStaffUser]
    serializer_class = AppointmentSerializer
    lookup_value_regex = UUID_REGEX

    def list(self, request):
        filters = AppointmentFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        appointments = self.paginate_queryset(services.filter_appointments(filters.validated_data))
        return self.paginator.get_paginated_response(
            AppointmentSerializer(appointments, many=True).data,
            'appointments',
            message='Appointments retrieved successfully',
        )

    def create(self, request):
        serializer = AppointmentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = services.create_appointment(
            serializer.validated_data,
            created_by=request.user,
            request=request,
        )
        return created_response(
            data={'appointment': AppointmentSerializer(appointment).data},
            message='Appointment created successfully',
        )

    def retrieve(self, request, pk=None):
        appointment = services.get_appointment(pk)
        return api_response(
            data={'appointment': AppointmentSerializer(appointment).data},
            message='Appointment retrieved successfully',
        )

    def update(self, request, pk=None, partial=False):
        appointment = services.get_appointment(pk)
        serializer = AppointmentSerializer(appointment, data=request.data, partial=partial)
        serializer.is_valid(raise_exception=True)
        appointment = services.update_appointment(
            appointment,
            serializer.validated_data,
            actor=request.user,
            request=request,
        )
        return api_response(
            data={'appointment': AppointmentSerializer(appointment).data},
            message='Appointment updated successfully',
        )

    def partial_update(self, request, pk=None):
        return self.update(request, pk=pk, partial=True)

    def destroy(self, request, pk=None):
        appointment = services.get_appointment(pk)
        services.delete_appointment(appointment, actor=request.user, request=request)
        return api_response(message='Appointment deleted successfully')

    @action(detail=True, methods=['patch'], url_path='status')
    def set_status(self, request, pk=None):
        appointment = services.get_appointment(pk)
        serializer = AppointmentStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        appointment = services.update_appointment(
            appointment,
            serializer.validated_data,
            actor=request.user,
            request=request,
        )
        return api_response(
            data={'appointment': AppointmentSerializer(appointment).data},
            message='Appointment status updated successfully',
        )
