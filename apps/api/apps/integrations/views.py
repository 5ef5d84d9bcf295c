"""
Legacy booking sync endpoints. Admin only.
"""
from rest_framework.views import APIView

from apps.authz.permissions import IsAdmin
from apps.clinical.serializers import AppointmentSerializer, PatientSerializer
from apps.core.responses import api_response

from .sync import LegacySyncService


class SyncAPIView(APIView):
    permission_classes = [IsAdmin]

    def get_service(self):
        return LegacySyncService(actor=self.request.user)


class SyncRunView(SyncAPIView):

    def post(self, request):
        result = self.get_service().sync_all()
        if result.success:
            message = 'Booking sync completed successfully'
        else:
            message = f'Booking sync completed with {len(result.errors)} errors'
        return api_response(data={'result': result.as_dict()}, message=message, success=result.success)


class SyncStatsView(SyncAPIView):

    def get(self, request):
        return api_response(
            data={'stats': self.get_service().get_sync_stats()},
            message='Sync statistics retrieved successfully',
        )


class SyncConflictsView(SyncAPIView):

    def get(self, request):
        return api_response(
            data=self.get_service().check_conflicts(),
            message='Sync conflicts retrieved successfully',
        )


class SyncBookingView(SyncAPIView):

    def post(self, request, booking_id):
        outcome = self.get_service().sync_booking(booking_id)
        return api_response(
            data={
                'patient': PatientSerializer(outcome['patient']).data,
                'appointment': AppointmentSerializer(outcome['appointment']).data,
                'patient_created': outcome['patient_created'],
                'appointment_created': outcome['appointment_created'],
            },
            message='Booking synced successfully',
        )


class TestConnectionView(SyncAPIView):

    def get(self, request):
        result = self.get_service().test_connection()
        return api_response(data=result, message=result['message'], success=result['success'])

    post = get
