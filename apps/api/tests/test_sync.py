"""
Tests for the legacy booking sync (service, endpoints, task, command).

The MySQL repository is replaced by FakeRepository everywhere.
"""
from datetime import date, time, timedelta
from io import StringIO

import pymysql
import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from apps.clinical.models import Appointment, Patient
from apps.core.models import AppSetting
from apps.integrations import sync
from apps.integrations.legacy import check_legacy_health
from apps.integrations.sync import (
    LAST_SYNC_KEY,
    LEGACY_REFERRAL_SOURCE,
    TOTAL_SYNCED_KEY,
    LegacySyncService,
    LegacyUnavailableError,
)
from apps.integrations.tasks import sync_legacy_bookings

SYNC_URL = '/api/sync/'


class FakeRepository:
    """In-memory stand-in for LegacyBookingRepository."""

    def __init__(self, bookings=(), error=None):
        self.bookings = list(bookings)
        self.error = error

    def _check(self):
        if self.error is not None:
            raise self.error

    def ping(self):
        self._check()
        return True

    def fetch_upcoming_confirmed(self):
        self._check()
        return list(self.bookings)

    def get_booking(self, id_or_number):
        self._check()
        for booking in self.bookings:
            if str(booking['id']) == id_or_number or booking['booking_number'] == id_or_number:
                return booking
        return None

    def count_bookings(self):
        self._check()
        return len(self.bookings)


def booking(booking_id, **overrides):
    row = {
        'id': booking_id,
        'booking_number': f'BK-{booking_id}',
        'first_name': 'Ioanna',
        'last_name': 'Dimitriou',
        'email': f'booking{booking_id}@example.com',
        'phone': None,
        'appointment_date': date(2026, 11, 20),
        'appointment_time': timedelta(hours=9, minutes=30),
        'service_type': 'orthodontic',
        'status': 'confirmed',
        'notes': None,
    }
    row.update(overrides)
    return row


def unavailable():
    return FakeRepository(error=pymysql.err.OperationalError(2003, "Can't connect to MySQL server"))


@pytest.fixture
def use_repository(monkeypatch):
    """Make every LegacySyncService() built by the app use the given repository."""
    def _use(repository):
        monkeypatch.setattr(sync, 'LegacyBookingRepository', lambda: repository)
        return repository
    return _use


class TestNormalization:

    def test_time_from_mysql_timedelta(self):
        assert sync.normalize_time(timedelta(hours=9, minutes=5)) == '09:05'

    def test_time_from_strings(self):
        assert sync.normalize_time('9:30:00') == '09:30'
        assert sync.normalize_time(time(14, 0)) == '14:00'
        assert sync.normalize_time('25:00') is None

    def test_date_from_iso_string(self):
        assert sync.normalize_date('2026-11-20T00:00:00') == date(2026, 11, 20)
        assert sync.normalize_date('not a date') is None

    def test_mappings(self):
        assert sync.map_service_type('Cleaning') == 'TREATMENT'
        assert sync.map_service_type('whitening') == 'CONSULTATION'
        assert sync.map_status('cancelled') == 'CANCELLED'
        assert sync.map_status(None) == 'SCHEDULED'

    def test_validate_booking(self):
        problems = sync.validate_booking(booking(1, first_name='', appointment_time='noon'))

        assert problems == ['first_name is required', 'appointment_time must be in HH:MM format']


@pytest.mark.django_db
class TestSyncService:

    def test_sync_all_imports_and_reports(self, patient):
        repository = FakeRepository([
            booking(1),
            booking(2, email='MARIA@example.com'),
            booking(3, first_name=None),
        ])

        result = LegacySyncService(repository).sync_all()

        assert result.success is False
        assert result.total_bookings == 3
        assert result.new_patients == 1
        assert result.new_appointments == 2
        assert result.updated_appointments == 0
        assert result.errors == ['Failed to sync booking BK-3: first_name is required']

        created = Patient.objects.get(email='booking1@example.com')
        assert created.referral_source == LEGACY_REFERRAL_SOURCE
        assert created.phone == ''
        appointment = Appointment.objects.get(booking_number='BK-2')
        assert appointment.patient == patient
        assert appointment.appointment_time == '09:30'
        assert appointment.type == 'TREATMENT'
        assert appointment.status == 'CONFIRMED'
        assert appointment.legacy_booking_id == '2'

        assert AppSetting.get_value(TOTAL_SYNCED_KEY) == '2'
        assert AppSetting.get_value(LAST_SYNC_KEY)

    def test_matches_patient_by_phone(self, patient):
        repository = FakeRepository([booking(4, email=None, phone='691234567')])

        result = LegacySyncService(repository).sync_all()

        assert result.success is True
        assert result.new_patients == 0
        assert Appointment.objects.get(booking_number='BK-4').patient == patient

    def test_second_run_updates_changed_bookings(self):
        repository = FakeRepository([booking(1), booking(2)])
        service = LegacySyncService(repository)
        service.sync_all()

        repository.bookings[0] = booking(1, appointment_time=timedelta(hours=11))
        result = service.sync_all()

        assert result.new_patients == 0
        assert result.new_appointments == 0
        assert result.updated_appointments == 1
        assert Appointment.objects.count() == 2
        assert Appointment.objects.get(booking_number='BK-1').appointment_time == '11:00'

    def test_unreachable_legacy_database(self):
        with pytest.raises(LegacyUnavailableError):
            LegacySyncService(unavailable()).sync_all()

    def test_sync_booking_by_number(self):
        service = LegacySyncService(FakeRepository([booking(7)]))

        outcome = service.sync_booking('BK-7')

        assert outcome['patient_created'] is True
        assert outcome['appointment_created'] is True
        assert outcome['appointment'].booking_number == 'BK-7'

    def test_sync_booking_errors(self):
        service = LegacySyncService(FakeRepository([booking(8, appointment_date=None)]))

        with pytest.raises(sync.NotFoundError):
            service.sync_booking('BK-999')
        with pytest.raises(sync.BadRequestError) as excinfo:
            service.sync_booking('8')
        assert excinfo.value.message == 'Invalid booking data'

    def test_stats_and_conflicts(self):
        repository = FakeRepository([booking(1), booking(2), booking(3)])
        service = LegacySyncService(repository)
        service.sync_booking('1')

        stats = service.get_sync_stats()
        assert stats['total_synced'] == 1
        assert stats['pending_sync'] == 2
        assert stats['last_sync_at'] is None

        conflicts = service.check_conflicts()
        assert conflicts['total_conflicts'] == 2
        assert [row['booking_number'] for row in conflicts['missing_appointments']] == ['BK-2', 'BK-3']

    def test_connection(self):
        assert LegacySyncService(FakeRepository()).test_connection()['success'] is True

        result = LegacySyncService(unavailable()).test_connection()
        assert result['success'] is False
        assert result['message'].startswith('Connection failed:')


@pytest.mark.django_db
class TestSyncEndpoints:

    def test_run(self, admin_client, use_repository):
        use_repository(FakeRepository([booking(1)]))

        response = admin_client.post(f'{SYNC_URL}run/')

        assert response.status_code == 200
        body = response.json()
        assert body['success'] is True
        assert body['data']['result']['new_appointments'] == 1

    def test_run_records_acting_admin(self, admin_client, admin_user, use_repository):
        use_repository(FakeRepository([booking(1)]))

        admin_client.post(f'{SYNC_URL}run/')

        appointment = Appointment.objects.get(booking_number='BK-1')
        assert appointment.created_by == admin_user
        assert appointment.patient.created_by == admin_user

    def test_run_with_errors(self, admin_client, use_repository):
        use_repository(FakeRepository([booking(1, last_name='')]))

        response = admin_client.post(f'{SYNC_URL}run/')

        body = response.json()
        assert body['success'] is False
        assert body['message'] == 'Booking sync completed with 1 errors'

    def test_run_legacy_down(self, admin_client, use_repository):
        use_repository(unavailable())

        response = admin_client.post(f'{SYNC_URL}run/')

        assert response.status_code == 503
        assert response.json()['code'] == 'LEGACY_UNAVAILABLE'

    def test_doctor_forbidden(self, doctor_client):
        assert doctor_client.post(f'{SYNC_URL}run/').status_code == 403

    def test_stats_and_conflicts(self, admin_client, use_repository):
        use_repository(FakeRepository([booking(1)]))

        stats = admin_client.get(f'{SYNC_URL}stats/').json()['data']['stats']
        assert stats['pending_sync'] == 1

        conflicts = admin_client.get(f'{SYNC_URL}conflicts/').json()['data']
        assert conflicts['total_conflicts'] == 1

    def test_sync_single_booking(self, admin_client, use_repository):
        use_repository(FakeRepository([booking(5)]))

        response = admin_client.post(f'{SYNC_URL}bookings/BK-5/')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['appointment']['booking_number'] == 'BK-5'
        assert data['patient_created'] is True

    def test_sync_unknown_booking(self, admin_client, use_repository):
        use_repository(FakeRepository())

        response = admin_client.post(f'{SYNC_URL}bookings/404/')

        assert response.status_code == 404
        assert response.json()['message'] == 'Booking not found in legacy system'

    def test_connection_endpoint(self, admin_client, use_repository):
        use_repository(unavailable())

        response = admin_client.get(f'{SYNC_URL}test-connection/')

        assert response.status_code == 200
        assert response.json()['success'] is False

    def test_import_from_booking(self, doctor_client, doctor_user, use_repository):
        use_repository(FakeRepository([booking(6)]))

        response = doctor_client.post('/api/patients/import-from-booking/', {'bookingId': 'BK-6'}, format='json')

        assert response.status_code == 201
        data = response.json()['data']
        assert data['patient']['email'] == 'booking6@example.com'
        assert data['appointment_created'] is True
        assert Patient.objects.get(email='booking6@example.com').created_by == doctor_user


@pytest.mark.django_db
class TestScheduledSync:

    def test_task_returns_result(self, use_repository):
        use_repository(FakeRepository([booking(1), booking(2)]))

        result = sync_legacy_bookings()

        assert result['total_bookings'] == 2
        assert result['errors'] == []
        assert not Appointment.objects.filter(created_by__isnull=False).exists()

    def test_task_raises_when_unavailable(self, use_repository):
        use_repository(unavailable())

        with pytest.raises(LegacyUnavailableError):
            sync_legacy_bookings()

    def test_command(self, use_repository):
        use_repository(FakeRepository([booking(1), booking(2, first_name='')]))
        out = StringIO()

        call_command('sync_legacy_bookings', stdout=out)

        output = out.getvalue()
        assert 'Bookings: 2, new patients: 1, new appointments: 1, updated: 0' in output
        assert 'Failed to sync booking BK-2' in output

    def test_command_single_booking(self, use_repository):
        use_repository(FakeRepository([booking(3)]))
        out = StringIO()

        call_command('sync_legacy_bookings', booking='3', stdout=out)

        assert 'Booking BK-3 synced' in out.getvalue()

    def test_command_fails_when_unavailable(self, use_repository):
        use_repository(unavailable())

        with pytest.raises(CommandError):
            call_command('sync_legacy_bookings', stdout=StringIO())


class TestLegacyHealth:

    def test_not_configured(self):
        assert check_legacy_health() == {'status': 'not_configured'}

    def test_unreachable(self):
        result = check_legacy_health(unavailable())

        assert result['status'] == 'unhealthy'

    def test_healthy(self):
        assert check_legacy_health(FakeRepository())['status'] == 'healthy'
