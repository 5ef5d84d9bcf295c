"""
Legacy booking sync: imports upcoming confirmed bookings from the legacy
MySQL system as patients and appointments.
"""
import logging
import re
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta

import pymysql
from django.db import transaction
from django.db.models import Q
from django.utils import timezone
from rest_framework import status

from apps.clinical.models import (
    Appointment,
    AppointmentStatusChoices,
    AppointmentTypeChoices,
    Patient,
)
from apps.core.exceptions import AppError, BadRequestError, NotFoundError
from apps.core.models import AppSetting
from apps.core.observability import log_domain_event

from .legacy import LegacyBookingRepository

logger = logging.getLogger(__name__)

LEGACY_REFERRAL_SOURCE = 'Legacy Booking System'
LAST_SYNC_KEY = 'last_booking_sync'
TOTAL_SYNCED_KEY = 'total_synced_bookings'

LEGACY_TIME_REGEX = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')

SERVICE_TYPE_MAP = {
    'consultation': AppointmentTypeChoices.CONSULTATION,
    'cleaning': AppointmentTypeChoices.TREATMENT,
    'filling': AppointmentTypeChoices.TREATMENT,
    'orthodontic': AppointmentTypeChoices.TREATMENT,
    'emergency': AppointmentTypeChoices.EMERGENCY,
}

STATUS_MAP = {
    'confirmed': AppointmentStatusChoices.CONFIRMED,
    'cancelled': AppointmentStatusChoices.CANCELLED,
    'completed': AppointmentStatusChoices.COMPLETED,
}


class LegacyUnavailableError(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'LEGACY_UNAVAILABLE'
    default_message = 'Legacy booking system is unavailable'


@dataclass
class SyncResult:
    success: bool = True
    total_bookings: int = 0
    new_patients: int = 0
    new_appointments: int = 0
    updated_appointments: int = 0
    errors: list = field(default_factory=list)

    def as_dict(self):
        return asdict(self)


def map_service_type(service_type):
    return SERVICE_TYPE_MAP.get((service_type or '').lower(), AppointmentTypeChoices.CONSULTATION)


def map_status(legacy_status):
    return STATUS_MAP.get((legacy_status or '').lower(), AppointmentStatusChoices.SCHEDULED)


def normalize_date(value):
    """MySQL DATE columns come back as date; tolerate ISO strings too."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def normalize_time(value):
    """MySQL TIME columns come back as timedelta. Returns HH:MM or None."""
    if isinstance(value, timedelta):
        minutes = int(value.total_seconds()) // 60
        return f'{minutes // 60:02d}:{minutes % 60:02d}'
    if isinstance(value, time):
        return value.strftime('%H:%M')
    if isinstance(value, str):
        candidate = value.strip()[:5].rstrip(':')
        if LEGACY_TIME_REGEX.match(candidate):
            hours, minutes = candidate.split(':')
            return f'{int(hours):02d}:{minutes}'
    return None


def validate_booking(booking):
    """Returns a list of problems; empty when the booking can be imported."""
    problems = []
    for key in ('booking_number', 'first_name', 'last_name'):
        if not booking.get(key):
            problems.append(f'{key} is required')
    if normalize_date(booking.get('appointment_date')) is None:
        problems.append('appointment_date is invalid')
    if normalize_time(booking.get('appointment_time')) is None:
        problems.append('appointment_time must be in HH:MM format')
    return problems


class LegacySyncService:
    """
    Sync bookings from the legacy system.

    The repository is injectable so tests can feed bookings without MySQL.
    """

    def __init__(self, repository=None, actor=None):
        self.repository = repository or LegacyBookingRepository()
        self.actor = actor

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def find_or_create_patient(self, booking):
        email = (booking.get('email') or '').strip().lower() or None
        phone = (booking.get('phone') or '').strip() or None

        patient = None
        if email:
            patient = Patient.objects.filter(email__iexact=email).first()
        if patient is None and phone:
            patient = Patient.objects.filter(phone=phone).first()
        if patient is not None:
            return patient, False

        patient = Patient.objects.create(
            first_name=booking.get('first_name') or 'Unknown',
            last_name=booking.get('last_name') or 'Patient',
            email=email,
            phone=phone or '',
            referral_source=LEGACY_REFERRAL_SOURCE,
            created_by=self.actor,
        )
        log_domain_event('patient_created', entity_type='Patient', entity_id=patient.id, source='legacy_sync')
        return patient, True

    def find_or_create_appointment(self, booking, patient):
        """Returns (appointment, created, updated)."""
        legacy_id = str(booking['id'])
        booking_number = booking.get('booking_number')
        appointment_date = normalize_date(booking.get('appointment_date'))
        appointment_time = normalize_time(booking.get('appointment_time'))
        mapped_status = map_status(booking.get('status'))

        existing = Appointment.objects.filter(
            Q(legacy_booking_id=legacy_id) | Q(booking_number=booking_number)
        ).first()

        if existing is not None:
            changed = (
                existing.appointment_date != appointment_date
                or existing.appointment_time != appointment_time
                or existing.status != mapped_status
            )
            if changed:
                existing.appointment_date = appointment_date
                existing.appointment_time = appointment_time
                existing.status = mapped_status
                existing.notes = booking.get('notes')
                existing.save(update_fields=[
                    'appointment_date', 'appointment_time', 'status', 'notes', 'updated_at',
                ])
            return existing, False, changed

        appointment = Appointment.objects.create(
            patient=patient,
            appointment_date=appointment_date,
            appointment_time=appointment_time,
            type=map_service_type(booking.get('service_type')),
            status=mapped_status,
            notes=booking.get('notes'),
            legacy_booking_id=legacy_id,
            booking_number=booking_number,
            created_by=self.actor,
        )
        return appointment, True, False

    @transaction.atomic
    def import_booking(self, booking):
        patient, patient_created = self.find_or_create_patient(booking)
        appointment, created, updated = self.find_or_create_appointment(booking, patient)
        return {
            'patient': patient,
            'appointment': appointment,
            'patient_created': patient_created,
            'appointment_created': created,
            'appointment_updated': updated,
        }

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _fetch(self, call, *args):
        try:
            return call(*args)
        except pymysql.MySQLError as e:
            logger.error(
                'Legacy booking system query failed',
                extra={'event': 'legacy_query_failed', 'error': str(e)},
            )
            raise LegacyUnavailableError(f'Legacy booking system is unavailable: {e}') from e

    def sync_all(self):
        result = SyncResult()
        bookings = self._fetch(self.repository.fetch_upcoming_confirmed)
        result.total_bookings = len(bookings)

        for booking in bookings:
            booking_number = booking.get('booking_number')
            problems = validate_booking(booking)
            if problems:
                result.errors.append(f"Failed to sync booking {booking_number}: {'; '.join(problems)}")
                continue
            try:
                outcome = self.import_booking(booking)
            except AppError as e:
                result.errors.append(f'Failed to sync booking {booking_number}: {e.message}')
                continue
            except Exception as e:
                logger.exception(
                    'Booking sync failed',
                    extra={'event': 'legacy_booking_sync_failed', 'booking_number': booking_number},
                )
                result.errors.append(f'Failed to sync booking {booking_number}: {e}')
                continue
            result.new_patients += int(outcome['patient_created'])
            result.new_appointments += int(outcome['appointment_created'])
            result.updated_appointments += int(outcome['appointment_updated'])

        result.success = not result.errors
        AppSetting.set_value(LAST_SYNC_KEY, timezone.now().isoformat(), 'Last legacy booking sync')
        AppSetting.set_value(
            TOTAL_SYNCED_KEY,
            result.total_bookings - len(result.errors),
            'Bookings synced in the last run',
        )
        log_domain_event(
            'legacy_sync_completed',
            result='success' if result.success else 'partial',
            total_bookings=result.total_bookings,
            new_patients=result.new_patients,
            new_appointments=result.new_appointments,
            updated_appointments=result.updated_appointments,
            error_count=len(result.errors),
        )
        return result

    def sync_booking(self, id_or_number):
        booking = self._fetch(self.repository.get_booking, str(id_or_number))
        if not booking:
            raise NotFoundError('Booking not found in legacy system')
        problems = validate_booking(booking)
        if problems:
            raise BadRequestError('Invalid booking data', details=[
                {'field': 'booking', 'message': problem, 'code': 'invalid'} for problem in problems
            ])
        outcome = self.import_booking(booking)
        log_domain_event(
            'legacy_booking_imported',
            entity_type='Appointment',
            entity_id=outcome['appointment'].id,
            booking_number=booking.get('booking_number'),
            patient_created=outcome['patient_created'],
        )
        return outcome

    def synced_appointments(self):
        return Appointment.objects.filter(
            Q(legacy_booking_id__isnull=False) | Q(booking_number__isnull=False)
        )

    def get_sync_stats(self):
        total_synced = self.synced_appointments().count()
        legacy_count = self._fetch(self.repository.count_bookings)
        return {
            'last_sync_at': AppSetting.get_value(LAST_SYNC_KEY),
            'total_synced': total_synced,
            'pending_sync': max(0, legacy_count - total_synced),
        }

    def check_conflicts(self):
        bookings = self._fetch(self.repository.fetch_upcoming_confirmed)
        synced_numbers = set(
            self.synced_appointments()
            .exclude(booking_number__isnull=True)
            .values_list('booking_number', flat=True)
        )
        missing = [
            {
                'id': booking.get('id'),
                'booking_number': booking.get('booking_number'),
                'first_name': booking.get('first_name'),
                'last_name': booking.get('last_name'),
                'appointment_date': normalize_date(booking.get('appointment_date')),
                'appointment_time': normalize_time(booking.get('appointment_time')),
            }
            for booking in bookings
            if booking.get('booking_number') not in synced_numbers
        ]
        return {'missing_appointments': missing, 'total_conflicts': len(missing)}

    def test_connection(self):
        try:
            self.repository.ping()
        except pymysql.MySQLError as e:
            logger.warning(
                'Legacy booking system connection test failed',
                extra={'event': 'legacy_connection_failed', 'error': str(e)},
            )
            return {'success': False, 'message': f'Connection failed: {e}'}
        return {'success': True, 'message': 'Successfully connected to legacy booking system'}
