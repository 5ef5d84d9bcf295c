"""
Global test fixtures for pytest.

Provides reusable fixtures for API testing:
- Authenticated API clients by role (ADMIN, DOCTOR, ASSISTANT)
- Model instances (Patient, Appointment, TreatmentPlan, Payment, Photo)
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.authz.models import RoleChoices, User
from apps.authz.services import assign_role
from apps.clinical.models import Appointment, Patient
from apps.payments.models import Payment
from apps.photos.models import Photo
from apps.treatments.models import TreatmentPhase, TreatmentPlan


@pytest.fixture(autouse=True)
def clear_cache():
    """Throttle counters live in the cache; every test starts clean."""
    cache.clear()
    yield
    cache.clear()


def make_user(email, role, password='TestPass123', **extra):
    user = User.objects.create_user(
        email=email,
        password=password,
        first_name=extra.pop('first_name', 'Test'),
        last_name=extra.pop('last_name', role.title()),
        **extra
    )
    assign_role(user, role)
    return user


@pytest.fixture
def user_factory(db):
    """Create a staff user holding one role."""
    return make_user


def client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


# ============================================================================
# API Clients
# ============================================================================

@pytest.fixture
def api_client():
    """Unauthenticated DRF API client."""
    return APIClient()


@pytest.fixture
def admin_user(db):
    return make_user('admin@test.com', RoleChoices.ADMIN, is_staff=True)


@pytest.fixture
def doctor_user(db):
    return make_user('doctor@test.com', RoleChoices.DOCTOR)


@pytest.fixture
def assistant_user(db):
    return make_user('assistant@test.com', RoleChoices.ASSISTANT)


@pytest.fixture
def admin_client(admin_user):
    """ADMIN: full access, including user administration and sync."""
    return client_for(admin_user)


@pytest.fixture
def doctor_client(doctor_user):
    """DOCTOR: full clinical access."""
    return client_for(doctor_user)


@pytest.fixture
def assistant_client(assistant_user):
    """ASSISTANT: clinical reads, appointments and photo uploads."""
    return client_for(assistant_user)


# ============================================================================
# Model fixtures
# ============================================================================

@pytest.fixture
def patient(db, doctor_user):
    return Patient.objects.create(
        first_name='Maria',
        last_name='Papadopoulou',
        email='maria@example.com',
        phone='691234567',
        date_of_birth=date(2008, 5, 14),
        gender='FEMALE',
        city='Athens',
        created_by=doctor_user,
    )


@pytest.fixture
def other_patient(db):
    return Patient.objects.create(
        first_name='Nikos',
        last_name='Georgiou',
        email='nikos@example.com',
        phone='698765432',
        city='Thessaloniki',
    )


@pytest.fixture
def treatment_plan(db, patient, doctor_user):
    return TreatmentPlan.objects.create(
        patient=patient,
        title='Upper and lower braces',
        estimated_duration=18,
        total_cost=Decimal('3000.00'),
        start_date=date.today(),
        created_by=doctor_user,
    )


@pytest.fixture
def treatment_phase(db, treatment_plan):
    return TreatmentPhase.objects.create(
        treatment_plan=treatment_plan,
        patient=treatment_plan.patient,
        phase_number=1,
        title='Alignment',
    )


@pytest.fixture
def appointment(db, patient, doctor_user):
    return Appointment.objects.create(
        patient=patient,
        appointment_date=date.today() + timedelta(days=3),
        appointment_time='10:30',
        type='CONSULTATION',
        created_by=doctor_user,
    )


@pytest.fixture
def payment(db, patient, treatment_plan, doctor_user):
    return Payment.objects.create(
        patient=patient,
        treatment_plan=treatment_plan,
        amount=Decimal('250.00'),
        method='CARD',
        created_by=doctor_user,
    )


@pytest.fixture
def make_photo(db, doctor_user):
    """Factory for stored photos (no storage round trip)."""
    def _make(patient, category='INTRAORAL', **extra):
        return Photo.objects.create(
            patient=patient,
            filename=f'{category.lower()}_test.jpg',
            original_name='test.jpg',
            mime_type='image/jpeg',
            file_size=extra.pop('file_size', 1024),
            object_key=f'orthodontic-app/patients/{patient.id}/{category.lower()}/test.jpg',
            category=category,
            uploaded_by=doctor_user,
            **extra
        )
    return _make
