# Generated migration for clinical app

import uuid
import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Patient',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(max_length=100)),
                ('email', models.EmailField(blank=True, max_length=255, null=True)),
                ('phone', models.CharField(max_length=20, validators=[django.core.validators.RegexValidator('^(\\+30)?[6-7]\\d{8}$', 'Please provide a valid Greek phone number')])),
                ('date_of_birth', models.DateField(blank=True, null=True)),
                ('gender', models.CharField(blank=True, choices=[('MALE', 'Male'), ('FEMALE', 'Female'), ('OTHER', 'Other')], max_length=10, null=True)),
                ('address', models.CharField(blank=True, max_length=255, null=True)),
                ('city', models.CharField(blank=True, max_length=100, null=True)),
                ('postal_code', models.CharField(blank=True, max_length=10, null=True)),
                ('country', models.CharField(default='Greece', max_length=100)),
                ('medical_history', models.JSONField(blank=True, null=True)),
                ('allergies', models.CharField(blank=True, max_length=500, null=True)),
                ('medications', models.CharField(blank=True, max_length=500, null=True)),
                ('emergency_contact', models.JSONField(blank=True, null=True)),
                ('insurance_info', models.JSONField(blank=True, null=True)),
                ('orthodontic_history', models.JSONField(blank=True, null=True)),
                ('referral_source', models.CharField(blank=True, max_length=200, null=True)),
                ('is_active', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_patients', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Patient',
                'verbose_name_plural': 'Patients',
                'db_table': 'patient',
                'indexes': [
                    models.Index(fields=['last_name', 'first_name'], name='idx_patient_name'),
                    models.Index(fields=['email'], name='idx_patient_email'),
                    models.Index(fields=['phone'], name='idx_patient_phone'),
                    models.Index(fields=['is_active'], name='idx_patient_active'),
                    models.Index(fields=['created_at'], name='idx_patient_created'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Appointment',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('appointment_date', models.DateField()),
                ('appointment_time', models.CharField(max_length=5, validators=[django.core.validators.RegexValidator('^([01]\\d|2[0-3]):[0-5]\\d$', 'Time must be in HH:MM format')])),
                ('duration', models.PositiveIntegerField(default=30, validators=[django.core.validators.MinValueValidator(5)])),
                ('type', models.CharField(choices=[('CONSULTATION', 'Consultation'), ('EXAMINATION', 'Examination'), ('TREATMENT', 'Treatment'), ('FOLLOW_UP', 'Follow Up'), ('EMERGENCY', 'Emergency'), ('REVIEW', 'Review')], default='CONSULTATION', max_length=20)),
                ('status', models.CharField(choices=[('SCHEDULED', 'Scheduled'), ('CONFIRMED', 'Confirmed'), ('IN_PROGRESS', 'In Progress'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled'), ('NO_SHOW', 'No Show')], default='SCHEDULED', max_length=20)),
                ('notes', models.TextField(blank=True, null=True)),
                ('reason_for_visit', models.CharField(blank=True, max_length=500, null=True)),
                ('legacy_booking_id', models.CharField(blank=True, max_length=50, null=True)),
                ('booking_number', models.CharField(blank=True, max_length=50, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_appointments', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='appointments', to='clinical.patient')),
            ],
            options={
                'verbose_name': 'Appointment',
                'verbose_name_plural': 'Appointments',
                'db_table': 'appointment',
                'ordering': ['appointment_date', 'appointment_time'],
                'indexes': [
                    models.Index(fields=['patient'], name='idx_appointment_patient'),
                    models.Index(fields=['appointment_date'], name='idx_appointment_date'),
                    models.Index(fields=['status'], name='idx_appointment_status'),
                    models.Index(fields=['legacy_booking_id'], name='idx_appointment_legacy_id'),
                    models.Index(fields=['booking_number'], name='idx_appointment_booking_no'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ClinicalAuditLog',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('action', models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('deactivate', 'Deactivate'), ('reactivate', 'Reactivate'), ('delete', 'Delete')], max_length=12)),
                ('entity_type', models.CharField(choices=[('Patient', 'Patient'), ('Appointment', 'Appointment'), ('TreatmentPlan', 'Treatment Plan'), ('TreatmentPhase', 'Treatment Phase'), ('ClinicalNote', 'Clinical Note'), ('Photo', 'Photo'), ('Payment', 'Payment')], max_length=50)),
                ('entity_id', models.UUIDField()),
                ('metadata', models.JSONField(default=dict)),
                ('actor_user', models.ForeignKey(blank=True, help_text='User who performed the action (null for system actions)', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clinical_audit_logs', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_logs', to='clinical.patient')),
            ],
            options={
                'verbose_name': 'Clinical Audit Log',
                'verbose_name_plural': 'Clinical Audit Logs',
                'db_table': 'clinical_audit_log',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['created_at'], name='idx_audit_created_at'),
                    models.Index(fields=['entity_type'], name='idx_audit_entity_type'),
                    models.Index(fields=['entity_id'], name='idx_audit_entity_id'),
                    models.Index(fields=['patient'], name='idx_audit_patient'),
                    models.Index(fields=['action'], name='idx_audit_action'),
                ],
            },
        ),
    ]
