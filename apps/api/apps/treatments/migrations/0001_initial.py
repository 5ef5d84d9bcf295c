# Generated migration for treatments app

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clinical', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='TreatmentPlan',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('description', models.CharField(blank=True, max_length=1000, null=True)),
                ('diagnosis', models.CharField(blank=True, max_length=500, null=True)),
                ('treatment_goals', models.JSONField(blank=True, default=list)),
                ('estimated_duration', models.PositiveIntegerField(blank=True, null=True)),
                ('complexity', models.CharField(choices=[('SIMPLE', 'Simple'), ('MODERATE', 'Moderate'), ('COMPLEX', 'Complex'), ('SEVERE', 'Severe')], default='MODERATE', max_length=10)),
                ('initial_assessment', models.JSONField(blank=True, null=True)),
                ('treatment_options', models.JSONField(blank=True, null=True)),
                ('selected_option', models.CharField(blank=True, max_length=200, null=True)),
                ('appliances_used', models.JSONField(blank=True, default=list)),
                ('materials_list', models.JSONField(blank=True, null=True)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('estimated_end_date', models.DateField(blank=True, null=True)),
                ('actual_end_date', models.DateField(blank=True, null=True)),
                ('total_cost', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, validators=[django.core.validators.MinValueValidator(Decimal('0.01'))])),
                ('payment_plan', models.JSONField(blank=True, null=True)),
                ('status', models.CharField(choices=[('PLANNING', 'Planning'), ('ACTIVE', 'Active'), ('ON_HOLD', 'On Hold'), ('COMPLETED', 'Completed'), ('CANCELLED', 'Cancelled')], default='PLANNING', max_length=20)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_treatment_plans', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='treatment_plans', to='clinical.patient')),
            ],
            options={
                'verbose_name': 'Treatment Plan',
                'verbose_name_plural': 'Treatment Plans',
                'db_table': 'treatment_plan',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['patient'], name='idx_plan_patient'),
                    models.Index(fields=['status'], name='idx_plan_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TreatmentPhase',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('phase_number', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('title', models.CharField(max_length=200)),
                ('description', models.CharField(blank=True, max_length=1000, null=True)),
                ('objectives', models.JSONField(blank=True, default=list)),
                ('appliances', models.JSONField(blank=True, null=True)),
                ('instructions', models.TextField(blank=True, null=True)),
                ('start_date', models.DateField(blank=True, null=True)),
                ('estimated_end_date', models.DateField(blank=True, null=True)),
                ('actual_end_date', models.DateField(blank=True, null=True)),
                ('status', models.CharField(choices=[('PLANNED', 'Planned'), ('ACTIVE', 'Active'), ('COMPLETED', 'Completed'), ('PAUSED', 'Paused'), ('CANCELLED', 'Cancelled')], default='PLANNED', max_length=20)),
                ('progress', models.PositiveSmallIntegerField(default=0, validators=[django.core.validators.MinValueValidator(0), django.core.validators.MaxValueValidator(100)])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='treatment_phases', to='clinical.patient')),
                ('treatment_plan', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='phases', to='treatments.treatmentplan')),
            ],
            options={
                'verbose_name': 'Treatment Phase',
                'verbose_name_plural': 'Treatment Phases',
                'db_table': 'treatment_phase',
                'ordering': ['phase_number'],
                'indexes': [
                    models.Index(fields=['treatment_plan', 'phase_number'], name='idx_phase_plan_number'),
                    models.Index(fields=['status'], name='idx_phase_status'),
                ],
            },
        ),
        migrations.CreateModel(
            name='ClinicalNote',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('title', models.CharField(max_length=200)),
                ('content', models.TextField(max_length=5000)),
                ('note_type', models.CharField(choices=[('CONSULTATION', 'Consultation'), ('EXAMINATION', 'Examination'), ('TREATMENT', 'Treatment'), ('FOLLOW_UP', 'Follow Up'), ('EMERGENCY', 'Emergency'), ('GENERAL', 'General')], default='GENERAL', max_length=20)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('observations', models.TextField(blank=True, null=True)),
                ('recommendations', models.TextField(blank=True, null=True)),
                ('next_steps', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='clinical_notes', to=settings.AUTH_USER_MODEL)),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='clinical_notes', to='clinical.patient')),
                ('treatment_phase', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='clinical_notes', to='treatments.treatmentphase')),
                ('treatment_plan', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='clinical_notes', to='treatments.treatmentplan')),
            ],
            options={
                'verbose_name': 'Clinical Note',
                'verbose_name_plural': 'Clinical Notes',
                'db_table': 'clinical_note',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['patient', 'created_at'], name='idx_note_patient_created'),
                    models.Index(fields=['note_type'], name='idx_note_type'),
                ],
            },
        ),
    ]
