# Generated migration for photos app

import uuid

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ('clinical', '0002_appointment_treatment_plan'),
        ('treatments', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Photo',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('filename', models.CharField(max_length=255)),
                ('original_name', models.CharField(max_length=255)),
                ('mime_type', models.CharField(max_length=100)),
                ('file_size', models.PositiveIntegerField()),
                ('width', models.PositiveIntegerField(blank=True, null=True)),
                ('height', models.PositiveIntegerField(blank=True, null=True)),
                ('object_key', models.CharField(max_length=500)),
                ('thumbnail_key', models.CharField(blank=True, max_length=500, null=True)),
                ('medium_key', models.CharField(blank=True, max_length=500, null=True)),
                ('high_key', models.CharField(blank=True, max_length=500, null=True)),
                ('category', models.CharField(choices=[('INTRAORAL', 'Intraoral'), ('EXTRAORAL', 'Extraoral'), ('RADIOGRAPH', 'Radiograph'), ('MODELS', 'Models'), ('CLINICAL', 'Clinical'), ('PROGRESS', 'Progress'), ('FINAL', 'Final')], max_length=20)),
                ('subcategory', models.CharField(blank=True, max_length=100, null=True)),
                ('description', models.CharField(blank=True, max_length=500, null=True)),
                ('tags', models.JSONField(blank=True, default=list)),
                ('is_before_after', models.BooleanField(default=False)),
                ('before_after_pair_id', models.CharField(blank=True, max_length=100, null=True)),
                ('uploaded_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('appointment', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='photos', to='clinical.appointment')),
                ('patient', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='photos', to='clinical.patient')),
                ('treatment_phase', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='photos', to='treatments.treatmentphase')),
                ('uploaded_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='uploaded_photos', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Photo',
                'verbose_name_plural': 'Photos',
                'db_table': 'photo',
                'ordering': ['-uploaded_at'],
                'indexes': [
                    models.Index(fields=['patient', 'uploaded_at'], name='idx_photo_patient_uploaded'),
                    models.Index(fields=['category'], name='idx_photo_category'),
                    models.Index(fields=['treatment_phase'], name='idx_photo_phase'),
                    models.Index(fields=['before_after_pair_id'], name='idx_photo_pair'),
                ],
            },
        ),
    ]
