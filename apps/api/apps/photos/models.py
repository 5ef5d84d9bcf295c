"""
Photo model - orthodontic photography stored in MinIO.

The database row keeps object keys only; URLs are presigned on read
(see apps.photos.storage).
"""
import uuid

from django.conf import settings
from django.db import models


class PhotoCategoryChoices(models.TextChoices):
    INTRAORAL = 'INTRAORAL', 'Intraoral'
    EXTRAORAL = 'EXTRAORAL', 'Extraoral'
    RADIOGRAPH = 'RADIOGRAPH', 'Radiograph'
    MODELS = 'MODELS', 'Models'
    CLINICAL = 'CLINICAL', 'Clinical'
    PROGRESS = 'PROGRESS', 'Progress'
    FINAL = 'FINAL', 'Final'


class Photo(models.Model):
    """
    Uploaded clinical photo.

    - object_key: original image in the photos bucket
    - thumbnail_key / medium_key / high_key: Pillow renditions, filled in by
      apps.photos.tasks.generate_renditions (null until generated)
    - before_after_pair_id: shared by the two photos of a before/after pair
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'clinical.Patient',
        on_delete=models.CASCADE,
        related_name='photos'
    )
    treatment_phase = models.ForeignKey(
        'treatments.TreatmentPhase',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='photos'
    )
    appointment = models.ForeignKey(
        'clinical.Appointment',
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='photos'
    )

    # File
    filename = models.CharField(max_length=255)
    original_name = models.CharField(max_length=255)
    mime_type = models.CharField(max_length=100)
    file_size = models.PositiveIntegerField()
    width = models.PositiveIntegerField(blank=True, null=True)
    height = models.PositiveIntegerField(blank=True, null=True)
    object_key = models.CharField(max_length=500)
    thumbnail_key = models.CharField(max_length=500, blank=True, null=True)
    medium_key = models.CharField(max_length=500, blank=True, null=True)
    high_key = models.CharField(max_length=500, blank=True, null=True)

    # Classification
    category = models.CharField(max_length=20, choices=PhotoCategoryChoices.choices)
    subcategory = models.CharField(max_length=100, blank=True, null=True)
    description = models.CharField(max_length=500, blank=True, null=True)
    tags = models.JSONField(default=list, blank=True)

    is_before_after = models.BooleanField(default=False)
    before_after_pair_id = models.CharField(max_length=100, blank=True, null=True)

    uploaded_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        blank=True,
        null=True,
        related_name='uploaded_photos'
    )
    uploaded_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'photo'
        verbose_name = 'Photo'
        verbose_name_plural = 'Photos'
        ordering = ['-uploaded_at']
        indexes = [
            models.Index(fields=['patient', 'uploaded_at'], name='idx_photo_patient_uploaded'),
            models.Index(fields=['category'], name='idx_photo_category'),
            models.Index(fields=['treatment_phase'], name='idx_photo_phase'),
            models.Index(fields=['before_after_pair_id'], name='idx_photo_pair'),
        ]

    def __str__(self):
        return f"{self.category} photo of {self.patient} ({self.original_name})"

    @property
    def rendition_keys(self):
        return {
            'thumbnail': self.thumbnail_key,
            'medium': self.medium_key,
            'high': self.high_key,
        }

    @property
    def object_keys(self):
        """Every stored object belonging to this photo."""
        return [key for key in [self.object_key, *self.rendition_keys.values()] if key]
