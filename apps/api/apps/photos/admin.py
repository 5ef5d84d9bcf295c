from django.contrib import admin

from .models import Photo


@admin.register(Photo)
class PhotoAdmin(admin.ModelAdmin):
    list_display = ['original_name', 'patient', 'category', 'file_size', 'is_before_after', 'uploaded_at']
    list_filter = ['category', 'is_before_after']
    search_fields = ['original_name', 'filename', 'patient__first_name', 'patient__last_name', 'before_after_pair_id']
    readonly_fields = [
        'id', 'filename', 'object_key', 'thumbnail_key', 'medium_key', 'high_key',
        'mime_type', 'file_size', 'width', 'height', 'uploaded_by', 'uploaded_at', 'updated_at',
    ]
    raw_id_fields = ['patient', 'treatment_phase', 'appointment']
