from django.contrib import admin

from .models import Appointment, ClinicalAuditLog, Patient


class AppointmentInline(admin.TabularInline):
    model = Appointment
    extra = 0
    fields = ['appointment_date', 'appointment_time', 'type', 'status']
    show_change_link = True


@admin.register(Patient)
class PatientAdmin(admin.ModelAdmin):
    list_display = ['first_name', 'last_name', 'email', 'phone', 'city', 'is_active', 'created_at']
    list_filter = ['is_active', 'gender', 'city']
    search_fields = ['first_name', 'last_name', 'email', 'phone']
    readonly_fields = ['id', 'created_by', 'created_at', 'updated_at']
    inlines = [AppointmentInline]

    fieldsets = (
        ('Basic Info', {
            'fields': ('id', 'first_name', 'last_name', 'date_of_birth', 'gender')
        }),
        ('Contact', {
            'fields': ('email', 'phone', 'address', 'city', 'postal_code', 'country', 'emergency_contact')
        }),
        ('Medical', {
            'fields': ('medical_history', 'allergies', 'medications', 'orthodontic_history', 'insurance_info')
        }),
        ('Referral', {
            'fields': ('referral_source',)
        }),
        ('Status', {
            'fields': ('is_active', 'created_by', 'created_at', 'updated_at')
        }),
    )


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = ['patient', 'appointment_date', 'appointment_time', 'type', 'status', 'booking_number']
    list_filter = ['status', 'type', 'appointment_date']
    search_fields = ['patient__first_name', 'patient__last_name', 'booking_number', 'legacy_booking_id']
    readonly_fields = ['id', 'created_by', 'created_at', 'updated_at']
    raw_id_fields = ['patient', 'treatment_plan']
    date_hierarchy = 'appointment_date'


@admin.register(ClinicalAuditLog)
class ClinicalAuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action', 'entity_type', 'entity_id', 'actor_user']
    list_filter = ['action', 'entity_type']
    readonly_fields = ['id', 'created_at', 'actor_user', 'action', 'entity_type', 'entity_id', 'patient', 'metadata']

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
