from django.contrib import admin

from .models import Payment


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ['patient', 'amount', 'currency', 'method', 'status', 'due_date', 'paid_date']
    list_filter = ['status', 'method', 'currency']
    search_fields = ['patient__first_name', 'patient__last_name', 'transaction_id', 'description']
    readonly_fields = ['id', 'created_by', 'created_at', 'updated_at']
    raw_id_fields = ['patient', 'treatment_plan']
    date_hierarchy = 'created_at'
