"""
Payment URLs (/api/payments/).
"""
from django.urls import path

from . import views

urlpatterns = [
    path('', views.PaymentCreateView.as_view(), name='payment-create'),
    path('stats/', views.PaymentStatsView.as_view(), name='payment-stats'),
    path('methods-stats/', views.PaymentMethodsStatsView.as_view(), name='payment-methods-stats'),
    path('overdue/', views.OverduePaymentsView.as_view(), name='payment-overdue'),
    path('upcoming/', views.UpcomingPaymentsView.as_view(), name='payment-upcoming'),
    path('report/', views.PaymentReportView.as_view(), name='payment-report'),
    path('payment-plan/', views.PaymentPlanView.as_view(), name='payment-plan'),
    path('patient/<uuid:patient_id>/', views.PatientPaymentsView.as_view(), name='payments-by-patient'),
    path('treatment-plan/<uuid:plan_id>/', views.TreatmentPlanPaymentsView.as_view(), name='payments-by-plan'),
    path('<uuid:payment_id>/', views.PaymentDetailView.as_view(), name='payment-detail'),
    path('<uuid:payment_id>/status/', views.PaymentStatusView.as_view(), name='payment-status'),
    path('<uuid:payment_id>/mark-paid/', views.MarkPaidView.as_view(), name='payment-mark-paid'),
]
