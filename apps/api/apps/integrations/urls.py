"""Legacy booking sync URLs (/api/sync/)."""
from django.urls import path

from . import views

urlpatterns = [
    path('run/', views.SyncRunView.as_view(), name='sync-run'),
    path('stats/', views.SyncStatsView.as_view(), name='sync-stats'),
    path('conflicts/', views.SyncConflictsView.as_view(), name='sync-conflicts'),
    path('bookings/<str:booking_id>/', views.SyncBookingView.as_view(), name='sync-booking'),
    path('test-connection/', views.TestConnectionView.as_view(), name='sync-test-connection'),
]
