"""
Photo URLs (/api/photos/).
"""
from django.urls import path

from . import views

urlpatterns = [
    # Uploads
    path('upload/', views.PhotoUploadView.as_view(), name='photo-upload'),
    path('upload-multiple/', views.PhotoUploadMultipleView.as_view(), name='photo-upload-multiple'),
    path('upload-fields/', views.PhotoUploadFieldsView.as_view(), name='photo-upload-fields'),

    # Queries
    path('', views.PhotoSearchView.as_view(), name='photo-list'),
    path('search/', views.PhotoSearchView.as_view(), name='photo-search'),
    path('stats/', views.PhotoStatsView.as_view(), name='photo-stats'),
    path('recent/', views.RecentPhotosView.as_view(), name='photo-recent'),

    # Per patient / phase
    path('patient/<uuid:patient_id>/', views.PatientPhotosView.as_view(), name='photos-by-patient'),
    path(
        'patient/<uuid:patient_id>/category/<str:category>/',
        views.PatientCategoryPhotosView.as_view(),
        name='photos-by-patient-category',
    ),
    path('patient/<uuid:patient_id>/before-after/', views.BeforeAfterPairsView.as_view(), name='photos-before-after'),
    path(
        'patient/<uuid:patient_id>/categories-summary/',
        views.CategoriesSummaryView.as_view(),
        name='photos-categories-summary',
    ),
    path('treatment-phase/<uuid:phase_id>/', views.PhasePhotosView.as_view(), name='photos-by-phase'),

    # Bulk
    path('create-before-after-pair/', views.BeforeAfterPairCreateView.as_view(), name='photo-create-pair'),
    path('bulk/', views.BulkDeleteView.as_view(), name='photo-bulk-delete'),
    path('batch-update/', views.BatchUpdateView.as_view(), name='photo-batch-update'),

    # Single photo
    path('<uuid:photo_id>/', views.PhotoDetailView.as_view(), name='photo-detail'),
    path('<uuid:photo_id>/download/', views.PhotoDownloadView.as_view(), name='photo-download'),
]
