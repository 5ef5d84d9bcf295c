"""
Authz URLs - authentication, profile and user administration.
"""
from django.urls import path

from . import views

urlpatterns = [
    # Public
    path('register/', views.RegisterView.as_view(), name='auth-register'),
    path('login/', views.LoginView.as_view(), name='auth-login'),
    path('refresh-token/', views.RefreshTokenView.as_view(), name='auth-refresh-token'),
    path('logout/', views.LogoutView.as_view(), name='auth-logout'),
    path('status/', views.AuthStatusView.as_view(), name='auth-status'),
    path('request-password-reset/', views.RequestPasswordResetView.as_view(), name='auth-request-password-reset'),
    path('reset-password/', views.ResetPasswordView.as_view(), name='auth-reset-password'),

    # Authenticated
    path('profile/', views.ProfileView.as_view(), name='auth-profile'),
    path('change-password/', views.ChangePasswordView.as_view(), name='auth-change-password'),
    path('validate-session/', views.ValidateSessionView.as_view(), name='auth-validate-session'),
    path('permissions/', views.PermissionsView.as_view(), name='auth-permissions'),

    # Admin
    path('users/', views.UserListCreateView.as_view(), name='auth-users'),
    path('users/<uuid:user_id>/role/', views.UserRoleView.as_view(), name='auth-user-role'),
    path('users/<uuid:user_id>/', views.UserDeactivateView.as_view(), name='auth-user-deactivate'),
    path('system-info/', views.SystemInfoView.as_view(), name='auth-system-info'),
]
