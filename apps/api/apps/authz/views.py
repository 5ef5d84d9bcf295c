"""
Authentication and user administration endpoints (/api/auth/).

Public:
- POST register, login, refresh-token, logout, request-password-reset, reset-password
- GET status (optional authentication)

Authenticated:
- GET/PUT profile, POST change-password, GET validate-session, GET permissions

Admin:
- GET/POST users, PUT users/{id}/role, DELETE users/{id}, GET system-info
"""
import os
import platform
import time

from django.conf import settings
from django.utils import timezone
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.throttling import ScopedRateThrottle
from rest_framework.views import APIView

from apps.authz import services
from apps.authz.authentication import OptionalJWTAuthentication
from apps.authz.permissions import ROLE_CAPABILITIES, IsAdmin
from apps.authz.serializers import (
    ChangePasswordSerializer,
    LoginSerializer,
    PasswordResetRequestSerializer,
    PasswordResetSerializer,
    ProfileUpdateSerializer,
    RefreshTokenSerializer,
    UserCreateSerializer,
    UserRoleUpdateSerializer,
    UserSerializer,
)
from apps.authz.tokens import clear_refresh_cookie, rotate_refresh_token, set_refresh_cookie
from apps.core.exceptions import UnauthorizedError
from apps.core.pagination import PagePagination
from apps.core.responses import api_response, created_response

PROCESS_STARTED_AT = time.time()


def _session_user(user):
    return {
        'id': str(user.id),
        'email': user.email,
        'first_name': user.first_name,
        'last_name': user.last_name,
        'role': user.role,
    }


class PublicAuthView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = []


class RegisterView(PublicAuthView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'auth_burst'

    def post(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user, access_token, refresh_token = services.register(
            serializer.validated_data,
            ip_address=services.get_client_ip(request),
        )
        response = created_response(
            data={'user': UserSerializer(user).data, 'access_token': access_token},
            message='User registered successfully',
        )
        return set_refresh_cookie(response, refresh_token)


class LoginView(PublicAuthView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'auth_burst'

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user, access_token, refresh_token = services.login(
            serializer.validated_data['email'],
            serializer.validated_data['password'],
        )
        response = api_response(
            data={'user': UserSerializer(user).data, 'access_token': access_token},
            message='Login successful',
        )
        return set_refresh_cookie(response, refresh_token)


class RefreshTokenView(PublicAuthView):
    """Accepts the refresh token from the cookie or the request body and rotates it."""

    def post(self, request):
        serializer = RefreshTokenSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        raw_token = (
            request.COOKIES.get(settings.REFRESH_TOKEN_COOKIE)
            or serializer.validated_data.get('refreshToken')
        )
        if not raw_token:
            raise UnauthorizedError('Refresh token not provided')

        _, (access_token, refresh_token) = rotate_refresh_token(raw_token)
        response = api_response(
            data={'access_token': access_token},
            message='Token refreshed successfully',
        )
        return set_refresh_cookie(response, refresh_token)


class LogoutView(PublicAuthView):

    def post(self, request):
        return clear_refresh_cookie(api_response(message='Logout successful'))


class AuthStatusView(APIView):
    permission_classes = [AllowAny]
    authentication_classes = [OptionalJWTAuthentication]

    def get(self, request):
        is_authenticated = bool(request.user and request.user.is_authenticated)
        return api_response(data={
            'is_authenticated': is_authenticated,
            'user': _session_user(request.user) if is_authenticated else None,
        })


class RequestPasswordResetView(PublicAuthView):
    throttle_classes = [ScopedRateThrottle]
    throttle_scope = 'auth_burst'

    def post(self, request):
        serializer = PasswordResetRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.request_password_reset(serializer.validated_data['email'])
        return api_response(
            message='If an account with that email exists, a password reset link has been sent'
        )


class ResetPasswordView(PublicAuthView):

    def post(self, request):
        serializer = PasswordResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.reset_password(
            serializer.validated_data['token'],
            serializer.validated_data['newPassword'],
        )
        return api_response(message='Password reset successfully')


class ProfileView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        return api_response(
            data={'user': UserSerializer(request.user).data},
            message='Profile retrieved successfully',
        )

    def put(self, request):
        serializer = ProfileUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.update_profile(request.user, dict(serializer.validated_data))
        return api_response(
            data={'user': UserSerializer(user).data},
            message='Profile updated successfully',
        )


class ChangePasswordView(APIView):
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = ChangePasswordSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.change_password(
            request.user,
            serializer.validated_data['currentPassword'],
            serializer.validated_data['newPassword'],
        )
        return api_response(message='Password changed successfully')


class ValidateSessionView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.is_active:
            raise UnauthorizedError('Session is invalid')
        return api_response(
            data={'user': _session_user(request.user)},
            message='Session is valid',
        )


class PermissionsView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        role = request.user.role
        return api_response(data={
            'role': role,
            'permissions': ROLE_CAPABILITIES.get(role, []),
        })


class UserListCreateView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request):
        include_inactive = request.query_params.get('includeInactive', 'false').lower() == 'true'
        paginator = PagePagination()
        users = paginator.paginate_queryset(services.list_users(include_inactive), request, view=self)
        return paginator.get_paginated_response(
            UserSerializer(users, many=True).data,
            'users',
            message='Users retrieved successfully',
        )

    def post(self, request):
        serializer = UserCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.admin_create_user(
            serializer.validated_data,
            actor=request.user,
            ip_address=services.get_client_ip(request),
        )
        return created_response(
            data={'user': UserSerializer(user).data},
            message='User created successfully',
        )


class UserRoleView(APIView):
    permission_classes = [IsAdmin]

    def put(self, request, user_id):
        serializer = UserRoleUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = services.update_user_role(
            user_id,
            serializer.validated_data['role'],
            actor=request.user,
            ip_address=services.get_client_ip(request),
        )
        return api_response(
            data={'user': UserSerializer(user).data},
            message='User role updated successfully',
        )


class UserDeactivateView(APIView):
    permission_classes = [IsAdmin]

    def delete(self, request, user_id):
        services.deactivate_user(
            user_id,
            actor=request.user,
            ip_address=services.get_client_ip(request),
        )
        return api_response(message='User deactivated successfully')


class SystemInfoView(APIView):
    permission_classes = [IsAdmin]

    def get(self, request):
        return api_response(data={
            'python_version': platform.python_version(),
            'platform': platform.platform(),
            'process_id': os.getpid(),
            'uptime': round(time.time() - PROCESS_STARTED_AT, 2),
            'environment': 'development' if settings.DEBUG else 'production',
            'version': settings.VERSION,
            'timestamp': timezone.now().isoformat(),
        })
