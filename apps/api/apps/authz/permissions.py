"""
Role-based permissions for the practice API.

Roles are read from the user's role assignments:
    request.user.user_roles.values_list('role__name', flat=True)
"""
from rest_framework import permissions

from apps.authz.models import RoleChoices

STAFF_ROLES = {RoleChoices.ADMIN, RoleChoices.DOCTOR, RoleChoices.ASSISTANT}
CLINICIAN_ROLES = {RoleChoices.ADMIN, RoleChoices.DOCTOR}

# Capability list returned by GET /api/auth/permissions
ROLE_CAPABILITIES = {
    RoleChoices.ADMIN: [
        'manage_users',
        'manage_patients',
        'manage_treatments',
        'manage_photos',
        'manage_appointments',
        'manage_payments',
        'view_reports',
        'manage_settings',
        'sync_data',
    ],
    RoleChoices.DOCTOR: [
        'manage_patients',
        'manage_treatments',
        'manage_photos',
        'manage_appointments',
        'manage_payments',
        'view_reports',
    ],
    RoleChoices.ASSISTANT: [
        'view_patients',
        'manage_appointments',
        'upload_photos',
        'view_reports',
    ],
}


def get_user_roles(user):
    """Set of role names assigned to the user (empty for anonymous users)."""
    if not user or not user.is_authenticated:
        return set()
    return set(user.user_roles.values_list('role__name', flat=True))


class IsAdmin(permissions.BasePermission):
    """Only ADMIN users."""

    def has_permission(self, request, view):
        return RoleChoices.ADMIN in get_user_roles(request.user)


class IsDoctorOrAdmin(permissions.BasePermission):
    """DOCTOR or ADMIN users."""

    def has_permission(self, request, view):
        return bool(get_user_roles(request.user) & CLINICIAN_ROLES)


class IsStaffUser(permissions.BasePermission):
    """Any authenticated user holding one of the staff roles."""

    def has_permission(self, request, view):
        return bool(get_user_roles(request.user) & STAFF_ROLES)


class ReadAnyWriteDoctorOrAdmin(permissions.BasePermission):
    """
    Clinical records permission.

    - ADMIN, DOCTOR: full CRUD
    - ASSISTANT: read-only
    """

    def has_permission(self, request, view):
        user_roles = get_user_roles(request.user)
        if request.method in permissions.SAFE_METHODS:
            return bool(user_roles & STAFF_ROLES)
        return bool(user_roles & CLINICIAN_ROLES)

    def has_object_permission(self, request, view, obj):
        return self.has_permission(request, view)
