"""
Authz models: auth_user, auth_role, auth_user_role, user_audit_log
"""
import uuid
from django.db import models
from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin


# ============================================================================
# User Management
# ============================================================================

class UserManager(BaseUserManager):
    """Custom user manager for email-based authentication."""

    def normalize_email(self, email):
        # Emails are stored lowercased so lookups are case-insensitive
        return super().normalize_email(email or '').strip().lower()

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('is_active', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """
    Clinic staff account.

    - id: UUID PK
    - email: unique, lowercased, used as login
    - first_name, last_name
    - is_active: inactive users cannot log in or refresh tokens
    - role: exposed through the single UserRole assignment (ADMIN|DOCTOR|ASSISTANT)
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255)
    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)  # Required for admin access
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'auth_user'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['email'], name='idx_user_email'),
            models.Index(fields=['is_active'], name='idx_user_active'),
        ]

    def __str__(self):
        return self.email

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @property
    def role(self):
        """Role name of the user's assignment, or None."""
        return self.user_roles.values_list('role__name', flat=True).first()

    def has_role(self, *role_names):
        return self.user_roles.filter(role__name__in=role_names).exists()


class RoleChoices(models.TextChoices):
    ADMIN = 'ADMIN', 'Admin'
    DOCTOR = 'DOCTOR', 'Doctor'
    ASSISTANT = 'ASSISTANT', 'Assistant'


class Role(models.Model):
    """
    System roles (ADMIN|DOCTOR|ASSISTANT). Rows are bootstrapped by migration.
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(
        max_length=50,
        unique=True,
        choices=RoleChoices.choices
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'auth_role'
        verbose_name = 'Role'
        verbose_name_plural = 'Roles'

    def __str__(self):
        return self.get_name_display()


class UserRole(models.Model):
    """
    Role assignment. Users hold exactly one role; apps.authz.services.assign_role
    replaces any previous assignment.
    """
    user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='user_roles'
    )
    role = models.ForeignKey(
        Role,
        on_delete=models.PROTECT,
        related_name='user_roles'
    )
    assigned_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'auth_user_role'
        verbose_name = 'User Role'
        verbose_name_plural = 'User Roles'
        unique_together = [('user', 'role')]
        indexes = [
            models.Index(fields=['user'], name='idx_user_role_user'),
            models.Index(fields=['role'], name='idx_user_role_role'),
        ]

    def __str__(self):
        return f"{self.user.email} - {self.role.name}"


# ============================================================================
# User Administration Audit Log
# ============================================================================

class UserAuditActionChoices(models.TextChoices):
    REGISTER = 'register', 'Register'
    CREATE_USER = 'create_user', 'Create User'
    UPDATE_PROFILE = 'update_profile', 'Update Profile'
    UPDATE_ROLE = 'update_role', 'Update Role'
    CHANGE_PASSWORD = 'change_password', 'Change Password'
    RESET_PASSWORD = 'reset_password', 'Reset Password'
    DEACTIVATE_USER = 'deactivate_user', 'Deactivate User'


class UserAuditLog(models.Model):
    """
    Audit trail for account changes.

    - actor_user: who made the change (null for self-registration)
    - target_user: account that was changed
    - metadata: changed fields, before/after values, IP address
    """
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    created_at = models.DateTimeField(auto_now_add=True)

    actor_user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        related_name='admin_actions',
    )
    target_user = models.ForeignKey(
        User,
        on_delete=models.CASCADE,
        related_name='audit_logs',
    )
    action = models.CharField(
        max_length=20,
        choices=UserAuditActionChoices.choices
    )
    metadata = models.JSONField(default=dict)

    class Meta:
        db_table = 'user_audit_log'
        verbose_name = 'User Audit Log'
        verbose_name_plural = 'User Audit Logs'
        indexes = [
            models.Index(fields=['created_at'], name='idx_user_audit_created'),
            models.Index(fields=['target_user'], name='idx_user_audit_target'),
            models.Index(fields=['action'], name='idx_user_audit_action'),
        ]
        ordering = ['-created_at']

    def __str__(self):
        actor = self.actor_user.email if self.actor_user else 'system'
        return f"{self.action} on {self.target_user.email} by {actor}"
