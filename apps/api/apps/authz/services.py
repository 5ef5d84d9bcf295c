"""
Account services: registration, login, profile, passwords, role assignment.

Views stay thin; every write that changes an account goes through here so
the audit log and domain events are recorded consistently.
"""
import logging

from django.contrib.auth.models import update_last_login
from django.db import transaction

from apps.authz.models import (
    Role,
    RoleChoices,
    User,
    UserAuditActionChoices,
    UserAuditLog,
    UserRole,
)
from apps.authz.tokens import get_user_for_reset_token, issue_tokens, make_password_reset_token
from apps.core.exceptions import BadRequestError, ConflictError, NotFoundError, UnauthorizedError
from apps.core.observability import log_domain_event

logger = logging.getLogger(__name__)

DEFAULT_ROLE = RoleChoices.DOCTOR


def get_client_ip(request):
    """Extract client IP address from request."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def record_audit(action, target_user, actor_user=None, **metadata):
    return UserAuditLog.objects.create(
        actor_user=actor_user,
        target_user=target_user,
        action=action,
        metadata=metadata,
    )


def assign_role(user, role_name):
    """Replace the user's role assignment with role_name."""
    role, _ = Role.objects.get_or_create(name=role_name)
    UserRole.objects.filter(user=user).exclude(role=role).delete()
    UserRole.objects.get_or_create(user=user, role=role)
    return role


@transaction.atomic
def create_account(email, password, first_name, last_name, role=None):
    email = User.objects.normalize_email(email)
    if User.objects.filter(email=email).exists():
        raise ConflictError('User with this email already exists')

    user = User.objects.create_user(
        email=email,
        password=password,
        first_name=first_name,
        last_name=last_name,
    )
    assign_role(user, role or DEFAULT_ROLE)
    return user


def register(data, ip_address=None):
    """
    Self-registration.

    Returns:
        (user, access_token, refresh_token)
    """
    user = create_account(**data)
    record_audit(
        UserAuditActionChoices.REGISTER,
        target_user=user,
        role=user.role,
        ip_address=ip_address,
    )
    log_domain_event('user_registered', entity_type='User', entity_id=user.id, role=user.role)
    return (user, *issue_tokens(user))


def login(email, password):
    """
    Raises:
        UnauthorizedError: unknown email, disabled account or wrong password
    """
    user = User.objects.filter(email=User.objects.normalize_email(email)).first()
    if user is None:
        raise UnauthorizedError('Invalid email or password')
    if not user.is_active:
        raise UnauthorizedError('Account is disabled')
    if not user.check_password(password):
        logger.warning(
            'Failed login attempt',
            extra={'event': 'login_failed', 'user_id': str(user.id), 'reason': 'invalid_password'},
        )
        raise UnauthorizedError('Invalid email or password')

    update_last_login(None, user)
    log_domain_event('user_logged_in', entity_type='User', entity_id=user.id, role=user.role)
    return (user, *issue_tokens(user))


@transaction.atomic
def update_profile(user, data):
    before = {field: getattr(user, field) for field in data}
    email = data.get('email')
    if email:
        email = User.objects.normalize_email(email)
        if User.objects.filter(email=email).exclude(id=user.id).exists():
            raise ConflictError('Email is already taken')
        data['email'] = email

    for field, value in data.items():
        setattr(user, field, value)
    user.save()

    changed = {
        field: {'before': before[field], 'after': getattr(user, field)}
        for field in data
        if before[field] != getattr(user, field)
    }
    if changed:
        record_audit(
            UserAuditActionChoices.UPDATE_PROFILE,
            target_user=user,
            actor_user=user,
            changed_fields=changed,
        )
    return user


@transaction.atomic
def change_password(user, current_password, new_password):
    if not user.check_password(current_password):
        raise BadRequestError('Current password is incorrect')
    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    record_audit(UserAuditActionChoices.CHANGE_PASSWORD, target_user=user, actor_user=user, self_change=True)
    log_domain_event('password_changed', entity_type='User', entity_id=user.id)


def request_password_reset(email):
    """
    Issue a reset token when an active account exists.

    The caller always answers with success so account existence is not leaked.
    Delivery of the token (email) is handled outside this service.
    """
    user = User.objects.filter(email=User.objects.normalize_email(email), is_active=True).first()
    if user is None:
        log_domain_event('password_reset_requested', entity_type='User', result='warning', reason='unknown_email')
        return None
    token = make_password_reset_token(user)
    log_domain_event('password_reset_requested', entity_type='User', entity_id=user.id)
    return token


@transaction.atomic
def reset_password(token, new_password):
    user = get_user_for_reset_token(token)
    if user is None:
        raise BadRequestError('Invalid or expired reset token')
    user.set_password(new_password)
    user.save(update_fields=['password', 'updated_at'])
    record_audit(UserAuditActionChoices.RESET_PASSWORD, target_user=user)
    log_domain_event('password_reset', entity_type='User', entity_id=user.id)
    return user


def list_users(include_inactive=False):
    queryset = User.objects.prefetch_related('user_roles__role').order_by('-created_at')
    if not include_inactive:
        queryset = queryset.filter(is_active=True)
    return queryset


def get_user(user_id):
    user = User.objects.filter(id=user_id).first()
    if user is None:
        raise NotFoundError('User not found')
    return user


def admin_create_user(data, actor, ip_address=None):
    user = create_account(**data)
    record_audit(
        UserAuditActionChoices.CREATE_USER,
        target_user=user,
        actor_user=actor,
        email=user.email,
        role=user.role,
        ip_address=ip_address,
    )
    log_domain_event('user_created', entity_type='User', entity_id=user.id, created_by=str(actor.id))
    return user


@transaction.atomic
def update_user_role(user_id, role_name, actor, ip_address=None):
    user = get_user(user_id)
    previous = user.role
    assign_role(user, role_name)
    record_audit(
        UserAuditActionChoices.UPDATE_ROLE,
        target_user=user,
        actor_user=actor,
        before=previous,
        after=role_name,
        ip_address=ip_address,
    )
    log_domain_event('user_role_updated', entity_type='User', entity_id=user.id, new_role=role_name)
    return user


@transaction.atomic
def deactivate_user(user_id, actor, ip_address=None):
    user = get_user(user_id)
    if user.id == actor.id:
        raise BadRequestError('You cannot deactivate your own account')
    user.is_active = False
    user.save(update_fields=['is_active', 'updated_at'])
    record_audit(
        UserAuditActionChoices.DEACTIVATE_USER,
        target_user=user,
        actor_user=actor,
        ip_address=ip_address,
    )
    log_domain_event('user_deactivated', entity_type='User', entity_id=user.id)
    return user
