"""
JWT issuing/rotation (simplejwt) and password reset tokens.

Access tokens carry ``user_id`` and ``email``; refresh tokens carry
``token_type=refresh``. The refresh token also travels in an httpOnly
cookie named settings.REFRESH_TOKEN_COOKIE.
"""
from django.conf import settings
from django.contrib.auth.tokens import default_token_generator
from django.core.exceptions import ValidationError as DjangoValidationError
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings
from rest_framework_simplejwt.tokens import RefreshToken

from apps.authz.models import User
from apps.core.exceptions import UnauthorizedError


def issue_tokens(user):
    """Return (access_token, refresh_token) strings for the user."""
    refresh = RefreshToken.for_user(user)
    # Copied into the access token by simplejwt
    refresh['email'] = user.email
    return str(refresh.access_token), str(refresh)


def rotate_refresh_token(raw_token):
    """
    Validate a refresh token and issue a fresh pair.

    Raises:
        UnauthorizedError: token invalid/expired, or user missing/inactive
    """
    try:
        token = RefreshToken(raw_token)
    except TokenError:
        raise UnauthorizedError('Invalid refresh token')

    user = User.objects.filter(
        id=token.get(api_settings.USER_ID_CLAIM),
        is_active=True,
    ).first()
    if user is None:
        raise UnauthorizedError('User not found or inactive')
    return user, issue_tokens(user)


def set_refresh_cookie(response, refresh_token):
    response.set_cookie(
        settings.REFRESH_TOKEN_COOKIE,
        refresh_token,
        max_age=int(settings.SIMPLE_JWT['REFRESH_TOKEN_LIFETIME'].total_seconds()),
        httponly=True,
        secure=not settings.DEBUG,
        samesite='Strict',
    )
    return response


def clear_refresh_cookie(response):
    response.delete_cookie(settings.REFRESH_TOKEN_COOKIE, samesite='Strict')
    return response


def make_password_reset_token(user):
    """'<uidb64>:<token>' built on Django's password reset token generator."""
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    return f'{uid}:{default_token_generator.make_token(user)}'


def get_user_for_reset_token(raw_token):
    """Resolve a reset token to its active user, or None when invalid/expired."""
    uid, _, token = (raw_token or '').partition(':')
    try:
        user_id = force_str(urlsafe_base64_decode(uid))
        user = User.objects.get(pk=user_id, is_active=True)
    except (ValueError, TypeError, DjangoValidationError, User.DoesNotExist):
        return None
    if not default_token_generator.check_token(user, token):
        return None
    return user
