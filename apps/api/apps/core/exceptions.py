"""
Application errors and the central exception-to-response mapper.

Every API error leaves through ``api_exception_handler`` with the body:

    {
        "success": false,
        "message": "...",
        "code": "NOT_FOUND",
        "timestamp": "2024-01-01T00:00:00Z",
        "path": "/api/patients/...",
        "method": "GET"
    }

Validation failures also carry ``errors: [{field, message, code}]``.
"""
import logging
import re

from django.conf import settings
from django.core.exceptions import ObjectDoesNotExist
from django.db import IntegrityError
from django.http import Http404
from django.utils import timezone
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import InvalidToken, TokenError

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base class for errors that carry their own HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = 'INTERNAL_ERROR'
    default_message = 'Internal server error'

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class BadRequestError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'BAD_REQUEST'
    default_message = 'Bad request'


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = 'UNAUTHORIZED'
    default_message = 'Unauthorized'


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = 'FORBIDDEN'
    default_message = 'Insufficient permissions'


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'NOT_FOUND'
    default_message = 'Resource not found'


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = 'CONFLICT'
    default_message = 'Conflict'


# Postgres: Key (email)=(x) already exists. / SQLite: UNIQUE constraint failed: patient.email
_UNIQUE_FIELD_PATTERNS = [
    re.compile(r'Key \((?P<field>[^)]+)\)=\(.*\) already exists'),
    re.compile(r'UNIQUE constraint failed: [\w]+\.(?P<field>\w+)'),
]


def _unique_field_from_message(message):
    for pattern in _UNIQUE_FIELD_PATTERNS:
        match = pattern.search(message)
        if match:
            return match.group('field')
    return 'field'


def map_integrity_error(exc):
    """Translate a database constraint violation into (status, code, message)."""
    message = str(exc)
    lowered = message.lower()

    if 'unique' in lowered or 'duplicate key' in lowered or 'already exists' in lowered:
        field = _unique_field_from_message(message)
        return (
            status.HTTP_409_CONFLICT,
            'CONFLICT',
            f'A record with this {field} already exists',
        )

    if 'foreign key' in lowered:
        return (
            status.HTTP_400_BAD_REQUEST,
            'INVALID_REFERENCE',
            'Invalid reference to related record',
        )

    return (
        status.HTTP_400_BAD_REQUEST,
        'CONSTRAINT_VIOLATION',
        'Database constraint violation',
    )


def flatten_validation_errors(detail, prefix=''):
    """
    Flatten DRF ValidationError detail into [{field, message, code}].
    """
    issues = []
    if isinstance(detail, dict):
        for key, value in detail.items():
            field = f'{prefix}.{key}' if prefix else str(key)
            issues.extend(flatten_validation_errors(value, field))
    elif isinstance(detail, list):
        for index, value in enumerate(detail):
            if isinstance(value, (dict, list)):
                issues.extend(flatten_validation_errors(value, f'{prefix}.{index}' if prefix else str(index)))
            else:
                issues.extend(flatten_validation_errors(value, prefix))
    else:
        issues.append({
            'field': prefix or 'non_field_errors',
            'message': str(detail),
            'code': getattr(detail, 'code', 'invalid'),
        })
    return issues


def error_response(request, status_code, code, message, errors=None, exc=None):
    body = {
        'success': False,
        'message': message,
        'code': code,
        'timestamp': timezone.now().isoformat().replace('+00:00', 'Z'),
        'path': request.path if request is not None else None,
        'method': request.method if request is not None else None,
    }
    if errors:
        body['errors'] = errors
    if settings.DEBUG and exc is not None:
        body['error'] = exc.__class__.__name__
    return Response(body, status=status_code)


def api_exception_handler(exc, context):
    """
    DRF EXCEPTION_HANDLER: single exit point for API errors.
    """
    request = context.get('request')

    if isinstance(exc, AppError):
        if exc.status_code >= 500:
            logger.error('Application error', exc_info=exc, extra={'event': 'app_error'})
        return error_response(request, exc.status_code, exc.code, exc.message, errors=exc.details, exc=exc)

    if isinstance(exc, exceptions.ValidationError):
        return error_response(
            request,
            status.HTTP_400_BAD_REQUEST,
            'VALIDATION_ERROR',
            'Validation failed',
            errors=flatten_validation_errors(exc.detail),
            exc=exc,
        )

    if isinstance(exc, (InvalidToken, TokenError)):
        return error_response(request, status.HTTP_401_UNAUTHORIZED, 'UNAUTHORIZED', 'Invalid token', exc=exc)

    if isinstance(exc, exceptions.NotAuthenticated):
        return error_response(request, status.HTTP_401_UNAUTHORIZED, 'UNAUTHORIZED', 'Access token required', exc=exc)

    if isinstance(exc, exceptions.AuthenticationFailed):
        return error_response(request, status.HTTP_401_UNAUTHORIZED, 'UNAUTHORIZED', str(exc.detail), exc=exc)

    if isinstance(exc, exceptions.PermissionDenied):
        return error_response(request, status.HTTP_403_FORBIDDEN, 'FORBIDDEN', 'Insufficient permissions', exc=exc)

    if isinstance(exc, (Http404, exceptions.NotFound, ObjectDoesNotExist)):
        return error_response(request, status.HTTP_404_NOT_FOUND, 'NOT_FOUND', 'Resource not found', exc=exc)

    if isinstance(exc, IntegrityError):
        status_code, code, message = map_integrity_error(exc)
        logger.warning(
            'Database constraint violation',
            extra={'event': 'integrity_error', 'error_code': code},
        )
        return error_response(request, status_code, code, message, exc=exc)

    if isinstance(exc, exceptions.APIException):
        return error_response(
            request,
            exc.status_code,
            str(exc.default_code).upper(),
            str(exc.detail),
            exc=exc,
        )

    logger.error(
        f'Unhandled exception: {exc.__class__.__name__}',
        exc_info=exc,
        extra={'event': 'unhandled_exception'},
    )
    return error_response(
        request,
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        'INTERNAL_ERROR',
        'Internal server error',
        exc=exc,
    )
