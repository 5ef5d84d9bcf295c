"""
Request correlation middleware.

Generates or propagates X-Request-ID / X-Trace-ID, keeps them in
thread-local storage for the logging filter, and logs one line per request.
"""
import logging
import time
import uuid
from threading import local

from django.utils.deprecation import MiddlewareMixin

_request_context = local()

logger = logging.getLogger(__name__)


def get_request_id():
    return getattr(_request_context, 'request_id', None)


def get_trace_id():
    return getattr(_request_context, 'trace_id', None)


def get_user_id():
    return getattr(_request_context, 'user_id', None)


def get_user_roles():
    return getattr(_request_context, 'user_roles', [])


def _bind_user(request):
    """Copy the authenticated user (if any) into the thread-local context."""
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        _request_context.user_id = str(user.id)
        _request_context.user_roles = list(
            user.user_roles.values_list('role__name', flat=True)
        )
    else:
        _request_context.user_id = None
        _request_context.user_roles = []


class RequestCorrelationMiddleware(MiddlewareMixin):
    """
    - X-Request-ID: taken from the incoming header or generated
    - X-Trace-ID: propagated when the caller sends one
    - Logs http_request_completed / http_request_exception with duration

    JWT authentication happens inside DRF, after this middleware's
    process_request, so the user context is bound again on the way out.
    """

    REQUEST_ID_HEADER = 'HTTP_X_REQUEST_ID'
    TRACE_ID_HEADER = 'HTTP_X_TRACE_ID'

    def process_request(self, request):
        request.request_id = request.META.get(self.REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.trace_id = request.META.get(self.TRACE_ID_HEADER)
        request.start_time = time.time()

        _request_context.request_id = request.request_id
        _request_context.trace_id = request.trace_id
        _bind_user(request)

    def process_response(self, request, response):
        if hasattr(request, 'request_id'):
            response['X-Request-ID'] = request.request_id
        if getattr(request, 'trace_id', None):
            response['X-Trace-ID'] = request.trace_id

        if hasattr(request, 'start_time'):
            _bind_user(request)
            logger.info(
                'Request completed',
                extra={
                    'event': 'http_request_completed',
                    'path': request.path,
                    'method': request.method,
                    'status_code': response.status_code,
                    'duration_ms': round((time.time() - request.start_time) * 1000, 2),
                },
            )

        clear_request_context()
        return response

    def process_exception(self, request, exception):
        duration_ms = 0
        if hasattr(request, 'start_time'):
            duration_ms = (time.time() - request.start_time) * 1000

        logger.error(
            f'Request failed: {exception.__class__.__name__}',
            exc_info=True,
            extra={
                'event': 'http_request_exception',
                'path': request.path,
                'method': request.method,
                'exception_type': exception.__class__.__name__,
                'duration_ms': round(duration_ms, 2),
            },
        )


def clear_request_context():
    for attr in ('request_id', 'trace_id', 'user_id', 'user_roles'):
        if hasattr(_request_context, attr):
            delattr(_request_context, attr)
