"""
Structured logging with patient-data redaction.

Records pass through CorrelationFilter (request/user context) and, outside
DEBUG, SanitizedJSONFormatter, which emits one JSON object per line and
redacts anything that could identify a patient or leak a credential.
"""
import json
import logging
from datetime import datetime, timezone

from .correlation import get_request_id, get_trace_id, get_user_id, get_user_roles


# Keys whose values never reach the log output
SENSITIVE_FIELDS = {
    'password',
    'current_password',
    'new_password',
    'token',
    'access_token',
    'refresh_token',
    'secret',
    'api_key',
    'first_name',
    'last_name',
    'email',
    'phone',
    'address',
    'date_of_birth',
    'medical_history',
    'allergies',
    'medications',
    'emergency_contact',
    'insurance_info',
    'orthodontic_history',
    'content',
    'observations',
    'notes',
}

# Attributes every LogRecord carries; they are not "extra" fields
_RECORD_ATTRIBUTES = frozenset(
    logging.LogRecord('', 0, '', 0, '', (), None).__dict__.keys()
) | {'message', 'asctime', 'taskName'}


class CorrelationFilter(logging.Filter):
    """Attach request id, trace id, user id and roles to every record."""

    def filter(self, record):
        record.request_id = get_request_id() or '-'
        record.trace_id = get_trace_id() or '-'
        record.user_id = get_user_id() or '-'
        record.user_roles = ','.join(get_user_roles()) or '-'
        return True


class SanitizedJSONFormatter(logging.Formatter):
    """JSON lines formatter with recursive redaction of SENSITIVE_FIELDS."""

    def format(self, record):
        payload = {
            'timestamp': datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'request_id': getattr(record, 'request_id', '-'),
            'trace_id': getattr(record, 'trace_id', '-'),
            'user_id': getattr(record, 'user_id', '-'),
            'user_roles': getattr(record, 'user_roles', '-'),
        }

        for key, value in record.__dict__.items():
            if key in payload or key in _RECORD_ATTRIBUTES or key.startswith('_'):
                continue
            payload[key] = '[REDACTED]' if key.lower() in SENSITIVE_FIELDS else sanitize_value(value)

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


def sanitize_value(value):
    if isinstance(value, dict):
        return sanitize_dict(value)
    if isinstance(value, (list, tuple)):
        return [sanitize_value(item) for item in value]
    return value


def sanitize_dict(data):
    """
    Return a copy of ``data`` with sensitive keys replaced by '[REDACTED]'.

    Nested dicts and lists are walked recursively.
    """
    if not isinstance(data, dict):
        return data
    return {
        key: '[REDACTED]' if str(key).lower() in SENSITIVE_FIELDS else sanitize_value(value)
        for key, value in data.items()
    }
