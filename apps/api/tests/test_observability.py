"""
Tests for observability layer.

Validates request correlation, domain events and that logs never carry
patient data or credentials.
"""
import json
import logging
from unittest.mock import patch

import pytest
from django.contrib.auth.models import AnonymousUser
from django.http import HttpResponse
from django.test import RequestFactory

from apps.core.observability.correlation import (
    RequestCorrelationMiddleware,
    clear_request_context,
    get_request_id,
)
from apps.core.observability.events import log_domain_event
from apps.core.observability.logging import (
    CorrelationFilter,
    SanitizedJSONFormatter,
    sanitize_dict,
)


def build_request(**headers):
    request = RequestFactory().get('/api/patients/', **headers)
    request.user = AnonymousUser()
    return request


class TestRequestCorrelation:
    """Test request correlation middleware."""

    def test_generates_request_id_if_missing(self):
        middleware = RequestCorrelationMiddleware(lambda r: HttpResponse())
        request = build_request()

        middleware.process_request(request)

        assert request.request_id
        assert get_request_id() == request.request_id
        clear_request_context()

    def test_propagates_request_and_trace_ids(self):
        middleware = RequestCorrelationMiddleware(lambda r: HttpResponse())
        request = build_request(HTTP_X_REQUEST_ID='req-123', HTTP_X_TRACE_ID='trace-9')

        middleware.process_request(request)
        response = middleware.process_response(request, HttpResponse())

        assert response['X-Request-ID'] == 'req-123'
        assert response['X-Trace-ID'] == 'trace-9'

    def test_context_cleared_after_response(self):
        middleware = RequestCorrelationMiddleware(lambda r: HttpResponse())
        request = build_request()

        middleware.process_request(request)
        middleware.process_response(request, HttpResponse())

        assert get_request_id() is None

    @pytest.mark.django_db
    def test_filter_adds_user_context(self, doctor_user):
        middleware = RequestCorrelationMiddleware(lambda r: HttpResponse())
        request = build_request(HTTP_X_REQUEST_ID='req-7')
        request.user = doctor_user
        middleware.process_request(request)
        record = logging.LogRecord('test', logging.INFO, __file__, 1, 'hello', (), None)

        CorrelationFilter().filter(record)
        clear_request_context()

        assert record.request_id == 'req-7'
        assert record.user_id == str(doctor_user.id)
        assert record.user_roles == 'DOCTOR'


class TestSanitization:
    """Test patient data redaction."""

    def test_sanitize_dict_redacts_sensitive_fields(self):
        data = {
            'id': '123',
            'first_name': 'Maria',
            'email': 'maria@example.com',
            'phone': '691234567',
            'medical_history': 'Asthma',
            'status': 'active',
        }

        sanitized = sanitize_dict(data)

        assert sanitized['id'] == '123'
        assert sanitized['status'] == 'active'
        for key in ('first_name', 'email', 'phone', 'medical_history'):
            assert sanitized[key] == '[REDACTED]'

    def test_sanitize_dict_handles_nested_objects(self):
        data = {
            'appointment': {
                'id': '456',
                'patient': {'last_name': 'Papadopoulou', 'id': 'patient-1'},
            },
            'changes': [{'password': 'secret', 'field': 'status'}],
        }

        sanitized = sanitize_dict(data)

        assert sanitized['appointment']['patient'] == {'last_name': '[REDACTED]', 'id': 'patient-1'}
        assert sanitized['changes'] == [{'password': '[REDACTED]', 'field': 'status'}]

    def test_formatter_redacts_extra_fields(self):
        record = logging.LogRecord('test', logging.INFO, __file__, 1, 'Patient created', (), None)
        record.event = 'patient_created'
        record.email = 'maria@example.com'

        payload = json.loads(SanitizedJSONFormatter().format(record))

        assert payload['message'] == 'Patient created'
        assert payload['event'] == 'patient_created'
        assert payload['email'] == '[REDACTED]'
        assert payload['level'] == 'INFO'


class TestDomainEvents:

    @patch('apps.core.observability.events.logger')
    def test_log_domain_event_structure(self, mock_logger):
        event = log_domain_event(
            'patient_created',
            entity_type='Patient',
            entity_id=42,
            first_name='Maria',
            source='api',
        )

        mock_logger.info.assert_called_once()
        assert event == {
            'event': 'patient_created',
            'result': 'success',
            'entity_type': 'Patient',
            'entity_id': '42',
            'first_name': '[REDACTED]',
            'source': 'api',
        }

    @patch('apps.core.observability.events.logger')
    def test_partial_result_logs_warning(self, mock_logger):
        log_domain_event('legacy_sync_completed', result='partial', error_count=2)

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args[1]['extra']['error_count'] == 2

    @patch('apps.core.observability.events.logger')
    def test_failure_result_logs_error(self, mock_logger):
        log_domain_event('photo_upload', result='failure')

        mock_logger.error.assert_called_once()
        mock_logger.info.assert_not_called()
