"""
Tests for the core API surface: index, health, status, docs, unknown routes,
the error envelope and shared helpers.
"""
from datetime import date
from unittest.mock import patch

import pytest
from django.db import IntegrityError, connection
from django.test import RequestFactory
from rest_framework import serializers
from rest_framework.request import Request

from apps.core.dates import add_months, calculate_age
from apps.core.exceptions import flatten_validation_errors, map_integrity_error
from apps.core.pagination import PagePagination

HEALTHY = {'status': 'healthy', 'latency_ms': 1.0}


def list_request(**params):
    return Request(RequestFactory().get('/api/patients/', params))


@pytest.mark.django_db
class TestMetaEndpoints:

    def test_index(self, api_client):
        response = api_client.get('/api/')

        assert response.status_code == 200
        body = response.json()
        assert body['message'] == 'Orthodontic Practice Management API'
        assert body['data']['endpoints']['sync'] == '/api/sync'

    def test_status_and_docs(self, api_client):
        status_body = api_client.get('/api/status').json()
        assert status_body['data']['status'] == 'operational'

        docs_body = api_client.get('/api/docs').json()
        assert docs_body['data']['documentation']['openapi'] == '/api/schema/'

    def test_unknown_api_route(self, api_client):
        response = api_client.get('/api/does-not-exist/')

        assert response.status_code == 404
        body = response.json()
        assert body['success'] is False
        assert body['message'] == 'API endpoint not found: /api/does-not-exist/'
        assert '/api/patients' in body['available_endpoints']

    @pytest.mark.parametrize('method', ['get', 'post', 'delete'])
    def test_unknown_api_route_without_trailing_slash(self, api_client, method):
        response = getattr(api_client, method)('/api/does-not-exist')

        assert response.status_code == 404
        assert response.json()['message'] == 'API endpoint not found: /api/does-not-exist'

    def test_known_route_without_trailing_slash_redirects(self, api_client):
        response = api_client.get('/api/patients?page=2')

        assert response.status_code == 301
        assert response['Location'] == '/api/patients/?page=2'

    def test_request_id_is_echoed(self, api_client):
        response = api_client.get('/api/', HTTP_X_REQUEST_ID='req-42')

        assert response['X-Request-ID'] == 'req-42'


@pytest.mark.django_db
class TestHealth:

    def test_health_ok_without_legacy_configuration(self, api_client):
        with patch('apps.photos.storage.check_storage_health', return_value=HEALTHY):
            response = api_client.get('/api/health')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['status'] == 'healthy'
        assert data['services']['database']['status'] == 'healthy'
        assert data['services']['legacy_bookings'] == {'status': 'not_configured'}

    def test_health_degraded(self, api_client):
        storage_down = {'status': 'unhealthy', 'error': 'connection refused'}
        with patch('apps.photos.storage.check_storage_health', return_value=storage_down):
            response = api_client.get('/api/health')

        assert response.status_code == 503
        assert response.json()['data']['status'] == 'degraded'

    def test_detailed_health_admin_only(self, admin_client, doctor_client):
        services = {'database': HEALTHY}
        with patch('apps.core.views.run_health_checks', return_value=('healthy', services)):
            response = admin_client.get('/api/health/detailed')
            forbidden = doctor_client.get('/api/health/detailed')

        assert response.status_code == 200
        assert response.json()['data']['configuration']['legacy_sync_configured'] is False
        assert forbidden.status_code == 403

    def test_healthz(self, client):
        response = client.get('/healthz')

        assert response.status_code == 200
        assert response.json()['status'] == 'ok'

    def test_readyz(self, client):
        assert client.get('/readyz').json() == {'status': 'ready', 'checks': {'database': True}}

    def test_readyz_fails_on_db_error(self, client):
        with patch(
            'apps.core.observability.health.check_database',
            return_value={'status': 'unhealthy', 'error': 'down'},
        ):
            response = client.get('/readyz')

        assert response.status_code == 503
        assert response.json()['status'] == 'not_ready'


class TestErrorMapping:

    def test_flatten_nested_validation_errors(self):
        error = serializers.ValidationError({
            'email': ['Enter a valid email address.'],
            'address': {'city': ['This field is required.']},
        })

        issues = flatten_validation_errors(error.detail)

        assert issues == [
            {'field': 'email', 'message': 'Enter a valid email address.', 'code': 'invalid'},
            {'field': 'address.city', 'message': 'This field is required.', 'code': 'invalid'},
        ]

    def test_unique_violation_is_conflict(self):
        status_code, code, message = map_integrity_error(
            IntegrityError('UNIQUE constraint failed: patient.email')
        )

        assert (status_code, code) == (409, 'CONFLICT')
        assert message == 'A record with this email already exists'

    def test_foreign_key_violation(self):
        status_code, code, _ = map_integrity_error(IntegrityError('FOREIGN KEY constraint failed'))

        assert (status_code, code) == (400, 'INVALID_REFERENCE')


class TestHelpers:

    def test_pagination_params_are_lenient(self):
        paginator = PagePagination()
        paginator.paginate_queryset([], list_request(page='x', limit='500'))
        assert paginator.get_pagination() == {'page': 1, 'limit': 100, 'total': 0, 'pages': 0}

        paginator.paginate_queryset([], list_request(page='3', limit='0'))
        assert (paginator.page_number, paginator.limit) == (3, 1)

    def test_paginate_list(self):
        paginator = PagePagination()

        items = paginator.paginate_queryset(list(range(45)), list_request(page=3, limit=20))

        assert items == list(range(40, 45))
        assert paginator.get_pagination() == {'page': 3, 'limit': 20, 'total': 45, 'pages': 3}

    def test_page_past_the_end_is_empty(self):
        paginator = PagePagination()

        assert paginator.paginate_queryset(list(range(5)), list_request(page=4)) == []
        assert paginator.get_pagination()['pages'] == 1

    def test_paginated_response_envelope(self):
        paginator = PagePagination(max_page_size=2)
        items = paginator.paginate_queryset(['a', 'b', 'c'], list_request(limit=10))

        response = paginator.get_paginated_response(items, 'letters', message='ok')

        assert response.data == {
            'success': True,
            'message': 'ok',
            'data': {'letters': ['a', 'b'], 'pagination': {'page': 1, 'limit': 2, 'total': 3, 'pages': 2}},
        }

    def test_pagination_class_is_the_default(self, settings):
        assert settings.REST_FRAMEWORK['DEFAULT_PAGINATION_CLASS'] == 'apps.core.pagination.PagePagination'

    def test_suite_runs_on_in_memory_sqlite(self, settings):
        assert connection.vendor == 'sqlite'
        assert settings.DATABASES['default']['NAME'] == ':memory:'
        assert settings.PASSWORD_HASHERS == ['django.contrib.auth.hashers.MD5PasswordHasher']

    def test_add_months_clamps_day(self):
        assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
        assert add_months(date(2024, 11, 30), 3) == date(2025, 2, 28)

    def test_calculate_age(self):
        assert calculate_age(date(2008, 5, 14), today=date(2026, 5, 13)) == 17
        assert calculate_age(date(2008, 5, 14), today=date(2026, 5, 14)) == 18
        assert calculate_age(None) is None
