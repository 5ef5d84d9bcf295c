"""
Tests for /api/auth: registration, login, tokens, profile, passwords and
user administration.
"""
from io import StringIO

import pytest
from django.core.management import call_command

from apps.authz import services
from apps.authz.models import RoleChoices, User, UserAuditActionChoices, UserAuditLog

STRONG_PASSWORD = 'Str0ngPass'


@pytest.mark.django_db
class TestRegisterAndLogin:

    def test_register_defaults_to_doctor_role(self, api_client):
        response = api_client.post('/api/auth/register/', {
            'email': 'New.Doctor@Example.com',
            'password': STRONG_PASSWORD,
            'first_name': 'Eleni',
            'last_name': 'Kosta',
        }, format='json')

        assert response.status_code == 201
        body = response.json()
        assert body['success'] is True
        assert body['data']['user']['email'] == 'new.doctor@example.com'
        assert body['data']['user']['role'] == RoleChoices.DOCTOR
        assert body['data']['access_token']
        assert 'password' not in body['data']['user']
        assert response.cookies['refreshToken']['httponly']
        assert UserAuditLog.objects.filter(action=UserAuditActionChoices.REGISTER).count() == 1

    def test_register_duplicate_email_conflicts(self, api_client, doctor_user):
        response = api_client.post('/api/auth/register/', {
            'email': 'DOCTOR@test.com',
            'password': STRONG_PASSWORD,
            'first_name': 'Dup',
            'last_name': 'User',
        }, format='json')

        assert response.status_code == 409
        assert response.json()['message'] == 'User with this email already exists'

    def test_register_rejects_weak_password(self, api_client):
        response = api_client.post('/api/auth/register/', {
            'email': 'weak@example.com',
            'password': 'alllowercase1',
            'first_name': 'Weak',
            'last_name': 'Password',
        }, format='json')

        assert response.status_code == 400
        body = response.json()
        assert body['message'] == 'Validation failed'
        assert body['errors'][0]['field'] == 'password'

    def test_login_success(self, api_client, user_factory):
        user_factory('login@test.com', RoleChoices.ASSISTANT, password=STRONG_PASSWORD)

        response = api_client.post('/api/auth/login/', {
            'email': 'LOGIN@test.com',
            'password': STRONG_PASSWORD,
        }, format='json')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['user']['role'] == RoleChoices.ASSISTANT
        assert data['access_token']
        assert User.objects.get(email='login@test.com').last_login is not None

    def test_login_wrong_password(self, api_client, doctor_user):
        response = api_client.post('/api/auth/login/', {
            'email': 'doctor@test.com',
            'password': 'WrongPass1',
        }, format='json')

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid email or password'

    def test_login_disabled_account(self, api_client, user_factory):
        user_factory('disabled@test.com', RoleChoices.DOCTOR, password=STRONG_PASSWORD, is_active=False)

        response = api_client.post('/api/auth/login/', {
            'email': 'disabled@test.com',
            'password': STRONG_PASSWORD,
        }, format='json')

        assert response.status_code == 401
        assert response.json()['message'] == 'Account is disabled'

    def test_login_is_throttled(self, api_client):
        for _ in range(10):
            api_client.post('/api/auth/login/', {'email': 'x@test.com', 'password': 'Nope1234'}, format='json')

        response = api_client.post('/api/auth/login/', {'email': 'x@test.com', 'password': 'Nope1234'}, format='json')

        assert response.status_code == 429
        assert response.json()['success'] is False

    def test_bearer_token_authenticates(self, api_client, user_factory):
        user_factory('bearer@test.com', RoleChoices.DOCTOR, password=STRONG_PASSWORD)
        login = api_client.post('/api/auth/login/', {
            'email': 'bearer@test.com',
            'password': STRONG_PASSWORD,
        }, format='json')
        token = login.json()['data']['access_token']

        api_client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')
        response = api_client.get('/api/auth/profile/')

        assert response.status_code == 200
        assert response.json()['data']['user']['email'] == 'bearer@test.com'


@pytest.mark.django_db
class TestTokens:

    def test_refresh_rotates_tokens(self, api_client, user_factory):
        user_factory('refresh@test.com', RoleChoices.DOCTOR, password=STRONG_PASSWORD)
        api_client.post('/api/auth/login/', {
            'email': 'refresh@test.com',
            'password': STRONG_PASSWORD,
        }, format='json')

        response = api_client.post('/api/auth/refresh-token/', {}, format='json')

        assert response.status_code == 200
        assert response.json()['data']['access_token']
        assert response.cookies['refreshToken'].value

    def test_refresh_without_token(self, api_client):
        response = api_client.post('/api/auth/refresh-token/', {}, format='json')

        assert response.status_code == 401
        assert response.json()['message'] == 'Refresh token not provided'

    def test_refresh_with_garbage_token(self, api_client):
        response = api_client.post('/api/auth/refresh-token/', {'refreshToken': 'not-a-jwt'}, format='json')

        assert response.status_code == 401
        assert response.json()['message'] == 'Invalid refresh token'

    def test_logout_clears_cookie(self, api_client):
        response = api_client.post('/api/auth/logout/')

        assert response.status_code == 200
        assert response.cookies['refreshToken'].value == ''

    def test_status_anonymous(self, api_client):
        response = api_client.get('/api/auth/status/')

        assert response.status_code == 200
        assert response.json()['data'] == {'is_authenticated': False, 'user': None}

    def test_missing_token_is_401(self, api_client):
        response = api_client.get('/api/auth/profile/')

        assert response.status_code == 401
        assert response.json()['code'] == 'UNAUTHORIZED'


@pytest.mark.django_db
class TestProfileAndPasswords:

    def test_update_profile(self, doctor_client, doctor_user):
        response = doctor_client.put('/api/auth/profile/', {'first_name': 'Giorgos'}, format='json')

        assert response.status_code == 200
        doctor_user.refresh_from_db()
        assert doctor_user.first_name == 'Giorgos'
        assert UserAuditLog.objects.filter(
            target_user=doctor_user,
            action=UserAuditActionChoices.UPDATE_PROFILE,
        ).exists()

    def test_update_profile_requires_a_field(self, doctor_client):
        response = doctor_client.put('/api/auth/profile/', {}, format='json')

        assert response.status_code == 400

    def test_update_profile_email_taken(self, doctor_client, assistant_user):
        response = doctor_client.put('/api/auth/profile/', {'email': 'assistant@test.com'}, format='json')

        assert response.status_code == 409
        assert response.json()['message'] == 'Email is already taken'

    def test_change_password(self, doctor_client, doctor_user):
        response = doctor_client.post('/api/auth/change-password/', {
            'currentPassword': 'TestPass123',
            'newPassword': 'N3wPassword',
        }, format='json')

        assert response.status_code == 200
        doctor_user.refresh_from_db()
        assert doctor_user.check_password('N3wPassword')

    def test_change_password_wrong_current(self, doctor_client):
        response = doctor_client.post('/api/auth/change-password/', {
            'currentPassword': 'Wrong1234',
            'newPassword': 'N3wPassword',
        }, format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'Current password is incorrect'

    def test_change_password_must_differ(self, doctor_client):
        response = doctor_client.post('/api/auth/change-password/', {
            'currentPassword': 'TestPass123',
            'newPassword': 'TestPass123',
        }, format='json')

        assert response.status_code == 400
        assert response.json()['errors'][0]['field'] == 'newPassword'

    def test_password_reset_flow(self, api_client, doctor_user):
        response = api_client.post('/api/auth/request-password-reset/', {'email': 'doctor@test.com'}, format='json')
        assert response.status_code == 200

        token = services.request_password_reset('doctor@test.com')
        response = api_client.post('/api/auth/reset-password/', {
            'token': token,
            'newPassword': 'Res3tPassword',
        }, format='json')

        assert response.status_code == 200
        doctor_user.refresh_from_db()
        assert doctor_user.check_password('Res3tPassword')

    def test_password_reset_unknown_email_still_succeeds(self, api_client):
        response = api_client.post('/api/auth/request-password-reset/', {'email': 'ghost@test.com'}, format='json')

        assert response.status_code == 200
        assert 'If an account with that email exists' in response.json()['message']

    def test_password_reset_invalid_token(self, api_client):
        response = api_client.post('/api/auth/reset-password/', {
            'token': 'bad:token',
            'newPassword': 'Res3tPassword',
        }, format='json')

        assert response.status_code == 400
        assert response.json()['message'] == 'Invalid or expired reset token'

    def test_permissions_for_assistant(self, assistant_client):
        response = assistant_client.get('/api/auth/permissions/')

        assert response.status_code == 200
        data = response.json()['data']
        assert data['role'] == RoleChoices.ASSISTANT
        assert 'upload_photos' in data['permissions']
        assert 'manage_users' not in data['permissions']


@pytest.mark.django_db
class TestUserAdministration:

    def test_admin_creates_user_with_role(self, admin_client):
        response = admin_client.post('/api/auth/users/', {
            'email': 'assistant2@test.com',
            'password': STRONG_PASSWORD,
            'first_name': 'Anna',
            'last_name': 'Nikolaou',
            'role': RoleChoices.ASSISTANT,
        }, format='json')

        assert response.status_code == 201
        assert response.json()['data']['user']['role'] == RoleChoices.ASSISTANT

    def test_list_users_hides_inactive_by_default(self, admin_client, doctor_user, user_factory):
        user_factory('gone@test.com', RoleChoices.DOCTOR, is_active=False)

        response = admin_client.get('/api/auth/users/')

        emails = [user['email'] for user in response.json()['data']['users']]
        assert 'doctor@test.com' in emails
        assert 'gone@test.com' not in emails

        response = admin_client.get('/api/auth/users/?includeInactive=true')
        emails = [user['email'] for user in response.json()['data']['users']]
        assert 'gone@test.com' in emails

    def test_update_role_replaces_assignment(self, admin_client, doctor_user):
        response = admin_client.put(
            f'/api/auth/users/{doctor_user.id}/role/',
            {'role': RoleChoices.ASSISTANT},
            format='json',
        )

        assert response.status_code == 200
        assert doctor_user.user_roles.count() == 1
        assert doctor_user.role == RoleChoices.ASSISTANT

    def test_deactivate_user(self, admin_client, doctor_user):
        response = admin_client.delete(f'/api/auth/users/{doctor_user.id}/')

        assert response.status_code == 200
        doctor_user.refresh_from_db()
        assert doctor_user.is_active is False

    def test_admin_cannot_deactivate_self(self, admin_client, admin_user):
        response = admin_client.delete(f'/api/auth/users/{admin_user.id}/')

        assert response.status_code == 400

    def test_doctor_cannot_manage_users(self, doctor_client):
        response = doctor_client.get('/api/auth/users/')

        assert response.status_code == 403
        assert response.json()['message'] == 'Insufficient permissions'

    def test_system_info_admin_only(self, admin_client, assistant_client):
        assert admin_client.get('/api/auth/system-info/').status_code == 200
        assert assistant_client.get('/api/auth/system-info/').status_code == 403

    def test_ensure_admin_user_command(self, doctor_user):
        out = StringIO()

        call_command('ensure_admin_user', email='boss@clinic.gr', password='Secret123', stdout=out)
        call_command('ensure_admin_user', email='doctor@test.com', password='Secret456', stdout=out)

        boss = User.objects.get(email='boss@clinic.gr')
        assert boss.role == RoleChoices.ADMIN
        assert boss.check_password('Secret123')
        doctor_user.refresh_from_db()
        assert doctor_user.role == RoleChoices.ADMIN
        assert doctor_user.check_password('Secret456')
