"""
Test cases for the JWT authentication endpoints.
"""

from django.contrib.auth import get_user_model
from django.test import Client, TestCase, override_settings

from tests.fixtures.test_data import AuthHelper, DoctorFactory


class LoginTests(TestCase):
    def setUp(self):
        self.client = Client()
        self.doctor = DoctorFactory.create(username='dr.rao', password='secret-pass')

    def test_login_returns_tokens_and_user(self):
        response = self.client.post('/api/v1/auth/login', {'username': 'dr.rao', 'password': 'secret-pass'})

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['access_token'])
        self.assertTrue(body['refresh_token'])
        self.assertEqual(body['user']['username'], 'dr.rao')
        self.assertTrue(body['user']['is_doctor'])
        self.assertEqual(body['status'], 'success')

    def test_access_token_opens_doctor_endpoints(self):
        login = self.client.post('/api/v1/auth/login', {'username': 'dr.rao', 'password': 'secret-pass'})

        response = self.client.get(
            '/api/v1/doctor/profile',
            HTTP_AUTHORIZATION=f'Bearer {login.json()["access_token"]}',
        )

        self.assertEqual(response.status_code, 200)

    def test_wrong_password_is_401(self):
        response = self.client.post('/api/v1/auth/login', {'username': 'dr.rao', 'password': 'nope'})

        self.assertEqual(response.status_code, 401)

    def test_missing_credentials_is_400(self):
        response = self.client.post('/api/v1/auth/login', {'username': 'dr.rao'})

        self.assertEqual(response.status_code, 400)

    def test_refresh(self):
        login = self.client.post('/api/v1/auth/login', {'username': 'dr.rao', 'password': 'secret-pass'})

        response = self.client.post(
            '/api/v1/auth/refresh',
            data={'refresh': login.json()['refresh_token']},
            content_type='application/json',
        )

        self.assertEqual(response.status_code, 200)
        self.assertIn('access', response.json())


class CurrentUserTests(TestCase):
    def setUp(self):
        self.client = Client()

    def test_me_for_non_doctor(self):
        user = get_user_model().objects.create_user(username='clerk', password='x', email='c@example.com')

        response = self.client.get('/api/v1/auth/me', **AuthHelper.bearer(user))

        self.assertEqual(response.status_code, 200)
        self.assertFalse(response.json()['user']['is_doctor'])

    def test_me_requires_token(self):
        self.assertEqual(self.client.get('/api/v1/auth/me').status_code, 401)

    def test_health_is_public(self):
        response = self.client.get('/api/v1/health')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['status'], 'ok')
        self.assertNotIn('config', response.json())

    @override_settings(DEBUG=True)
    def test_health_shows_config_in_debug(self):
        response = self.client.get('/api/v1/health')

        self.assertEqual(response.json()['config']['tat']['overdue_threshold_minutes'], 1440)
