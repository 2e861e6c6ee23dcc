"""
API contract tests for /api/v1/doctor/.

Exercises the HTTP layer end to end: JWT authentication, query parsing,
response schemas and the error envelope produced by config.urls.
"""

import json

from django.contrib.auth import get_user_model
from django.test import Client, TestCase

from study.status import WorkflowStatus
from tests.fixtures.test_data import AuthHelper, DoctorFactory, PatientFactory, StudyFactory

BASE = '/api/v1/doctor'
ON_FIXED_DAY = 'date_filter=custom&custom_date_from=2025-06-18&custom_date_to=2025-06-18'


class DoctorAPITestBase(TestCase):
    def setUp(self):
        self.client = Client()
        self.doctor = DoctorFactory.create()
        self.auth = AuthHelper.bearer(self.doctor.user)
        self.patient = PatientFactory.create(patient_id='P-700')
        self.study = StudyFactory.create_assigned(self.doctor, patient=self.patient)
        self.done = StudyFactory.create_assigned(
            self.doctor, workflow_status=WorkflowStatus.FINAL_REPORT_DOWNLOADED
        )

    def get(self, path: str):
        return self.client.get(f'{BASE}{path}', **self.auth)


class AuthenticationTests(DoctorAPITestBase):
    def test_missing_token_is_401(self):
        response = self.client.get(f'{BASE}/studies')

        self.assertEqual(response.status_code, 401)

    def test_garbage_token_is_401(self):
        response = self.client.get(f'{BASE}/studies', HTTP_AUTHORIZATION='Bearer not-a-token')

        self.assertEqual(response.status_code, 401)

    def test_user_without_doctor_profile_is_404(self):
        clerk = get_user_model().objects.create_user(username='clerk', password='x')

        response = self.client.get(f'{BASE}/studies', **AuthHelper.bearer(clerk))

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error']['code'], 'DOCTOR_PROFILE_NOT_FOUND')


class WorklistEndpointTests(DoctorAPITestBase):
    def test_assigned_studies(self):
        response = self.get(f'/studies?{ON_FIXED_DAY}')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(body['total_records'], 2)
        self.assertEqual(body['pagination']['current_page'], 1)
        self.assertIn('download_options', body['data'][0])
        self.assertEqual(body['filters_applied']['date_range']['preset'], 'custom')

    def test_pending_endpoint(self):
        response = self.get(f'/studies/pending?{ON_FIXED_DAY}')

        self.assertEqual(response.status_code, 200)
        self.assertEqual([row['id'] for row in response.json()['data']], [self.study.pk])

    def test_inprogress_endpoint(self):
        response = self.get(f'/studies/inprogress?{ON_FIXED_DAY}')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['count'], 0)

    def test_completed_endpoint(self):
        response = self.get(f'/studies/completed?{ON_FIXED_DAY}')

        self.assertEqual(response.status_code, 200)
        row = response.json()['data'][0]
        self.assertEqual(row['id'], self.done.pk)
        self.assertIn('reported_by', row)

    def test_non_numeric_limit_uses_default(self):
        response = self.get(f'/studies?{ON_FIXED_DAY}&limit=abc')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['pagination']['limit'], 20)

    def test_non_numeric_page_is_first_page(self):
        response = self.get(f'/studies/completed?{ON_FIXED_DAY}&page=abc&limit=x')

        self.assertEqual(response.status_code, 200)
        pagination = response.json()['pagination']
        self.assertEqual(pagination['current_page'], 1)
        self.assertEqual(pagination['limit'], 100)

    def test_invalid_category_is_400(self):
        response = self.get('/studies?category=archived')

        self.assertEqual(response.status_code, 400)
        error = response.json()['error']
        self.assertEqual(error['code'], 'INVALID_SEARCH_PARAMETER')
        self.assertEqual(error['details']['param'], 'category')

    def test_named_group_patient_regex_is_400(self):
        response = self.get(f'/studies?{ON_FIXED_DAY}&patient_name=%28%3FP%3Cn%3Ekir%29')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['details']['param'], 'patient_name')

    def test_invalid_custom_date_is_400(self):
        response = self.get('/studies?date_filter=custom&custom_date_from=18-06-2025')

        self.assertEqual(response.status_code, 400)

    def test_request_id_is_echoed(self):
        response = self.client.get(
            f'{BASE}/studies?category=archived', HTTP_X_REQUEST_ID='req-42', **self.auth
        )

        self.assertEqual(response['X-Request-ID'], 'req-42')
        self.assertEqual(response.json()['error']['request_id'], 'req-42')


class DashboardEndpointTests(DoctorAPITestBase):
    def test_values(self):
        response = self.get(f'/values?{ON_FIXED_DAY}')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['pending'], 1)
        self.assertEqual(body['completed'], 1)
        self.assertEqual(body['all'], 2)

    def test_stats(self):
        response = self.get('/stats')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['total_assigned'], 2)

    def test_profile(self):
        response = self.get('/profile')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['username'], self.doctor.user.username)

    def test_patient_detail(self):
        response = self.get('/patients/P-700')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['patient_info']['patient_id'], 'P-700')

    def test_unknown_patient_is_404(self):
        response = self.get('/patients/NOPE')

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error']['code'], 'PATIENT_NOT_FOUND')


class WorkflowEndpointTests(DoctorAPITestBase):
    def test_start_then_submit(self):
        start = self.client.post(f'{BASE}/studies/{self.study.pk}/start', **self.auth)
        submit = self.client.post(
            f'{BASE}/studies/{self.study.pk}/submit',
            data=json.dumps({'report_content': '<p>Normal</p>', 'impression': 'Normal.'}),
            content_type='application/json',
            **self.auth,
        )

        self.assertEqual(start.status_code, 200)
        self.assertEqual(start.json()['data']['workflow_status'], WorkflowStatus.REPORT_IN_PROGRESS)
        self.assertEqual(submit.status_code, 200)
        self.assertEqual(submit.json()['data']['workflow_status'], WorkflowStatus.REPORT_FINALIZED)

    def test_empty_report_is_rejected(self):
        response = self.client.post(
            f'{BASE}/studies/{self.study.pk}/submit',
            data=json.dumps({'report_content': ''}),
            content_type='application/json',
            **self.auth,
        )

        self.assertEqual(response.status_code, 422)

    def test_foreign_study_is_404(self):
        other = DoctorFactory.create()
        foreign = StudyFactory.create_assigned(other)

        response = self.client.post(f'{BASE}/studies/{foreign.pk}/start', **self.auth)

        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()['error']['code'], 'STUDY_NOT_FOUND')
