"""
API contract tests for /api/v1/tat/.
"""

from datetime import timedelta

from django.core.cache import cache
from django.test import Client, TestCase

from study.status import WorkflowStatus
from tests.fixtures.test_data import FIXED_NOW, AuthHelper, DoctorFactory, LabFactory, StudyFactory

BASE = '/api/v1/tat'


class TATAPITests(TestCase):
    def setUp(self):
        cache.clear()
        self.client = Client()
        self.doctor = DoctorFactory.create()
        self.auth = AuthHelper.bearer(self.doctor.user)
        self.lab = LabFactory.create(name='Sunrise Imaging', identifier='SUN01')
        self.study = StudyFactory.create_assigned(
            self.doctor,
            lab=self.lab,
            workflow_status=WorkflowStatus.REPORT_FINALIZED,
            report_finalized_at=FIXED_NOW + timedelta(hours=2),
        )

    def tearDown(self):
        cache.clear()

    def get(self, path: str):
        return self.client.get(f'{BASE}{path}', **self.auth)

    def test_requires_authentication(self):
        response = self.client.get(f'{BASE}/locations')

        self.assertEqual(response.status_code, 401)

    def test_locations(self):
        response = self.get('/locations')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()['locations'][0]['code'], 'SUN01')

    def test_statuses(self):
        response = self.get('/statuses')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.json()['success'])

    def test_report(self):
        response = self.get(f'/report?location={self.lab.pk}&from_date=2025-06-18&to_date=2025-06-18')

        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body['summary']['total_studies'], 1)
        self.assertEqual(body['data'][0]['diff_upload_and_report_tat'], '2h')
        self.assertEqual(body['data'][0]['timezone'], 'IST')

    def test_report_with_non_numeric_paging_uses_defaults(self):
        response = self.get(f'/report?location={self.lab.pk}&limit=abc&page=x')

        self.assertEqual(response.status_code, 200)
        pagination = response.json()['pagination']
        self.assertEqual(pagination['current_page'], 1)
        self.assertEqual(pagination['limit'], 100)

    def test_report_without_location_is_400(self):
        response = self.get('/report')

        self.assertEqual(response.status_code, 400)
        body = response.json()
        self.assertEqual(body['message'], 'Location is required')
        self.assertEqual(body['error']['code'], 'MISSING_PARAMETER')

    def test_report_with_bad_date_is_400(self):
        response = self.get(f'/report?location={self.lab.pk}&from_date=2025/06/18&to_date=2025-06-18')

        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()['error']['details']['param'], 'from_date')

    def test_export_csv_attachment(self):
        response = self.get('/report/export?location=SUN01&format=csv')

        self.assertEqual(response.status_code, 200)
        self.assertIn('attachment; filename="TAT_Report_SUN01_', response['Content-Disposition'])
        self.assertTrue(response['Content-Type'].startswith('text/csv'))
        self.assertIn('Upload-to-Report TAT', response.content.decode('utf-8-sig'))

    def test_export_default_is_xlsx(self):
        response = self.get(f'/report/export?location={self.lab.pk}')

        self.assertEqual(response.status_code, 200)
        self.assertIn('.xlsx"', response['Content-Disposition'])

    def test_analytics(self):
        response = self.get(f'/analytics?location={self.lab.pk}&period=7d')

        self.assertEqual(response.status_code, 200)
        self.assertIn('completion_rate', response.json()['data'])
