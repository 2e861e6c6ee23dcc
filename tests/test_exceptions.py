"""
Test cases for the exception hierarchy and error envelope.
"""

from django.test import TestCase

from common.exceptions import (
    DatabaseQueryError,
    DoctorProfileNotFoundError,
    InvalidSearchParameterError,
    MissingParameterError,
    PatientNotFoundError,
    ReportingServiceError,
    StudyNotFoundError,
    get_error_code,
    get_http_status,
    to_error_dict,
)


class ErrorMappingTests(TestCase):
    def test_http_status(self):
        self.assertEqual(get_http_status(DoctorProfileNotFoundError(1)), 404)
        self.assertEqual(get_http_status(StudyNotFoundError(42)), 404)
        self.assertEqual(get_http_status(PatientNotFoundError('P-1')), 404)
        self.assertEqual(get_http_status(InvalidSearchParameterError('limit', 'x', 'Must be int')), 400)
        self.assertEqual(get_http_status(MissingParameterError('location')), 400)
        self.assertEqual(get_http_status(DatabaseQueryError('Fetch', Exception('boom'))), 500)
        self.assertEqual(get_http_status(ValueError('other')), 500)

    def test_error_codes(self):
        self.assertEqual(get_error_code(StudyNotFoundError(42)), 'STUDY_NOT_FOUND')
        self.assertEqual(get_error_code(MissingParameterError('location')), 'MISSING_PARAMETER')
        self.assertEqual(get_error_code(ReportingServiceError('x')), 'REPORTING_SERVICE_ERROR')

    def test_missing_parameter_message(self):
        self.assertEqual(str(MissingParameterError('location')), 'Location is required')
        self.assertEqual(str(MissingParameterError('lab_id', 'Lab')), 'Lab is required')

    def test_study_not_found_hides_ownership(self):
        self.assertEqual(str(StudyNotFoundError(42)), 'Study not found or not assigned to you')

    def test_database_error_message(self):
        exc = DatabaseQueryError('Fetch assigned studies', RuntimeError('timeout'))

        self.assertIn('Fetch assigned studies', str(exc))
        self.assertIn('RuntimeError: timeout', str(exc))


class ErrorDictTests(TestCase):
    def test_invalid_parameter_envelope(self):
        exc = InvalidSearchParameterError('to_date', '2025-13-01', 'Invalid month')

        result = to_error_dict(exc, 'req-123')

        self.assertFalse(result['success'])
        self.assertEqual(result['message'], 'Invalid to_date=2025-13-01: Invalid month')
        self.assertEqual(result['error']['code'], 'INVALID_SEARCH_PARAMETER')
        self.assertEqual(result['error']['details'], {
            'param': 'to_date', 'value': '2025-13-01', 'reason': 'Invalid month',
        })
        self.assertEqual(result['error']['request_id'], 'req-123')

    def test_public_message_override(self):
        result = to_error_dict(RuntimeError('secret'), message='Internal server error')

        self.assertEqual(result['message'], 'Internal server error')
        self.assertNotIn('request_id', result['error'])

    def test_study_details(self):
        result = to_error_dict(StudyNotFoundError(42))

        self.assertEqual(result['error']['details'], {'study_id': '42'})
