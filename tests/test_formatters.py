"""
Test cases for the study row projections.

Test coverage:
- DICOM and local date-time display strings
- Patient / modality / priority fallbacks
- Worklist, completed and TAT rows
- Export rows with naive local datetimes
"""

from datetime import date, datetime, timedelta
from datetime import timezone as dt_timezone

from django.test import TestCase

from study.formatters import (
    age_gender,
    download_options,
    format_dicom_datetime,
    format_local_datetime,
    project_completed_row,
    project_tat_export_row,
    project_tat_row,
    project_worklist_row,
    row_priority,
)
from study.models import Patient
from study.status import WorkflowStatus
from tests.fixtures.test_data import (
    FIXED_NOW,
    DoctorFactory,
    LabFactory,
    PatientFactory,
    StudyFactory,
)


class PrimitiveFormatterTests(TestCase):
    def test_dicom_datetime(self):
        self.assertEqual(format_dicom_datetime('20250615', '152030'), '15 Jun 2025 15:20')
        self.assertEqual(format_dicom_datetime(date(2025, 6, 15), '15:20:30.123'), '15 Jun 2025 15:20')

    def test_dicom_date_without_time(self):
        self.assertEqual(format_dicom_datetime('20250615', ''), '15 Jun 2025')
        self.assertEqual(format_dicom_datetime('20250615', '9961'), '15 Jun 2025')

    def test_dicom_missing_date(self):
        self.assertEqual(format_dicom_datetime(None, '152030'), 'N/A')

    def test_local_datetime_in_reporting_zone(self):
        value = datetime(2025, 6, 15, 15, 20, tzinfo=dt_timezone.utc)

        self.assertEqual(format_local_datetime(value), '15 Jun 2025 20:50')
        self.assertEqual(format_local_datetime(None), 'N/A')
        self.assertEqual(format_local_datetime(None, empty=''), '')


class FallbackTests(TestCase):
    def test_patient_display_name_fallbacks(self):
        self.assertEqual(Patient(full_name='Asha Menon').display_name, 'Asha Menon')
        self.assertEqual(Patient(first_name='Asha', last_name='Menon').display_name, 'Menon, Asha')
        self.assertEqual(Patient(patient_name_raw='MENON^ASHA').display_name, 'MENON^ASHA')

    def test_age_gender_prefers_study_values(self):
        study = StudyFactory.create(age='046Y', gender='')

        self.assertEqual(age_gender(study), '046Y/F')

    def test_priority_falls_back_to_case_type(self):
        study = StudyFactory.create(case_type='emergency')

        self.assertEqual(row_priority(study), 'EMERGENCY')

    def test_priority_defaults_to_normal(self):
        study = StudyFactory.create(case_type='')

        self.assertEqual(row_priority(study), 'NORMAL')

    def test_expired_zip_is_not_downloadable(self):
        study = StudyFactory.create(
            zip_status='completed',
            zip_url='https://files.example.com/a.zip',
            zip_expires_at=FIXED_NOW - timedelta(days=1),
        )

        self.assertFalse(download_options(study, FIXED_NOW)['has_wasabi_zip'])


class WorklistRowTests(TestCase):
    def setUp(self):
        self.doctor = DoctorFactory.create()
        self.lab = LabFactory.create(name='Sunrise Imaging')
        self.study = StudyFactory.create_assigned(
            self.doctor,
            lab=self.lab,
            priority='URGENT',
            patient=PatientFactory.create(patient_id='P-100', clinical_history='Chest pain'),
        )

    def test_worklist_row(self):
        row = project_worklist_row(self.study, FIXED_NOW + timedelta(hours=1))

        self.assertEqual(row['patient_id'], 'P-100')
        self.assertEqual(row['patient_name'], 'Asha Menon')
        self.assertEqual(row['age_gender'], '045Y/F')
        self.assertEqual(row['location'], 'Sunrise Imaging')
        self.assertEqual(row['series_images'], '3/120')
        self.assertEqual(row['study_date_time'], '18 Jun 2025 10:15')
        self.assertEqual(row['upload_date_time'], '18 Jun 2025 17:30')
        self.assertEqual(row['current_category'], 'pending')
        self.assertEqual(row['priority'], 'URGENT')
        self.assertEqual(row['clinical_history'], 'Chest pain')
        self.assertEqual(row['tat']['upload_to_assignment_tat'], 30)
        self.assertFalse(row['is_overdue'])
        self.assertIsNone(row['reported_date'])

    def test_row_without_lab(self):
        study = StudyFactory.create_assigned(self.doctor)

        self.assertEqual(project_worklist_row(study, FIXED_NOW)['location'], 'N/A')

    def test_completed_row_has_report_columns(self):
        self.study.workflow_status = WorkflowStatus.FINAL_REPORT_DOWNLOADED
        self.study.report_finalized_at = FIXED_NOW + timedelta(hours=2)
        self.study.reporter_name = 'Ravi Rao'

        row = project_completed_row(self.study, FIXED_NOW + timedelta(hours=3))

        self.assertEqual(row['reported_by'], 'Ravi Rao')
        self.assertTrue(row['report_available'])
        self.assertEqual(row['report_finalized_at'], (FIXED_NOW + timedelta(hours=2)).isoformat())
        self.assertEqual(row['current_category'], 'completed')


class TATRowTests(TestCase):
    def setUp(self):
        self.doctor = DoctorFactory.create(first_name='Ravi', last_name='Rao')
        self.study = StudyFactory.create_assigned(
            self.doctor,
            lab=LabFactory.create(name='Sunrise Imaging'),
            report_finalized_at=FIXED_NOW + timedelta(hours=3),
        )

    def test_tat_row(self):
        row = project_tat_row(self.study, FIXED_NOW + timedelta(days=1))

        self.assertEqual(row['institution_name'], 'Sunrise Imaging')
        self.assertEqual(row['billed_on_study_date'], '2025-06-18')
        self.assertEqual(row['upload_date'], '18 Jun 2025 17:30')
        self.assertEqual(row['assigned_date'], '18 Jun 2025 18:00')
        self.assertEqual(row['report_date'], '18 Jun 2025 20:30')
        self.assertEqual(row['diff_upload_and_report_tat'], '3h')
        self.assertEqual(row['diff_assign_and_report_tat'], '2h 30m')
        self.assertEqual(row['upload_to_assignment_tat'], '30m')
        self.assertEqual(row['timezone'], 'IST')
        self.assertEqual(row['referred_by'], '-')

    def test_export_row_uses_naive_local_datetimes(self):
        row = project_tat_export_row(self.study, FIXED_NOW + timedelta(days=1))

        self.assertEqual(row['Upload Date'], datetime(2025, 6, 18, 17, 30))
        self.assertIsNone(row['Upload Date'].tzinfo)
        self.assertEqual(row['Upload-to-Report TAT'], '3h')
        # No reporter name recorded: the assigned doctor is shown
        self.assertEqual(row['Reported By'], 'Ravi Rao')
