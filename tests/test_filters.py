"""
Test cases for WorklistQuery.

Test coverage:
- Parameter validation (category, lengths, regex)
- Doctor scope
- Upload / study-date / assignment date windows
- Category and status narrowing
- Attribute filters (search, modality, priority, lab, patient regex)
"""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from django.test import TestCase

from common.date_range import DateRange
from common.exceptions import InvalidSearchParameterError
from doctor.filters import WorklistQuery
from study.models import Study
from study.status import WorkflowStatus
from tests.fixtures.test_data import (
    FIXED_NOW,
    DoctorFactory,
    LabFactory,
    PatientFactory,
    StudyFactory,
)

IST = ZoneInfo('Asia/Kolkata')


def ids(query: WorklistQuery) -> set[int]:
    return set(Study.objects.filter(query.build()).values_list('id', flat=True))


def local_day(year, month, day) -> DateRange:
    return DateRange(
        datetime(year, month, day, 0, 0, tzinfo=IST),
        datetime(year, month, day, 23, 59, 59, 999999, tzinfo=IST),
        'custom',
    )


class WorklistQueryValidationTests(TestCase):
    def test_unknown_category_is_rejected(self):
        with self.assertRaises(InvalidSearchParameterError) as ctx:
            WorklistQuery(doctor_id=1, category='archived')

        self.assertEqual(ctx.exception.param, 'category')

    def test_overlong_search_is_rejected(self):
        with self.assertRaises(InvalidSearchParameterError):
            WorklistQuery(doctor_id=1, search='x' * 201)

    def test_invalid_patient_regex_is_rejected(self):
        with self.assertRaises(InvalidSearchParameterError):
            WorklistQuery(doctor_id=1, patient_name='([unclosed')

    def test_python_only_regex_syntax_is_rejected(self):
        for pattern in ('(?P<n>kir)', '(?P<n>a)(?P=n)', '(a)?(?(1)b|c)'):
            with self.subTest(pattern=pattern):
                with self.assertRaises(InvalidSearchParameterError) as ctx:
                    WorklistQuery(doctor_id=1, patient_name=pattern)

                self.assertEqual(ctx.exception.param, 'patient_name')

    def test_portable_regex_is_accepted(self):
        query = WorklistQuery(doctor_id=1, patient_name='^(kiran|ravi)\\s')

        self.assertEqual(query.patient_name, '^(kiran|ravi)\\s')


class WorklistQueryScopeTests(TestCase):
    def setUp(self):
        self.doctor = DoctorFactory.create()
        self.other = DoctorFactory.create()
        self.mine = StudyFactory.create_assigned(self.doctor)
        self.theirs = StudyFactory.create_assigned(self.other)
        self.unassigned = StudyFactory.create()

    def test_only_doctors_assignments_are_returned(self):
        self.assertEqual(ids(WorklistQuery(doctor_id=self.doctor.pk)), {self.mine.pk})

    def test_study_shared_with_another_doctor_is_visible_to_both(self):
        self.theirs.assignments.create(doctor=self.doctor, assigned_at=FIXED_NOW)

        self.assertEqual(ids(WorklistQuery(doctor_id=self.doctor.pk)), {self.mine.pk, self.theirs.pk})

    def test_statuses_outside_doctor_categories_are_hidden(self):
        StudyFactory.create_assigned(self.doctor, workflow_status=WorkflowStatus.ARCHIVED)

        self.assertEqual(ids(WorklistQuery(doctor_id=self.doctor.pk)), {self.mine.pk})


class WorklistQueryDateTests(TestCase):
    def setUp(self):
        self.doctor = DoctorFactory.create()
        # 2025-06-17 20:00 UTC is 2025-06-18 01:30 IST
        self.late_upload = StudyFactory.create_assigned(
            self.doctor,
            created_at=datetime(2025, 6, 17, 20, 0, tzinfo=ZoneInfo('UTC')),
            study_date=date(2025, 6, 17),
        )
        self.older = StudyFactory.create_assigned(
            self.doctor,
            created_at=FIXED_NOW - timedelta(days=3),
            assigned_at=FIXED_NOW,
            study_date=date(2025, 6, 15),
        )

    def test_upload_window_uses_local_day(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, date_range=local_day(2025, 6, 18))

        self.assertEqual(ids(query), {self.late_upload.pk})

    def test_study_date_type_filters_study_date(self):
        query = WorklistQuery(
            doctor_id=self.doctor.pk, date_type='StudyDate', date_range=local_day(2025, 6, 17)
        )

        self.assertEqual(ids(query), {self.late_upload.pk})

    def test_assignment_window(self):
        query = WorklistQuery(
            doctor_id=self.doctor.pk, date_range=local_day(2025, 6, 18), date_on_assignment=True
        )

        self.assertEqual(ids(query), {self.late_upload.pk, self.older.pk})

    def test_assigned_today_preset_forces_assignment_window(self):
        window = local_day(2025, 6, 18)
        window = DateRange(window.start, window.end, 'assignedToday')

        query = WorklistQuery(doctor_id=self.doctor.pk, date_range=window)

        self.assertIn(self.older.pk, ids(query))

    def test_unbounded_window_is_ignored(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, date_range=DateRange(None, None, 'lastDecade'))

        self.assertEqual(ids(query), {self.late_upload.pk, self.older.pk})


class WorklistQueryStatusTests(TestCase):
    def setUp(self):
        self.doctor = DoctorFactory.create()
        self.pending = StudyFactory.create_assigned(self.doctor)
        self.drafted = StudyFactory.create_assigned(
            self.doctor, workflow_status=WorkflowStatus.REPORT_DRAFTED
        )
        self.done = StudyFactory.create_assigned(
            self.doctor, workflow_status=WorkflowStatus.FINAL_REPORT_DOWNLOADED
        )

    def test_category_narrows(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, category='inprogress')

        self.assertEqual(ids(query), {self.drafted.pk})

    def test_exact_status_without_category(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, status=WorkflowStatus.FINAL_REPORT_DOWNLOADED)

        self.assertEqual(ids(query), {self.done.pk})

    def test_build_without_status_keeps_every_status(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, category='pending')

        matched = Study.objects.filter(query.build(include_status=False)).count()

        self.assertEqual(matched, 3)


class WorklistQueryAttributeTests(TestCase):
    def setUp(self):
        self.doctor = DoctorFactory.create()
        self.lab = LabFactory.create()
        self.ct = StudyFactory.create_assigned(
            self.doctor,
            patient=PatientFactory.create(full_name='Kiran Kumar'),
            accession_number='ACC-CT-77',
            lab=self.lab,
            priority='STAT',
        )
        self.mr = StudyFactory.create_assigned(
            self.doctor,
            patient=PatientFactory.create(full_name='Meera Iyer'),
            modality='MR',
            exam_description='MRI Brain',
        )

    def test_search_matches_accession(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, search='ct-77')

        self.assertEqual(ids(query), {self.ct.pk})

    def test_search_matches_patient_name(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, search='meera')

        self.assertEqual(ids(query), {self.mr.pk})

    def test_modality(self):
        self.assertEqual(ids(WorklistQuery(doctor_id=self.doctor.pk, modality='MR')), {self.mr.pk})

    def test_priority_is_case_insensitive(self):
        self.assertEqual(ids(WorklistQuery(doctor_id=self.doctor.pk, priority='stat')), {self.ct.pk})

    def test_lab(self):
        self.assertEqual(ids(WorklistQuery(doctor_id=self.doctor.pk, lab_id=self.lab.pk)), {self.ct.pk})

    def test_patient_name_regex(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, patient_name='^kir')

        self.assertEqual(ids(query), {self.ct.pk})

    def test_describe_echoes_filters(self):
        query = WorklistQuery(doctor_id=self.doctor.pk, modality='CT', date_range=local_day(2025, 6, 18))

        described = query.describe()

        self.assertEqual(described['modality'], 'CT')
        self.assertEqual(described['date_range']['preset'], 'custom')
