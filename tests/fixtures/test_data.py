"""
Test fixtures and data factories for the reporting tests.

Provides reusable builders for labs, patients, doctors and studies so each
test module only spells out the fields it actually asserts on.
"""

from datetime import date, datetime, timedelta
from datetime import timezone as dt_timezone
from itertools import count
from typing import Any, Optional

from django.contrib.auth import get_user_model
from ninja_jwt.tokens import AccessToken

from doctor.models import Doctor
from study.models import Lab, Patient, Study, StudyAssignment
from study.status import WorkflowStatus

_sequence = count(1)

# Wednesday 2025-06-18 12:00 UTC = 17:30 IST
FIXED_NOW = datetime(2025, 6, 18, 12, 0, tzinfo=dt_timezone.utc)


def _next() -> int:
    return next(_sequence)


class LabFactory:
    @staticmethod
    def create(name: str = 'City Diagnostics', identifier: Optional[str] = None, **overrides) -> Lab:
        n = _next()
        return Lab.objects.create(
            name=name,
            identifier=identifier or f'LAB{n:03d}',
            **overrides,
        )


class PatientFactory:
    @staticmethod
    def create(patient_id: Optional[str] = None, **overrides) -> Patient:
        defaults: dict[str, Any] = {
            'patient_id': patient_id or f'PAT{_next():05d}',
            'first_name': 'Asha',
            'last_name': 'Menon',
            'full_name': 'Asha Menon',
            'age_string': '045Y',
            'gender': 'F',
        }
        defaults.update(overrides)
        return Patient.objects.create(**defaults)


class DoctorFactory:
    """Creates a Django user with an attached doctor profile."""

    @staticmethod
    def create(username: Optional[str] = None, password: str = 'secret-pass', **overrides) -> Doctor:
        user = get_user_model().objects.create_user(
            username=username or f'doctor{_next()}',
            password=password,
            email='doctor@example.com',
            first_name=overrides.pop('first_name', 'Ravi'),
            last_name=overrides.pop('last_name', 'Rao'),
        )
        defaults: dict[str, Any] = {
            'specialization': 'Radiology',
            'license_number': 'KMC-12345',
            'department': 'Imaging',
        }
        defaults.update(overrides)
        return Doctor.objects.create(user=user, **defaults)


class StudyFactory:
    """
    Factory for Study rows.

    ``create`` builds an unassigned study; ``create_assigned`` also links it
    to a doctor, which is what every doctor-scoped query needs.
    """

    @staticmethod
    def create(
        patient: Optional[Patient] = None,
        lab: Optional[Lab] = None,
        workflow_status: str = WorkflowStatus.ASSIGNED_TO_DOCTOR,
        created_at: Optional[datetime] = None,
        **overrides,
    ) -> Study:
        n = _next()
        defaults: dict[str, Any] = {
            'study_instance_uid': f'1.2.840.113619.2.{n}',
            'accession_number': f'ACC{n:05d}',
            'patient': patient or PatientFactory.create(),
            'source_lab': lab,
            'workflow_status': workflow_status,
            'modality': 'CT',
            'exam_description': 'CT Chest',
            'study_date': date(2025, 6, 18),
            'study_time': '101500',
            'series_count': 3,
            'instance_count': 120,
            'created_at': created_at or FIXED_NOW,
        }
        defaults.update(overrides)
        return Study.objects.create(**defaults)

    @staticmethod
    def create_assigned(
        doctor: Doctor,
        assigned_at: Optional[datetime] = None,
        priority: str = 'NORMAL',
        **overrides,
    ) -> Study:
        study = StudyFactory.create(**overrides)
        StudyAssignment.objects.create(
            study=study,
            doctor=doctor,
            assigned_at=assigned_at or (study.created_at + timedelta(minutes=30)),
            priority=priority,
        )
        return study


class AuthHelper:
    @staticmethod
    def bearer(user) -> dict[str, str]:
        """Client kwargs carrying a JWT access token for ``user``."""
        return {'HTTP_AUTHORIZATION': f'Bearer {AccessToken.for_user(user)}'}
