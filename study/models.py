"""
Study models - radiology studies and the records attached to them.

This module provides the data model read by the doctor worklists and the
TAT reports:

    Lab ──< Study >── Patient
              │
              ├──< StudyAssignment >── Doctor
              ├──< StudyReport
              └──< StatusHistory

Design Principles:
    - Study is the unit of work; everything a worklist row needs is either on
      the study or one join away (patient, lab, latest assignment, reports)
    - Timestamps are aware datetimes stored in UTC; display conversion to the
      reporting time zone happens in study.formatters
    - ``calculated_tat`` holds the pre-computed TAT snapshot written when the
      workflow changes; readers fall back to an on-the-fly calculation
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from study.status import WorkflowStatus


class Lab(models.Model):
    """Source lab / imaging centre that uploads studies."""

    name = models.CharField(max_length=200, help_text='Display name of the lab')
    identifier = models.CharField(
        max_length=50,
        unique=True,
        help_text='Short lab code shown next to the name',
    )
    is_active = models.BooleanField(default=True, db_index=True)

    class Meta:
        db_table = 'labs'
        ordering = ['name']

    def __str__(self) -> str:
        return f'{self.name} ({self.identifier})'


class Patient(models.Model):
    """Patient demographics and clinical context shared by their studies."""

    patient_id = models.CharField(
        max_length=100,
        unique=True,
        help_text='Business patient identifier (MRN) from the source system',
    )
    first_name = models.CharField(max_length=100, blank=True, default='')
    last_name = models.CharField(max_length=100, blank=True, default='')
    # DICOM PatientName as received, e.g. "DOE^JOHN"
    patient_name_raw = models.CharField(max_length=200, blank=True, default='')
    full_name = models.CharField(
        max_length=200,
        blank=True,
        default='',
        db_index=True,
        help_text='Computed display name',
    )
    age_string = models.CharField(max_length=20, blank=True, default='')
    gender = models.CharField(max_length=10, blank=True, default='')
    date_of_birth = models.DateField(null=True, blank=True)
    phone = models.CharField(max_length=50, blank=True, default='')
    email = models.EmailField(blank=True, default='')
    address = models.TextField(blank=True, default='')
    clinical_history = models.TextField(blank=True, default='')
    previous_injury = models.TextField(blank=True, default='')
    previous_surgery = models.TextField(blank=True, default='')
    referral_info = models.TextField(blank=True, default='')
    documents = models.JSONField(
        default=list,
        blank=True,
        help_text='Attached document descriptors: [{file_name, file_type, uploaded_at, ...}]',
    )

    class Meta:
        db_table = 'patients'
        ordering = ['patient_id']

    def __str__(self) -> str:
        return f'{self.patient_id} {self.display_name}'

    @property
    def display_name(self) -> str:
        """Full name, then "last, first", then the raw DICOM name."""
        if self.full_name:
            return self.full_name
        if self.first_name or self.last_name:
            return ', '.join(part for part in (self.last_name, self.first_name) if part)
        return self.patient_name_raw


class Study(models.Model):
    """
    A radiology study uploaded by a lab and reported by a doctor.

    Data Organization:
        1. DICOM identification (study_instance_uid, orthanc_study_id, accession_number)
        2. Relations (patient, source_lab)
        3. Workflow (workflow_status, case_type, report timestamps)
        4. Study details (modality, descriptions, series/instance counts, study date/time)
        5. Pre-processed download archive (zip_*)
        6. Pre-computed TAT snapshot (calculated_tat)
    """

    # ========== IDENTIFIERS ==========

    study_instance_uid = models.CharField(max_length=128, unique=True)
    orthanc_study_id = models.CharField(max_length=64, blank=True, default='')
    accession_number = models.CharField(max_length=64, blank=True, default='', db_index=True)

    # ========== RELATIONS ==========

    patient = models.ForeignKey(
        Patient,
        on_delete=models.PROTECT,
        related_name='studies',
        null=True,
        blank=True,
    )
    source_lab = models.ForeignKey(
        Lab,
        on_delete=models.PROTECT,
        related_name='studies',
        null=True,
        blank=True,
    )

    # ========== WORKFLOW ==========

    workflow_status = models.CharField(
        max_length=40,
        choices=WorkflowStatus.CHOICES,
        default=WorkflowStatus.NEW_STUDY_RECEIVED,
        db_index=True,
    )
    case_type = models.CharField(
        max_length=20,
        blank=True,
        default='routine',
        help_text='routine / urgent / emergency as sent by the lab',
    )
    report_available = models.BooleanField(default=False)
    report_started_at = models.DateTimeField(null=True, blank=True)
    report_finalized_at = models.DateTimeField(null=True, blank=True, db_index=True)
    reporter_name = models.CharField(max_length=200, blank=True, default='')

    # ========== STUDY DETAILS ==========

    modality = models.CharField(max_length=16, blank=True, default='', db_index=True)
    modalities_in_study = models.JSONField(default=list, blank=True)
    exam_description = models.CharField(max_length=255, blank=True, default='')
    study_description = models.CharField(max_length=255, blank=True, default='')
    series_images = models.CharField(
        max_length=32,
        blank=True,
        default='',
        help_text='Pre-rendered "series/instances" string',
    )
    series_count = models.PositiveIntegerField(default=0)
    instance_count = models.PositiveIntegerField(default=0)
    study_date = models.DateField(null=True, blank=True, db_index=True)
    # DICOM StudyTime, HHMMSS[.frac]
    study_time = models.CharField(max_length=16, blank=True, default='')
    age = models.CharField(max_length=20, blank=True, default='')
    gender = models.CharField(max_length=10, blank=True, default='')
    clinical_history = models.TextField(blank=True, default='')
    referred_by = models.CharField(max_length=200, blank=True, default='')
    institution_name = models.CharField(max_length=200, blank=True, default='')

    # ========== DOWNLOAD ARCHIVE ==========

    zip_status = models.CharField(max_length=20, blank=True, default='not_started')
    zip_url = models.URLField(max_length=500, blank=True, default='')
    zip_file_name = models.CharField(max_length=255, blank=True, default='')
    zip_size_mb = models.FloatField(null=True, blank=True)
    zip_download_count = models.PositiveIntegerField(default=0)
    zip_created_at = models.DateTimeField(null=True, blank=True)
    zip_expires_at = models.DateTimeField(null=True, blank=True)

    # ========== TIMESTAMPS / TAT ==========

    created_at = models.DateTimeField(
        default=timezone.now,
        db_index=True,
        help_text='Upload time',
    )
    updated_at = models.DateTimeField(auto_now=True)
    calculated_tat = models.JSONField(
        null=True,
        blank=True,
        help_text='Pre-computed TAT snapshot, see study.tat.calculate_study_tat',
    )

    class Meta:
        db_table = 'studies'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['workflow_status', 'created_at'], name='idx_study_status_created'),
            models.Index(fields=['source_lab', 'created_at'], name='idx_study_lab_created'),
        ]

    def __str__(self) -> str:
        return f'{self.accession_number or self.study_instance_uid} [{self.workflow_status}]'


class StudyAssignment(models.Model):
    """One assignment of a study to a doctor. A study may be re-assigned."""

    study = models.ForeignKey(Study, on_delete=models.CASCADE, related_name='assignments')
    doctor = models.ForeignKey(
        'doctor.Doctor',
        on_delete=models.CASCADE,
        related_name='assignments',
    )
    assigned_at = models.DateTimeField(default=timezone.now, db_index=True)
    priority = models.CharField(max_length=20, blank=True, default='NORMAL')
    assigned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )

    class Meta:
        db_table = 'study_assignments'
        ordering = ['-assigned_at']
        indexes = [
            models.Index(fields=['doctor', 'assigned_at'], name='idx_assignment_doctor_time'),
        ]

    def __str__(self) -> str:
        return f'{self.study_id} -> {self.doctor_id} @ {self.assigned_at:%Y-%m-%d %H:%M}'


class StudyReport(models.Model):
    """Report written by a doctor for a study."""

    study = models.ForeignKey(Study, on_delete=models.CASCADE, related_name='reports')
    doctor = models.ForeignKey(
        'doctor.Doctor',
        on_delete=models.SET_NULL,
        null=True,
        related_name='reports',
    )
    content = models.TextField(blank=True, default='')
    findings = models.TextField(blank=True, default='')
    impression = models.TextField(blank=True, default='')
    recommendations = models.TextField(blank=True, default='')
    finalized_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        db_table = 'study_reports'
        ordering = ['-created_at']

    def to_dict(self) -> dict:
        return {
            'id': self.pk,
            'content': self.content,
            'findings': self.findings,
            'impression': self.impression,
            'recommendations': self.recommendations,
            'finalized_at': self.finalized_at.isoformat() if self.finalized_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class StatusHistory(models.Model):
    """Audit trail of workflow status changes."""

    study = models.ForeignKey(Study, on_delete=models.CASCADE, related_name='status_history')
    status = models.CharField(max_length=40, choices=WorkflowStatus.CHOICES)
    changed_at = models.DateTimeField(default=timezone.now)
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='+',
    )
    note = models.CharField(max_length=255, blank=True, default='')

    class Meta:
        db_table = 'study_status_history'
        ordering = ['changed_at']
