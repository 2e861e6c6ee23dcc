"""
Read-model projection: Study (+ patient, lab, assignments, reports) -> UI row.

The worklist tables and the TAT report show the same study through different
column sets. Every row builder here expects the related data to be loaded by
the caller (``select_related('patient', 'source_lab')`` and
``prefetch_related('assignments__doctor__user', 'reports')``) so a page of rows
costs a fixed number of queries.

Missing values render as ``'N/A'`` in worklist rows and ``'-'`` in TAT rows,
matching what each screen displays.
"""

from datetime import date, datetime, time
from typing import Any, Optional

from django.conf import settings
from django.utils import timezone

from common.config import WorklistConfig
from common.date_range import reporting_timezone
from study.status import category_for_status
from study.tat import first_assignment_time, parse_study_date, resolve_study_tat

DISPLAY_FORMAT = '%d %b %Y %H:%M'
DISPLAY_DATE_FORMAT = '%d %b %Y'
NA = 'N/A'


# ========== PRIMITIVE FORMATTERS ==========


def _parse_dicom_time(value: str) -> Optional[time]:
    digits = (value or '').split('.')[0].replace(':', '')
    if len(digits) < 4 or not digits.isdigit():
        return None
    hour, minute = int(digits[0:2]), int(digits[2:4])
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def format_dicom_datetime(study_date: Any, study_time: Optional[str] = None) -> str:
    """DICOM study date (+ HHMMSS time) as ``"15 Jun 2025 15:20"``.

    The values are shown as recorded by the modality, without zone conversion.
    Date only gives ``"15 Jun 2025"``; no date gives ``'N/A'``.
    """
    day = parse_study_date(study_date)
    if day is None:
        return NA
    parsed_time = _parse_dicom_time(study_time or '')
    if parsed_time is None:
        return day.strftime(DISPLAY_DATE_FORMAT)
    return datetime.combine(day, parsed_time).strftime(DISPLAY_FORMAT)


def to_local(value: Optional[datetime]) -> Optional[datetime]:
    """Aware datetime converted to the reporting time zone."""
    if value is None:
        return None
    if timezone.is_naive(value):
        value = timezone.make_aware(value)
    return value.astimezone(reporting_timezone())


def format_local_datetime(value: Optional[datetime], empty: str = NA) -> str:
    """``"15 Jun 2025 20:50"`` in the reporting time zone."""
    local = to_local(value)
    return local.strftime(DISPLAY_FORMAT) if local else empty


def isoformat(value: Optional[datetime | date]) -> Optional[str]:
    return value.isoformat() if value else None


# ========== RELATED-DATA HELPERS ==========


def latest_assignment(study):
    assignments = list(study.assignments.all())
    if not assignments:
        return None
    return max(assignments, key=lambda a: a.assigned_at)


def latest_report(study):
    reports = list(study.reports.all())
    if not reports:
        return None
    return max(reports, key=lambda r: r.finalized_at or r.created_at)


def patient_display_name(patient, empty: str = NA) -> str:
    if patient is None:
        return empty
    return patient.display_name or empty


def age_gender(study) -> str:
    patient = study.patient
    age = study.age or (patient.age_string if patient else '')
    gender = study.gender or (patient.gender if patient else '')
    if age and gender:
        return f'{age}/{gender}'
    return age or gender or NA


def modality_label(study, empty: str = NA) -> str:
    if study.modalities_in_study:
        return ', '.join(study.modalities_in_study)
    return study.modality or empty


def series_images(study) -> str:
    return study.series_images or f'{study.series_count or 0}/{study.instance_count or 0}'


def download_options(study, now: Optional[datetime] = None) -> dict[str, Any]:
    """Pre-processed ZIP archive state for the download button."""
    now = now or timezone.now()
    not_expired = study.zip_expires_at is None or study.zip_expires_at > now
    return {
        'has_wasabi_zip': bool(study.zip_status == 'completed' and study.zip_url and not_expired),
        'zip_url': study.zip_url or None,
        'file_name': study.zip_file_name or None,
        'size_mb': study.zip_size_mb,
        'download_count': study.zip_download_count,
        'created_at': isoformat(study.zip_created_at),
        'expires_at': isoformat(study.zip_expires_at),
        'zip_status': study.zip_status or 'not_started',
    }


def row_priority(study, assignment=None) -> str:
    """Latest assignment priority, then the case type upper-cased, then NORMAL."""
    assignment = assignment if assignment is not None else latest_assignment(study)
    if assignment is not None and assignment.priority:
        return assignment.priority
    if study.case_type:
        return study.case_type.upper()
    return WorklistConfig.DEFAULT_PRIORITY


def clinical_history(study) -> str:
    if study.clinical_history:
        return study.clinical_history
    if study.patient is not None and study.patient.clinical_history:
        return study.patient.clinical_history
    return ''


# ========== ROW PROJECTIONS ==========


def project_worklist_row(study, now: Optional[datetime] = None) -> dict[str, Any]:
    """Row for the assigned / pending / in-progress worklists."""
    now = now or timezone.now()
    patient = study.patient
    assignment = latest_assignment(study)
    report = latest_report(study)
    tat = resolve_study_tat(study, now)

    return {
        'id': study.pk,
        'orthanc_study_id': study.orthanc_study_id or None,
        'study_instance_uid': study.study_instance_uid,
        'accession_number': study.accession_number or None,
        'patient_id': patient.patient_id if patient else NA,
        'patient_name': patient_display_name(patient),
        'age_gender': age_gender(study),
        'description': study.exam_description or study.study_description or NA,
        'modality': modality_label(study),
        'series_images': series_images(study),
        'location': study.source_lab.name if study.source_lab else NA,
        'study_date_time': format_dicom_datetime(study.study_date, study.study_time),
        'upload_date_time': format_local_datetime(study.created_at),
        'reported_date': isoformat(report.finalized_at or report.created_at) if report else None,
        'download_options': download_options(study, now),
        'workflow_status': study.workflow_status,
        'case_type': study.case_type or WorklistConfig.DEFAULT_CASE_TYPE,
        'current_category': category_for_status(study.workflow_status),
        'tat': tat,
        'total_tat_days': tat.get('total_tat_days'),
        'is_overdue': bool(tat.get('is_overdue')),
        'tat_phase': tat.get('phase'),
        'priority': row_priority(study, assignment),
        'assigned_date': isoformat(assignment.assigned_at) if assignment else None,
        'report_available': study.report_available,
        'clinical_history': clinical_history(study),
    }


def project_completed_row(study, now: Optional[datetime] = None) -> dict[str, Any]:
    """Worklist row plus the report timeline columns of the completed tab."""
    row = project_worklist_row(study, now)
    row.update({
        'created_at': isoformat(study.created_at),
        'report_started_at': isoformat(study.report_started_at),
        'report_finalized_at': isoformat(study.report_finalized_at),
        'reported_by': study.reporter_name or NA,
        # A completed study always has a report
        'report_available': True,
    })
    return row


def reported_by(study, empty: str = '-') -> str:
    """Reporter recorded on the study, else the assigned doctor's name."""
    if study.reporter_name:
        return study.reporter_name
    assignment = latest_assignment(study)
    if assignment is not None and assignment.doctor_id:
        return assignment.doctor.full_name or empty
    return empty


def project_tat_row(study, now: Optional[datetime] = None) -> dict[str, Any]:
    """Row for the TAT report table."""
    tat = resolve_study_tat(study, now)
    patient = study.patient
    assigned_at = first_assignment_time(study)

    return {
        'id': study.pk,
        'study_status': study.workflow_status or '-',
        'patient_id': patient.patient_id if patient else '-',
        'patient_name': patient_display_name(patient, empty='-'),
        'gender': (patient.gender if patient else '') or '-',
        'referred_by': study.referred_by or '-',
        'accession_number': study.accession_number or '-',
        'study_description': study.exam_description or study.study_description or '-',
        'modality': modality_label(study, empty='-'),
        'series_images': f'{study.series_count or 0}/{study.instance_count or 0}',
        'institution_name': study.source_lab.name if study.source_lab else '-',
        'billed_on_study_date': study.study_date.isoformat() if study.study_date else '-',
        'upload_date': format_local_datetime(study.created_at, empty=''),
        'assigned_date': format_local_datetime(assigned_at, empty=''),
        'report_date': format_local_datetime(study.report_finalized_at, empty=''),
        'reported_by': study.reporter_name or NA,
        'reported_date': format_local_datetime(study.report_finalized_at, empty='') or None,
        'diff_study_and_report_tat': tat.get('study_to_report_tat_formatted') or '-',
        'diff_upload_and_report_tat': tat.get('upload_to_report_tat_formatted') or '-',
        'diff_assign_and_report_tat': tat.get('assignment_to_report_tat_formatted') or '-',
        'upload_to_assignment_tat': tat.get('upload_to_assignment_tat_formatted') or '-',
        'timezone': _timezone_label(),
        'calculated_at': tat.get('calculated_at'),
        'full_tat_details': tat,
    }


def project_tat_export_row(study, now: Optional[datetime] = None) -> dict[str, Any]:
    """Spreadsheet row; dates stay datetimes (naive local time) for Excel."""
    tat = resolve_study_tat(study, now)
    patient = study.patient

    def local_naive(value):
        local = to_local(value)
        return local.replace(tzinfo=None) if local else None

    return {
        'Study Status': study.workflow_status or '',
        'Patient ID': patient.patient_id if patient else '',
        'Patient Name': patient_display_name(patient, empty=''),
        'Accession No': study.accession_number or '',
        'Modality': study.modality or modality_label(study, empty=''),
        'Study Date': study.study_date,
        'Upload Date': local_naive(study.created_at),
        'Assigned Date': local_naive(first_assignment_time(study)),
        'Report Date': local_naive(study.report_finalized_at),
        'Upload-to-Assign TAT': tat.get('upload_to_assignment_tat_formatted') or NA,
        'Assign-to-Report TAT': tat.get('assignment_to_report_tat_formatted') or NA,
        'Upload-to-Report TAT': tat.get('upload_to_report_tat_formatted') or NA,
        'Reported By': reported_by(study, empty=''),
    }


def _timezone_label() -> str:
    return getattr(settings, 'REPORTING_TIME_ZONE_LABEL', 'IST')
