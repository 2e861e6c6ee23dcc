"""
Workflow statuses and the doctor-facing categories they roll up into.

A doctor's dashboard groups the fine-grained workflow status of a study into
three tabs: ``pending``, ``inprogress`` and ``completed``. ``all`` is their
union. Statuses outside every category (e.g. ``archived``) are ``unknown``.
"""


class WorkflowStatus:
    NEW_STUDY_RECEIVED = 'new_study_received'
    PENDING_ASSIGNMENT = 'pending_assignment'
    ASSIGNED_TO_DOCTOR = 'assigned_to_doctor'
    DOCTOR_OPENED_REPORT = 'doctor_opened_report'
    REPORT_IN_PROGRESS = 'report_in_progress'
    REPORT_DRAFTED = 'report_drafted'
    REPORT_FINALIZED = 'report_finalized'
    REPORT_UPLOADED = 'report_uploaded'
    REPORT_DOWNLOADED_RADIOLOGIST = 'report_downloaded_radiologist'
    REPORT_DOWNLOADED = 'report_downloaded'
    FINAL_REPORT_DOWNLOADED = 'final_report_downloaded'
    ARCHIVED = 'archived'

    CHOICES = [
        (NEW_STUDY_RECEIVED, 'New Study'),
        (PENDING_ASSIGNMENT, 'Pending Assignment'),
        (ASSIGNED_TO_DOCTOR, 'Assigned to Doctor'),
        (DOCTOR_OPENED_REPORT, 'Doctor Opened Report'),
        (REPORT_IN_PROGRESS, 'Report In Progress'),
        (REPORT_DRAFTED, 'Report Drafted'),
        (REPORT_FINALIZED, 'Report Finalized'),
        (REPORT_UPLOADED, 'Report Uploaded'),
        (REPORT_DOWNLOADED_RADIOLOGIST, 'Downloaded by Radiologist'),
        (REPORT_DOWNLOADED, 'Report Downloaded'),
        (FINAL_REPORT_DOWNLOADED, 'Final Report Downloaded'),
        (ARCHIVED, 'Archived'),
    ]

    # Statuses offered by the TAT report status filter
    REPORTABLE = [
        NEW_STUDY_RECEIVED,
        PENDING_ASSIGNMENT,
        ASSIGNED_TO_DOCTOR,
        DOCTOR_OPENED_REPORT,
        REPORT_IN_PROGRESS,
        REPORT_FINALIZED,
        REPORT_UPLOADED,
        REPORT_DOWNLOADED_RADIOLOGIST,
        REPORT_DOWNLOADED,
        FINAL_REPORT_DOWNLOADED,
        ARCHIVED,
    ]

    # A report exists once the study reaches one of these
    REPORTED = [
        REPORT_FINALIZED,
        REPORT_UPLOADED,
        REPORT_DOWNLOADED_RADIOLOGIST,
        REPORT_DOWNLOADED,
        FINAL_REPORT_DOWNLOADED,
        ARCHIVED,
    ]

    @classmethod
    def label(cls, status: str) -> str:
        return dict(cls.CHOICES).get(status, status)


CATEGORY_ALL = 'all'
CATEGORY_PENDING = 'pending'
CATEGORY_INPROGRESS = 'inprogress'
CATEGORY_COMPLETED = 'completed'
CATEGORY_UNKNOWN = 'unknown'

DOCTOR_STATUS_CATEGORIES: dict[str, list[str]] = {
    CATEGORY_PENDING: [
        WorkflowStatus.NEW_STUDY_RECEIVED,
        WorkflowStatus.PENDING_ASSIGNMENT,
        WorkflowStatus.ASSIGNED_TO_DOCTOR,
        WorkflowStatus.DOCTOR_OPENED_REPORT,
        WorkflowStatus.REPORT_IN_PROGRESS,
        WorkflowStatus.REPORT_DOWNLOADED_RADIOLOGIST,
        WorkflowStatus.REPORT_DOWNLOADED,
    ],
    CATEGORY_INPROGRESS: [
        WorkflowStatus.REPORT_FINALIZED,
        WorkflowStatus.REPORT_DRAFTED,
        WorkflowStatus.REPORT_UPLOADED,
    ],
    CATEGORY_COMPLETED: [
        WorkflowStatus.FINAL_REPORT_DOWNLOADED,
    ],
}

CATEGORY_NAMES = [CATEGORY_ALL, *DOCTOR_STATUS_CATEGORIES]


def all_doctor_statuses() -> list[str]:
    return [status for statuses in DOCTOR_STATUS_CATEGORIES.values() for status in statuses]


def statuses_for_category(category: str) -> list[str]:
    """Statuses in a category; ``all`` is the union, unknown names give ``[]``."""
    if category == CATEGORY_ALL:
        return all_doctor_statuses()
    return list(DOCTOR_STATUS_CATEGORIES.get(category, []))


def category_for_status(status: str | None) -> str:
    for category, statuses in DOCTOR_STATUS_CATEGORIES.items():
        if status in statuses:
            return category
    return CATEGORY_UNKNOWN
