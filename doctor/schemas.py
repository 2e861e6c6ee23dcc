"""
Pydantic schemas for the doctor dashboard API.
Type safety through Pydantic validation.
"""

from typing import Any, Optional

from ninja import Field, Schema


# ============================================================================
# Request Schemas
# ============================================================================

class WorklistFilters(Schema):
    """Query parameters shared by the worklist and dashboard endpoints."""

    category: Optional[str] = Field(None, description='all / pending / inprogress / completed')
    status: Optional[str] = Field(None, description='Exact workflow status when no category is given')
    search: Optional[str] = Field(None, description='Free text over accession, UID, descriptions, patient')
    modality: Optional[str] = None
    priority: Optional[str] = None
    lab_id: Optional[int] = None
    patient_name: Optional[str] = Field(None, description='Case-insensitive regex over patient name / id')
    date_type: Optional[str] = Field(None, description='StudyDate filters the study date, otherwise upload time')
    quick_date_preset: Optional[str] = Field(
        None, description='last24h, today, yesterday, thisWeek, thisMonth, assignedToday, custom'
    )
    date_filter: Optional[str] = Field(None, description="'custom' enables custom_date_from/to")
    custom_date_from: Optional[str] = Field(None, description='YYYY-MM-DD')
    custom_date_to: Optional[str] = Field(None, description='YYYY-MM-DD')

    def to_service_filters(self) -> dict[str, Any]:
        return self.model_dump()


class SubmitReportRequest(Schema):
    report_content: str = Field(..., min_length=1)
    findings: str = ''
    impression: str = ''
    recommendations: str = ''


# ============================================================================
# Worklist Schemas
# ============================================================================

class DownloadOptions(Schema):
    has_wasabi_zip: bool
    zip_url: Optional[str] = None
    file_name: Optional[str] = None
    size_mb: Optional[float] = None
    download_count: int = 0
    created_at: Optional[str] = None
    expires_at: Optional[str] = None
    zip_status: str = 'not_started'


class WorklistRow(Schema):
    """One row of a doctor worklist table."""

    id: int
    orthanc_study_id: Optional[str] = None
    study_instance_uid: str
    accession_number: Optional[str] = None
    patient_id: str
    patient_name: str
    age_gender: str
    description: str
    modality: str
    series_images: str
    location: str
    study_date_time: str
    upload_date_time: str
    reported_date: Optional[str] = None
    download_options: DownloadOptions
    workflow_status: str
    case_type: str
    current_category: str
    tat: dict[str, Any]
    total_tat_days: Optional[int] = None
    is_overdue: bool
    tat_phase: Optional[str] = None
    priority: str
    assigned_date: Optional[str] = None
    report_available: bool
    clinical_history: str


class CompletedRow(WorklistRow):
    created_at: Optional[str] = None
    report_started_at: Optional[str] = None
    report_finalized_at: Optional[str] = None
    reported_by: str


class RecordRange(Schema):
    start: int
    end: int


class Pagination(Schema):
    current_page: int
    total_pages: int
    total_records: int
    limit: int
    has_next_page: bool
    has_prev_page: bool
    record_range: RecordRange
    is_single_page: bool


class WorklistSummary(Schema):
    by_category: dict[str, int]
    urgent_studies: int
    total: int


class Performance(Schema):
    query_time: int
    records_returned: Optional[int] = None
    breakdown: Optional[dict[str, int]] = None


class WorklistResponse(Schema):
    success: bool
    count: int
    total_records: int
    data: list[WorklistRow]
    pagination: Pagination
    summary: WorklistSummary
    filters_applied: dict[str, Any]
    performance: Performance


class CompletedWorklistResponse(WorklistResponse):
    data: list[CompletedRow]


# ============================================================================
# Dashboard Schemas
# ============================================================================

class DashboardValues(Schema):
    success: bool
    all: int
    total: int
    pending: int
    inprogress: int
    completed: int
    performance: Performance


class DoctorStats(Schema):
    total_assigned: int
    pending: int
    in_progress: int
    completed: int
    urgent_studies: int
    assignment_stats: dict[str, Any]


class DoctorProfile(Schema):
    id: int
    full_name: str
    email: str
    username: str
    specialization: str
    license_number: str
    department: str
    qualifications: list[Any]
    years_of_experience: Optional[int] = None
    contact_phone_office: str
    signature: str
    signature_metadata: dict[str, Any]
    is_active: bool


# ============================================================================
# Patient Schemas
# ============================================================================

class PatientInfo(Schema):
    patient_id: str
    full_name: str
    first_name: str
    last_name: str
    age: str
    gender: str
    date_of_birth: Optional[str] = None
    contact_phone: str
    contact_email: str
    address: str


class ClinicalInfo(Schema):
    clinical_history: str
    previous_injury: str
    previous_surgery: str


class PatientStudy(Schema):
    id: int
    study_instance_uid: str
    accession_number: str
    study_date: Optional[str] = None
    study_date_time: str
    modality: str
    description: str
    workflow_status: str
    current_category: str
    priority: str
    report_available: bool


class PatientDetail(Schema):
    patient_info: PatientInfo
    clinical_info: ClinicalInfo
    referral_info: str
    studies: list[PatientStudy]
    documents: list[Any]


# ============================================================================
# Workflow Schemas
# ============================================================================

class WorkflowResponse(Schema):
    """Result of start/submit report."""

    success: bool
    message: str
    data: dict[str, Any]
