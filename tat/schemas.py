"""
Pydantic schemas for the TAT reporting API.
"""

from typing import Any, Optional

from ninja import Field, Schema


class TATReportFilters(Schema):
    """Query parameters shared by the report and export endpoints."""

    location: Optional[str] = Field(None, description='Lab id or lab identifier (required)')
    date_type: Optional[str] = Field(None, description='studyDate / uploadDate / assignedDate / reportDate')
    from_date: Optional[str] = Field(None, description='YYYY-MM-DD')
    to_date: Optional[str] = Field(None, description='YYYY-MM-DD')
    status: Optional[str] = None


class QueryPerformance(Schema):
    query_time: int
    from_cache: bool


class LocationOption(Schema):
    value: str
    label: str
    code: str


class StatusOption(Schema):
    value: str
    label: str


class LocationsResponse(Schema):
    success: bool
    locations: list[LocationOption]
    performance: QueryPerformance


class StatusesResponse(Schema):
    success: bool
    statuses: list[StatusOption]
    performance: QueryPerformance


class TATRow(Schema):
    id: int
    study_status: str
    patient_id: str
    patient_name: str
    gender: str
    referred_by: str
    accession_number: str
    study_description: str
    modality: str
    series_images: str
    institution_name: str
    billed_on_study_date: str
    upload_date: str
    assigned_date: str
    report_date: str
    reported_by: str
    reported_date: Optional[str] = None
    diff_study_and_report_tat: str
    diff_upload_and_report_tat: str
    diff_assign_and_report_tat: str
    upload_to_assignment_tat: str
    timezone: str
    calculated_at: Optional[str] = None
    full_tat_details: dict[str, Any]


class TATSummary(Schema):
    total_studies: int
    reported_studies: int
    average_upload_to_report: int = 0
    average_assign_to_report: int = 0


class TATPagination(Schema):
    current_page: int
    total_pages: int
    total_records: int
    limit: int
    has_next_page: bool
    has_prev_page: bool


class TATReportResponse(Schema):
    success: bool
    data: list[TATRow]
    summary: TATSummary
    pagination: TATPagination
    performance: QueryPerformance


class TATAnalytics(Schema):
    total_studies: int
    completed_studies: int
    overdue_studies: int
    completion_rate: str
    avg_upload_to_report: str
    avg_assignment_to_report: str


class TATAnalyticsResponse(Schema):
    success: bool
    data: TATAnalytics
    performance: QueryPerformance
