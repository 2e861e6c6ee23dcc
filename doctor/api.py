"""
Django Ninja API endpoints for doctor dashboards.

Architecture:
    - router: mounted at /api/v1/doctor/, JWT protected
    - @router.get('/studies'): all assigned studies
    - @router.get('/studies/pending'), '/studies/inprogress', '/studies/completed'
    - @router.get('/values'): dashboard category counts
    - @router.get('/stats'): profile card counters
    - @router.get('/profile'): current doctor profile
    - @router.get('/patients/{patient_id}'): patient detail for the doctor
    - @router.post('/studies/{study_id}/start'): start reporting
    - @router.post('/studies/{study_id}/submit'): finalize report

Error Handling:
    - DoctorProfileNotFoundError / StudyNotFoundError / PatientNotFoundError → 404
    - InvalidSearchParameterError → 400
    - DatabaseQueryError → 500
    Domain errors propagate to the handlers registered in config.urls.

See Also:
    - Service: doctor.services.DoctorWorklistService
    - Schemas: doctor.schemas
"""

import logging

from django.http import HttpRequest
from ninja import Query, Router
from ninja_jwt.authentication import JWTAuth

from common.exceptions import DatabaseQueryError
from common.params import parse_int
from doctor.schemas import (
    CompletedWorklistResponse,
    DashboardValues,
    DoctorProfile,
    DoctorStats,
    PatientDetail,
    SubmitReportRequest,
    WorkflowResponse,
    WorklistFilters,
    WorklistResponse,
)
from doctor.services import DoctorWorklistService

logger = logging.getLogger(__name__)

router = Router(auth=JWTAuth())


@router.get('/studies', response=WorklistResponse)
def get_assigned_studies(
    request: HttpRequest,
    filters: Query[WorklistFilters],
    limit: str | None = None,
    page: str | None = None,
):
    """
    Studies assigned to the current doctor.

    Without date parameters the list defaults to studies uploaded today
    (reporting time zone). ``category`` narrows to one dashboard tab,
    ``status`` to an exact workflow status.

    Example:
        GET /api/v1/doctor/studies?category=pending&quick_date_preset=thisWeek&limit=50
    """
    try:
        return DoctorWorklistService.get_assigned_studies(
            request.auth,
            filters.to_service_filters(),
            limit=parse_int(limit),
            page=parse_int(page, 1),
        )
    except DatabaseQueryError as e:
        logger.error(f'Database error fetching assigned studies: {str(e)}')
        raise


@router.get('/studies/pending', response=WorklistResponse)
def get_pending_studies(
    request: HttpRequest,
    filters: Query[WorklistFilters],
    limit: str | None = None,
    page: str | None = None,
):
    """Pending tab: assigned but not yet reported."""
    try:
        return DoctorWorklistService.get_pending_studies(
            request.auth,
            filters.to_service_filters(),
            limit=parse_int(limit),
            page=parse_int(page, 1),
        )
    except DatabaseQueryError as e:
        logger.error(f'Database error fetching pending studies: {str(e)}')
        raise


@router.get('/studies/inprogress', response=WorklistResponse)
def get_in_progress_studies(
    request: HttpRequest,
    filters: Query[WorklistFilters],
    limit: str | None = None,
    page: str | None = None,
):
    """In-progress tab: drafted, finalized or uploaded reports."""
    try:
        return DoctorWorklistService.get_in_progress_studies(
            request.auth,
            filters.to_service_filters(),
            limit=parse_int(limit),
            page=parse_int(page, 1),
        )
    except DatabaseQueryError as e:
        logger.error(f'Database error fetching in-progress studies: {str(e)}')
        raise


@router.get('/studies/completed', response=CompletedWorklistResponse)
def get_completed_studies(
    request: HttpRequest,
    filters: Query[WorklistFilters],
    limit: str | None = None,
    page: str | None = None,
):
    """
    Completed tab.

    Date presets apply to the doctor's assignment time. Default limit 100,
    maximum 1000. Sorted by report finalization, newest first.
    """
    try:
        return DoctorWorklistService.get_completed_studies(
            request.auth,
            filters.to_service_filters(),
            limit=parse_int(limit),
            page=parse_int(page, 1),
        )
    except DatabaseQueryError as e:
        logger.error(f'Database error fetching completed studies: {str(e)}')
        raise


@router.get('/values', response=DashboardValues)
def get_dashboard_values(request: HttpRequest, filters: Query[WorklistFilters]):
    """Category counts for the dashboard tabs (category/status are ignored)."""
    try:
        return DoctorWorklistService.get_dashboard_values(request.auth, filters.to_service_filters())
    except DatabaseQueryError as e:
        logger.error(f'Database error fetching dashboard values: {str(e)}')
        raise


@router.get('/stats', response=DoctorStats)
def get_doctor_stats(request: HttpRequest):
    return DoctorWorklistService.get_doctor_stats(request.auth)


@router.get('/profile', response=DoctorProfile)
def get_current_doctor_profile(request: HttpRequest):
    return DoctorWorklistService.get_current_profile(request.auth)


@router.get('/patients/{patient_id}', response=PatientDetail)
def get_patient_detailed_view(request: HttpRequest, patient_id: str):
    """Patient card plus the doctor's studies for that patient."""
    return DoctorWorklistService.get_patient_detailed_view(request.auth, patient_id)


@router.post('/studies/{study_id}/start', response=WorkflowResponse)
def start_report(request: HttpRequest, study_id: int):
    """Move an assigned study to ``report_in_progress``."""
    return DoctorWorklistService.start_report(request.auth, study_id)


@router.post('/studies/{study_id}/submit', response=WorkflowResponse)
def submit_report(request: HttpRequest, study_id: int, payload: SubmitReportRequest):
    """
    Finalize the report for an assigned study.

    Example:
        POST /api/v1/doctor/studies/42/submit
        {
            "report_content": "<p>...</p>",
            "findings": "No acute abnormality.",
            "impression": "Normal study.",
            "recommendations": ""
        }
    """
    return DoctorWorklistService.submit_report(
        request.auth,
        study_id,
        report_content=payload.report_content,
        findings=payload.findings,
        impression=payload.impression,
        recommendations=payload.recommendations,
    )
