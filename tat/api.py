"""
Django Ninja API endpoints for TAT reporting.

Architecture:
    - router: mounted at /api/v1/tat/, JWT protected
    - @router.get('/locations'): location dropdown
    - @router.get('/statuses'): status dropdown
    - @router.get('/report'): paged TAT report for one location
    - @router.get('/report/export'): TAT report as XLSX/CSV attachment
    - @router.get('/analytics'): completion and average TAT for a period

Error Handling:
    - MissingParameterError / InvalidSearchParameterError → 400
    - DatabaseQueryError → 500
"""

import logging

from django.http import HttpRequest, HttpResponse
from ninja import Query, Router
from ninja_jwt.authentication import JWTAuth

from common.exceptions import DatabaseQueryError
from common.params import parse_int
from tat.schemas import (
    LocationsResponse,
    StatusesResponse,
    TATAnalyticsResponse,
    TATReportFilters,
    TATReportResponse,
)
from tat.services import TATReportService

logger = logging.getLogger(__name__)

router = Router(auth=JWTAuth())


@router.get('/locations', response=LocationsResponse)
def get_locations(request: HttpRequest):
    return TATReportService.get_locations()


@router.get('/statuses', response=StatusesResponse)
def get_statuses(request: HttpRequest):
    return TATReportService.get_statuses()


@router.get('/report', response=TATReportResponse)
def get_tat_report(
    request: HttpRequest,
    filters: Query[TATReportFilters],
    page: str | None = None,
    limit: str | None = None,
):
    """
    TAT report for one location.

    ``from_date`` and ``to_date`` filter only when both are present; they are
    inclusive local days in the reporting time zone.

    Example:
        GET /api/v1/tat/report?location=3&date_type=assignedDate&from_date=2025-06-01&to_date=2025-06-15
    """
    try:
        return TATReportService.get_report(
            filters.location,
            date_type=filters.date_type,
            from_date=filters.from_date,
            to_date=filters.to_date,
            status=filters.status,
            page=parse_int(page, 1),
            limit=parse_int(limit),
        )
    except DatabaseQueryError as e:
        logger.error(f'Database error building TAT report: {str(e)}')
        raise


@router.get('/report/export')
def export_tat_report(
    request: HttpRequest,
    filters: Query[TATReportFilters],
    format: str = 'xlsx',
):
    """
    Download the TAT report.

    Example:
        GET /api/v1/tat/report/export?location=LAB01&format=csv
    """
    try:
        content, filename, content_type = TATReportService.export_report(
            filters.location,
            date_type=filters.date_type,
            from_date=filters.from_date,
            to_date=filters.to_date,
            status=filters.status,
            format=format,
        )
    except DatabaseQueryError as e:
        logger.error(f'Database error exporting TAT report: {str(e)}')
        raise

    response = HttpResponse(content, content_type=content_type)
    response['Content-Disposition'] = f'attachment; filename="{filename}"'
    return response


@router.get('/analytics', response=TATAnalyticsResponse)
def get_tat_analytics(request: HttpRequest, location: str | None = None, period: str = '30d'):
    """Completion rate and average TATs over the last 7d / 30d / 90d of uploads."""
    try:
        return TATReportService.get_analytics(location, period)
    except DatabaseQueryError as e:
        logger.error(f'Database error computing TAT analytics: {str(e)}')
        raise
