"""
Business logic layer for turnaround-time (TAT) reporting.

Architecture:
    TATReportService
    ├── Lookups (cached): get_locations(), get_statuses()
    ├── Report (cached per parameter set): get_report()
    ├── Export: export_report()
    └── Analytics (cached): get_analytics()

Each study's TAT comes from its stored ``calculated_tat`` snapshot, falling
back to study.tat.calculate_study_tat when the snapshot is missing.

Caching:
    All cached results go through common.cache.cached, which degrades to a
    direct query when the cache backend is unavailable.
"""

import logging
import math
import time
from datetime import timedelta
from statistics import mean
from typing import Any, Optional

from django.db import DatabaseError
from django.db.models import Q, QuerySet
from django.utils import timezone

from common.cache import build_cache_key, cached
from common.config import CacheConfig, TATConfig
from common.date_range import reporting_timezone, resolve_day_window
from common.exceptions import DatabaseQueryError, InvalidSearchParameterError, MissingParameterError
from common.export_service import ExportConfig, ExportService
from study.formatters import project_tat_row
from study.models import Lab, Study, StudyAssignment
from study.status import WorkflowStatus
from study.tat import format_hours_minutes, resolve_study_tat

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


def _rounded_mean(values: list[Optional[float]]) -> int:
    present = [v for v in values if v is not None]
    if not present:
        return 0
    return int(math.floor(mean(present) + 0.5))


class TATReportService:
    """Service layer for TAT reports, exports and analytics."""

    # ========== LOOKUPS ==========

    @staticmethod
    def _locations_from_db() -> list[dict[str, str]]:
        return [
            {'value': str(lab.pk), 'label': lab.name, 'code': lab.identifier}
            for lab in Lab.objects.filter(is_active=True).order_by('name')
        ]

    @staticmethod
    def get_locations() -> dict[str, Any]:
        """Active labs for the location dropdown (cached 1h)."""
        started = time.time()
        try:
            locations, from_cache = cached(
                CacheConfig.TAT_LOCATIONS_KEY,
                CacheConfig.TAT_LOCATIONS_TTL,
                TATReportService._locations_from_db,
            )
        except DatabaseError as e:
            raise DatabaseQueryError('Fetch TAT locations', e) from e
        return {
            'success': True,
            'locations': locations,
            'performance': {'query_time': _elapsed_ms(started), 'from_cache': from_cache},
        }

    @staticmethod
    def get_statuses() -> dict[str, Any]:
        """Status filter options (cached 24h)."""
        started = time.time()
        statuses, from_cache = cached(
            CacheConfig.TAT_STATUSES_KEY,
            CacheConfig.TAT_STATUSES_TTL,
            lambda: [
                {'value': status, 'label': WorkflowStatus.label(status)}
                for status in WorkflowStatus.REPORTABLE
            ],
        )
        return {
            'success': True,
            'statuses': statuses,
            'performance': {'query_time': _elapsed_ms(started), 'from_cache': from_cache},
        }

    # ========== REPORT QUERY ==========

    @staticmethod
    def _find_lab(location: str) -> Optional[Lab]:
        """Lab by primary key, then by identifier, so numeric identifiers still resolve."""
        location = str(location)
        lab = None
        if location.isdigit():
            lab = Lab.objects.filter(pk=int(location)).first()
        return lab or Lab.objects.filter(identifier=location).first()

    @staticmethod
    def _location_q(location: Optional[str]) -> Q:
        if not location:
            raise MissingParameterError('location')
        try:
            lab = TATReportService._find_lab(location)
        except DatabaseError as e:
            raise DatabaseQueryError('Resolve TAT location', e) from e
        if lab is None:
            return Q(pk__in=[])
        return Q(source_lab_id=lab.pk)

    @staticmethod
    def build_report_queryset(
        location: Optional[str],
        date_type: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        status: Optional[str] = None,
    ) -> QuerySet:
        """Studies of one location, filtered by a day window on ``date_type``.

        Raises:
            MissingParameterError: no location
            InvalidSearchParameterError: unknown date_type or malformed dates
        """
        date_type = date_type or TATConfig.DEFAULT_DATE_TYPE
        if date_type not in TATConfig.DATE_TYPES:
            raise InvalidSearchParameterError(
                'date_type', date_type, f'Must be one of: {", ".join(TATConfig.DATE_TYPES)}'
            )

        q = TATReportService._location_q(location)

        window = resolve_day_window(from_date, to_date)
        if window.is_bounded:
            field = TATConfig.DATE_TYPES[date_type]
            if date_type == 'studyDate':
                tz = reporting_timezone()
                q &= Q(
                    study_date__gte=window.start.astimezone(tz).date(),
                    study_date__lte=window.end.astimezone(tz).date(),
                )
            elif date_type == 'assignedDate':
                assigned = StudyAssignment.objects.filter(
                    assigned_at__gte=window.start,
                    assigned_at__lte=window.end,
                )
                q &= Q(id__in=assigned.values('study_id'))
            else:
                q &= Q(**{f'{field}__gte': window.start, f'{field}__lte': window.end})

        if status:
            q &= Q(workflow_status=status)

        return (
            Study.objects
            .filter(q)
            .select_related('patient', 'source_lab')
            .prefetch_related('assignments__doctor__user')
            .order_by('-created_at')
        )

    # ========== REPORT ==========

    @staticmethod
    def _report_from_db(
        location: str,
        date_type: Optional[str],
        from_date: Optional[str],
        to_date: Optional[str],
        status: Optional[str],
        page: int,
        limit: int,
    ) -> dict[str, Any]:
        queryset = TATReportService.build_report_queryset(location, date_type, from_date, to_date, status)
        offset = (page - 1) * limit
        try:
            total = queryset.count()
            studies = list(queryset[offset:offset + limit])
        except DatabaseError as e:
            logger.error(f'TAT report query failed for location {location}: {str(e)}')
            raise DatabaseQueryError('TAT report', e) from e

        now = timezone.now()
        rows = [project_tat_row(study, now) for study in studies]
        reported = [row['full_tat_details'] for row in rows if row['reported_date']]
        total_pages = math.ceil(total / limit) if total else 0

        return {
            'success': True,
            'data': rows,
            'summary': {
                'total_studies': total,
                'reported_studies': len(reported),
                'average_upload_to_report': _rounded_mean(
                    [tat.get('upload_to_report_tat') for tat in reported]
                ),
                'average_assign_to_report': _rounded_mean(
                    [tat.get('assignment_to_report_tat') for tat in reported]
                ),
            },
            'pagination': {
                'current_page': page,
                'total_pages': total_pages,
                'total_records': total,
                'limit': limit,
                'has_next_page': page < total_pages,
                'has_prev_page': page > 1,
            },
        }

    @staticmethod
    def get_report(
        location: Optional[str],
        date_type: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        status: Optional[str] = None,
        page: int = 1,
        limit: Optional[int] = None,
    ) -> dict[str, Any]:
        """Paged TAT report for one location (cached 5 min per parameter set)."""
        started = time.time()
        if not location:
            raise MissingParameterError('location')
        date_type = date_type or TATConfig.DEFAULT_DATE_TYPE
        page = max(page or 1, 1)
        if limit is None or limit < 1:
            limit = TATConfig.DEFAULT_PAGE_SIZE
        limit = min(limit, TATConfig.MAX_PAGE_SIZE)

        key = build_cache_key(
            CacheConfig.TAT_REPORT_PREFIX, location, date_type, from_date, to_date, status, page, limit
        )
        report, from_cache = cached(
            key,
            CacheConfig.TAT_REPORT_TTL,
            lambda: TATReportService._report_from_db(
                location, date_type, from_date, to_date, status, page, limit
            ),
        )

        logger.info(
            f'TAT report location={location} date_type={date_type} '
            f'rows={len(report["data"])}/{report["summary"]["total_studies"]} '
            f'from_cache={from_cache} in {_elapsed_ms(started)}ms'
        )
        return {
            **report,
            'performance': {'query_time': _elapsed_ms(started), 'from_cache': from_cache},
        }

    # ========== EXPORT ==========

    @staticmethod
    def export_report(
        location: Optional[str],
        date_type: Optional[str] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        status: Optional[str] = None,
        format: str = ExportConfig.DEFAULT_EXPORT_FORMAT,
    ) -> tuple[bytes, str, str]:
        """Full TAT report as a spreadsheet.

        Returns:
            (file content, filename, content type)
        """
        started = time.time()
        format = ExportService.validate_format(format)
        queryset = TATReportService.build_report_queryset(location, date_type, from_date, to_date, status)

        try:
            studies = queryset[:ExportConfig.MAX_EXPORT_RECORDS].iterator(
                chunk_size=ExportConfig.EXPORT_BATCH_SIZE
            )
            export_data = ExportService.prepare_export_data(studies)
        except DatabaseError as e:
            logger.error(f'TAT export query failed for location {location}: {str(e)}')
            raise DatabaseQueryError('TAT export', e) from e

        content = ExportService.export(export_data, format)
        lab = TATReportService._find_lab(location)
        filename = ExportService.generate_export_filename(lab.identifier if lab else location, format)

        logger.info(
            f'TAT export location={location} format={format} rows={len(export_data)} '
            f'in {_elapsed_ms(started)}ms'
        )
        return content, filename, ExportService.get_content_type(format)

    # ========== ANALYTICS ==========

    @staticmethod
    def _analytics_from_db(location: str, days: int) -> dict[str, Any]:
        now = timezone.now()
        queryset = (
            Study.objects
            .filter(TATReportService._location_q(location), created_at__gte=now - timedelta(days=days))
            .prefetch_related('assignments')
        )

        total = completed = overdue = 0
        upload_to_report: list[Optional[float]] = []
        assign_to_report: list[Optional[float]] = []
        try:
            for study in queryset.iterator(chunk_size=ExportConfig.EXPORT_BATCH_SIZE):
                tat = resolve_study_tat(study, now)
                total += 1
                completed += 1 if tat.get('is_completed') else 0
                overdue += 1 if tat.get('is_overdue') else 0
                upload_to_report.append(tat.get('upload_to_report_tat'))
                assign_to_report.append(tat.get('assignment_to_report_tat'))
        except DatabaseError as e:
            logger.error(f'TAT analytics query failed for location {location}: {str(e)}')
            raise DatabaseQueryError('TAT analytics', e) from e

        present_upload = [v for v in upload_to_report if v is not None]
        present_assign = [v for v in assign_to_report if v is not None]
        return {
            'total_studies': total,
            'completed_studies': completed,
            'overdue_studies': overdue,
            'completion_rate': f'{(completed / total * 100) if total else 0:.1f}',
            'avg_upload_to_report': format_hours_minutes(mean(present_upload) if present_upload else None),
            'avg_assignment_to_report': format_hours_minutes(mean(present_assign) if present_assign else None),
        }

    @staticmethod
    def get_analytics(location: Optional[str], period: Optional[str] = None) -> dict[str, Any]:
        """Completion and TAT averages over the last 7/30/90 days of uploads (cached 15 min)."""
        started = time.time()
        if not location:
            raise MissingParameterError('location')
        period = period or TATConfig.DEFAULT_ANALYTICS_PERIOD
        days = TATConfig.ANALYTICS_PERIODS.get(
            period, TATConfig.ANALYTICS_PERIODS[TATConfig.DEFAULT_ANALYTICS_PERIOD]
        )

        analytics, from_cache = cached(
            build_cache_key(CacheConfig.TAT_ANALYTICS_PREFIX, location, period),
            CacheConfig.TAT_ANALYTICS_TTL,
            lambda: TATReportService._analytics_from_db(location, days),
        )
        return {
            'success': True,
            'data': analytics,
            'performance': {'query_time': _elapsed_ms(started), 'from_cache': from_cache},
        }
