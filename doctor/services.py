"""
Business logic layer for doctor dashboards and report submission.

Architecture:
    DoctorWorklistService
    ├── Profile: get_doctor(), get_current_profile()
    ├── Worklists: get_assigned_studies(), get_pending_studies(),
    │              get_in_progress_studies(), get_completed_studies()
    ├── Dashboard: get_dashboard_values(), get_doctor_stats()
    ├── Patient: get_patient_detailed_view()
    └── Workflow: start_report(), submit_report()

Every read is scoped to studies assigned to the requesting doctor; the
scope lives in doctor.filters.WorklistQuery.

See Also:
    - Filters: doctor.filters.WorklistQuery
    - Row projection: study.formatters
    - Date presets: common.date_range.resolve_date_range
"""

import logging
import math
import time
from collections.abc import Callable
from typing import Any, Optional

from django.db import DatabaseError, transaction
from django.db.models import Count, F, OuterRef, Q, QuerySet, Subquery
from django.utils import timezone

from common.config import WorklistConfig
from common.date_range import resolve_date_range
from common.exceptions import (
    DatabaseQueryError,
    DoctorProfileNotFoundError,
    PatientNotFoundError,
    StudyNotFoundError,
)
from doctor.filters import WorklistQuery
from doctor.models import Doctor
from study.formatters import (
    format_dicom_datetime,
    project_completed_row,
    project_worklist_row,
    row_priority,
)
from study.models import Patient, StatusHistory, Study, StudyAssignment, StudyReport
from study.status import (
    CATEGORY_ALL,
    CATEGORY_COMPLETED,
    CATEGORY_INPROGRESS,
    CATEGORY_PENDING,
    DOCTOR_STATUS_CATEGORIES,
    WorkflowStatus,
    category_for_status,
)
from study.tat import refresh_study_tat

logger = logging.getLogger(__name__)


def clamp_limit(limit: Optional[int], default: int, maximum: int) -> int:
    """Missing or non-positive limits use the default; large ones are capped."""
    if limit is None or limit < 1:
        return default
    return min(limit, maximum)


def _elapsed_ms(start: float) -> int:
    return int((time.time() - start) * 1000)


class DoctorWorklistService:
    """
    Service layer for doctor-facing operations.

    Methods take the authenticated Django user and resolve the doctor
    profile themselves, so API functions stay thin.
    """

    # ========== PROFILE ==========

    @staticmethod
    def get_doctor(user) -> Doctor:
        """Doctor profile of ``user``.

        Raises:
            DoctorProfileNotFoundError: user has no doctor profile
        """
        doctor = Doctor.objects.select_related('user').filter(user_id=user.pk).first()
        if doctor is None:
            logger.warning(f'No doctor profile for user {user.pk}')
            raise DoctorProfileNotFoundError(user.pk)
        return doctor

    @staticmethod
    def get_current_profile(user) -> dict[str, Any]:
        return DoctorWorklistService.get_doctor(user).to_dict()

    # ========== QUERY HELPERS ==========

    @staticmethod
    def build_query(doctor: Doctor, filters: dict[str, Any], **overrides) -> WorklistQuery:
        """WorklistQuery from request filters (date controls resolved here)."""
        params = dict(filters)
        date_range = resolve_date_range(
            quick_date_preset=params.pop('quick_date_preset', None),
            date_filter=params.pop('date_filter', None),
            custom_date_from=params.pop('custom_date_from', None),
            custom_date_to=params.pop('custom_date_to', None),
        )
        params.update(overrides)
        return WorklistQuery(doctor_id=doctor.pk, date_range=date_range, **params)

    @staticmethod
    def _row_queryset() -> QuerySet:
        """Studies with everything the row projection reads."""
        latest_assignment = StudyAssignment.objects.filter(
            study=OuterRef('pk'),
        ).order_by('-assigned_at').values('assigned_at')[:1]

        return (
            Study.objects
            .select_related('patient', 'source_lab')
            .prefetch_related('assignments__doctor__user', 'reports')
            .annotate(latest_assigned_at=Subquery(latest_assignment))
        )

    @staticmethod
    def _fetch_page(
        query: WorklistQuery,
        ordering: list,
        limit: int,
        page: int,
        projector: Callable[..., dict[str, Any]],
        description: str,
    ) -> tuple[list[dict[str, Any]], int, dict[str, int]]:
        """Count, slice and project one page.

        Returns:
            (rows, total, timing breakdown in ms)
        """
        page = max(page or 1, 1)
        offset = (page - 1) * limit
        queryset = DoctorWorklistService._row_queryset().filter(query.build()).order_by(*ordering)

        try:
            count_start = time.time()
            total = queryset.count()
            count_ms = _elapsed_ms(count_start)

            fetch_start = time.time()
            studies = list(queryset[offset:offset + limit])
            fetch_ms = _elapsed_ms(fetch_start)
        except DatabaseError as e:
            logger.error(f'{description} failed: {str(e)}')
            raise DatabaseQueryError(description, e) from e

        logger.debug(f'{description}: filters={query.describe()} total={total}')

        projection_start = time.time()
        now = timezone.now()
        rows = [projector(study, now) for study in studies]
        breakdown = {
            'count_ms': count_ms,
            'fetch_ms': fetch_ms,
            'projection_ms': _elapsed_ms(projection_start),
        }
        return rows, total, breakdown

    @staticmethod
    def _pagination(total: int, page: int, limit: int, returned: int) -> dict[str, Any]:
        page = max(page or 1, 1)
        total_pages = math.ceil(total / limit) if total else 0
        offset = (page - 1) * limit
        return {
            'current_page': page,
            'total_pages': total_pages,
            'total_records': total,
            'limit': limit,
            'has_next_page': page < total_pages,
            'has_prev_page': page > 1,
            'record_range': {
                'start': offset + 1 if returned else 0,
                'end': offset + returned,
            },
            'is_single_page': total_pages <= 1,
        }

    @staticmethod
    def _urgent_count(rows: list[dict[str, Any]]) -> int:
        return sum(
            1 for row in rows
            if (row.get('priority') or '').upper() in WorklistConfig.URGENT_PRIORITIES
        )

    @staticmethod
    def _list_response(
        rows: list[dict[str, Any]],
        total: int,
        page: int,
        limit: int,
        by_category: dict[str, int],
        started: float,
        breakdown: dict[str, int],
        query: WorklistQuery,
    ) -> dict[str, Any]:
        return {
            'success': True,
            'count': len(rows),
            'total_records': total,
            'data': rows,
            'pagination': DoctorWorklistService._pagination(total, page, limit, len(rows)),
            'summary': {
                'by_category': by_category,
                'urgent_studies': DoctorWorklistService._urgent_count(rows),
                'total': total,
            },
            'filters_applied': query.describe(),
            'performance': {
                'query_time': _elapsed_ms(started),
                'records_returned': len(rows),
                'breakdown': breakdown,
            },
        }

    @staticmethod
    def _fixed_category_counts(category: str, total: int) -> dict[str, int]:
        counts = {name: 0 for name in DOCTOR_STATUS_CATEGORIES}
        counts[category] = total
        counts[CATEGORY_ALL] = total
        return counts

    # ========== WORKLISTS ==========

    @staticmethod
    def get_assigned_studies(
        user,
        filters: dict[str, Any],
        limit: Optional[int] = None,
        page: int = 1,
    ) -> dict[str, Any]:
        """All of the doctor's studies, optionally narrowed by category/status.

        ``summary.by_category['all']`` is the filtered total; the per-category
        counts describe the returned page.
        """
        started = time.time()
        doctor = DoctorWorklistService.get_doctor(user)
        limit = clamp_limit(limit, WorklistConfig.DEFAULT_LIMIT, WorklistConfig.MAX_LIMIT)
        query = DoctorWorklistService.build_query(doctor, filters)

        rows, total, breakdown = DoctorWorklistService._fetch_page(
            query,
            [F('latest_assigned_at').desc(nulls_last=True), '-created_at'],
            limit,
            page,
            project_worklist_row,
            'Fetch assigned studies',
        )

        by_category = {CATEGORY_ALL: total}
        for name in DOCTOR_STATUS_CATEGORIES:
            by_category[name] = sum(1 for row in rows if row['current_category'] == name)

        logger.info(
            f'Doctor {doctor.pk} assigned studies: {len(rows)}/{total} in {_elapsed_ms(started)}ms'
        )
        return DoctorWorklistService._list_response(
            rows, total, page, limit, by_category, started, breakdown, query
        )

    @staticmethod
    def _get_category_studies(
        user,
        category: str,
        filters: dict[str, Any],
        limit: Optional[int],
        page: int,
    ) -> dict[str, Any]:
        started = time.time()
        doctor = DoctorWorklistService.get_doctor(user)
        limit = clamp_limit(limit, WorklistConfig.DEFAULT_LIMIT, WorklistConfig.MAX_LIMIT)
        filters = {k: v for k, v in filters.items() if k not in ('category', 'status')}
        query = DoctorWorklistService.build_query(doctor, filters, category=category)

        rows, total, breakdown = DoctorWorklistService._fetch_page(
            query,
            [F('latest_assigned_at').desc(nulls_last=True), '-created_at'],
            limit,
            page,
            project_worklist_row,
            f'Fetch {category} studies',
        )

        logger.info(
            f'Doctor {doctor.pk} {category} studies: {len(rows)}/{total} in {_elapsed_ms(started)}ms'
        )
        return DoctorWorklistService._list_response(
            rows,
            total,
            page,
            limit,
            DoctorWorklistService._fixed_category_counts(category, total),
            started,
            breakdown,
            query,
        )

    @staticmethod
    def get_pending_studies(user, filters: dict[str, Any], limit: Optional[int] = None, page: int = 1):
        return DoctorWorklistService._get_category_studies(user, CATEGORY_PENDING, filters, limit, page)

    @staticmethod
    def get_in_progress_studies(user, filters: dict[str, Any], limit: Optional[int] = None, page: int = 1):
        return DoctorWorklistService._get_category_studies(user, CATEGORY_INPROGRESS, filters, limit, page)

    @staticmethod
    def get_completed_studies(
        user,
        filters: dict[str, Any],
        limit: Optional[int] = None,
        page: int = 1,
    ) -> dict[str, Any]:
        """Completed tab: the date window matches the doctor's assignment time."""
        started = time.time()
        doctor = DoctorWorklistService.get_doctor(user)
        limit = clamp_limit(
            limit, WorklistConfig.COMPLETED_DEFAULT_LIMIT, WorklistConfig.COMPLETED_MAX_LIMIT
        )
        filters = {k: v for k, v in filters.items() if k not in ('category', 'status')}
        query = DoctorWorklistService.build_query(
            doctor, filters, category=CATEGORY_COMPLETED, date_on_assignment=True
        )

        rows, total, breakdown = DoctorWorklistService._fetch_page(
            query,
            [F('report_finalized_at').desc(nulls_last=True), '-created_at'],
            limit,
            page,
            project_completed_row,
            'Fetch completed studies',
        )

        logger.info(
            f'Doctor {doctor.pk} completed studies: {len(rows)}/{total} in {_elapsed_ms(started)}ms'
        )
        return DoctorWorklistService._list_response(
            rows,
            total,
            page,
            limit,
            DoctorWorklistService._fixed_category_counts(CATEGORY_COMPLETED, total),
            started,
            breakdown,
            query,
        )

    # ========== DASHBOARD ==========

    @staticmethod
    def get_dashboard_values(user, filters: dict[str, Any]) -> dict[str, Any]:
        """Per-category counts for the dashboard tabs.

        Same filters as the lists minus category/status. ``all`` is the
        doctor's unfiltered total; ``total`` sums the filtered categories.
        """
        started = time.time()
        doctor = DoctorWorklistService.get_doctor(user)
        filters = {k: v for k, v in filters.items() if k not in ('category', 'status')}
        query = DoctorWorklistService.build_query(doctor, filters)

        aggregates = {
            name: Count('id', filter=Q(workflow_status__in=statuses))
            for name, statuses in DOCTOR_STATUS_CATEGORIES.items()
        }
        try:
            counts = Study.objects.filter(query.build(include_status=False)).aggregate(**aggregates)
            all_count = Study.objects.filter(query.scope_q()).count()
        except DatabaseError as e:
            logger.error(f'Dashboard counts failed for doctor {doctor.pk}: {str(e)}')
            raise DatabaseQueryError('Dashboard category counts', e) from e

        result = {
            'success': True,
            CATEGORY_ALL: all_count,
            'total': sum(counts.values()),
            **counts,
            'performance': {'query_time': _elapsed_ms(started)},
        }
        logger.info(f'Doctor {doctor.pk} dashboard values: {counts} all={all_count}')
        return result

    @staticmethod
    def get_doctor_stats(user) -> dict[str, Any]:
        """Headline counters for the doctor's profile card."""
        doctor = DoctorWorklistService.get_doctor(user)
        query = WorklistQuery(doctor_id=doctor.pk)
        case_type_q = Q()
        for case_type in WorklistConfig.URGENT_CASE_TYPES:
            case_type_q |= Q(case_type__iexact=case_type)
        urgent_q = case_type_q & Q(workflow_status__in=[
            WorkflowStatus.ASSIGNED_TO_DOCTOR,
            WorkflowStatus.REPORT_IN_PROGRESS,
        ])

        try:
            counts = Study.objects.filter(query.scope_q()).aggregate(
                total_assigned=Count('id'),
                pending=Count('id', filter=Q(workflow_status=WorkflowStatus.ASSIGNED_TO_DOCTOR)),
                in_progress=Count('id', filter=Q(workflow_status=WorkflowStatus.REPORT_IN_PROGRESS)),
                completed=Count('id', filter=Q(workflow_status=WorkflowStatus.REPORT_FINALIZED)),
                urgent_studies=Count('id', filter=urgent_q),
            )
        except DatabaseError as e:
            raise DatabaseQueryError('Doctor statistics', e) from e

        return {
            **counts,
            'assignment_stats': doctor.assignment_stats or {},
        }

    # ========== PATIENT ==========

    @staticmethod
    def get_patient_detailed_view(user, patient_id: str) -> dict[str, Any]:
        """Patient card with the doctor's studies for that patient.

        Raises:
            PatientNotFoundError: unknown patient, or none of the patient's
                studies are assigned to this doctor
        """
        doctor = DoctorWorklistService.get_doctor(user)
        patient = Patient.objects.filter(patient_id=patient_id).first()
        if patient is None:
            raise PatientNotFoundError(patient_id)

        query = WorklistQuery(doctor_id=doctor.pk)
        studies = list(
            Study.objects
            .filter(query.scope_q(), patient=patient)
            .prefetch_related('assignments')
            .order_by(F('study_date').desc(nulls_last=True), '-created_at')
        )
        if not studies:
            raise PatientNotFoundError(patient_id)

        return {
            'patient_info': {
                'patient_id': patient.patient_id,
                'full_name': patient.display_name,
                'first_name': patient.first_name,
                'last_name': patient.last_name,
                'age': patient.age_string,
                'gender': patient.gender,
                'date_of_birth': patient.date_of_birth.isoformat() if patient.date_of_birth else None,
                'contact_phone': patient.phone,
                'contact_email': patient.email,
                'address': patient.address,
            },
            'clinical_info': {
                'clinical_history': patient.clinical_history,
                'previous_injury': patient.previous_injury,
                'previous_surgery': patient.previous_surgery,
            },
            'referral_info': patient.referral_info,
            'studies': [
                {
                    'id': study.pk,
                    'study_instance_uid': study.study_instance_uid,
                    'accession_number': study.accession_number,
                    'study_date': study.study_date.isoformat() if study.study_date else None,
                    'study_date_time': format_dicom_datetime(study.study_date, study.study_time),
                    'modality': study.modality,
                    'description': study.exam_description or study.study_description,
                    'workflow_status': study.workflow_status,
                    'current_category': category_for_status(study.workflow_status),
                    'priority': row_priority(study),
                    'report_available': study.report_available,
                }
                for study in studies
            ],
            'documents': patient.documents or [],
        }

    # ========== WORKFLOW ==========

    @staticmethod
    def _get_assigned_study(doctor: Doctor, study_id: int) -> Study:
        query = WorklistQuery(doctor_id=doctor.pk)
        study = (
            Study.objects
            .select_for_update()
            .filter(query.scope_q(), pk=study_id)
            .first()
        )
        if study is None:
            logger.warning(f'Doctor {doctor.pk} tried to access study {study_id} not assigned to them')
            raise StudyNotFoundError(study_id)
        return study

    @staticmethod
    def start_report(user, study_id: int) -> dict[str, Any]:
        """Mark a study as being reported by the doctor."""
        doctor = DoctorWorklistService.get_doctor(user)
        now = timezone.now()

        with transaction.atomic():
            study = DoctorWorklistService._get_assigned_study(doctor, study_id)
            study.workflow_status = WorkflowStatus.REPORT_IN_PROGRESS
            study.report_started_at = now
            study.save(update_fields=['workflow_status', 'report_started_at', 'updated_at'])
            StatusHistory.objects.create(
                study=study,
                status=WorkflowStatus.REPORT_IN_PROGRESS,
                changed_at=now,
                changed_by=user,
                note='Doctor started working on report',
            )
            refresh_study_tat(study, now)

        logger.info(f'Doctor {doctor.pk} started report for study {study.pk}')
        return {
            'success': True,
            'message': 'Report started successfully',
            'data': {
                'study_id': study.pk,
                'workflow_status': study.workflow_status,
                'report_started_at': now.isoformat(),
            },
        }

    @staticmethod
    def submit_report(
        user,
        study_id: int,
        report_content: str,
        findings: str = '',
        impression: str = '',
        recommendations: str = '',
    ) -> dict[str, Any]:
        """Finalize the doctor's report for a study."""
        doctor = DoctorWorklistService.get_doctor(user)
        now = timezone.now()

        with transaction.atomic():
            study = DoctorWorklistService._get_assigned_study(doctor, study_id)
            report = StudyReport.objects.create(
                study=study,
                doctor=doctor,
                content=report_content,
                findings=findings or '',
                impression=impression or '',
                recommendations=recommendations or '',
                finalized_at=now,
                created_at=now,
            )
            study.workflow_status = WorkflowStatus.REPORT_FINALIZED
            study.report_finalized_at = now
            study.reporter_name = doctor.full_name
            study.report_available = True
            study.save(update_fields=[
                'workflow_status',
                'report_finalized_at',
                'reporter_name',
                'report_available',
                'updated_at',
            ])
            StatusHistory.objects.create(
                study=study,
                status=WorkflowStatus.REPORT_FINALIZED,
                changed_at=now,
                changed_by=user,
                note='Report finalized by doctor',
            )
            tat = refresh_study_tat(study, now)

        logger.info(f'Doctor {doctor.pk} finalized report {report.pk} for study {study.pk}')
        return {
            'success': True,
            'message': 'Report submitted successfully',
            'data': {
                'study_id': study.pk,
                'report_id': report.pk,
                'workflow_status': study.workflow_status,
                'report_finalized_at': now.isoformat(),
                'reported_by': study.reporter_name,
                'report': report.to_dict(),
                'tat': tat,
            },
        }
