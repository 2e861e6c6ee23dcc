"""
Query-filter builder for doctor worklists.

``WorklistQuery`` collects the list parameters of one request and renders
them as a single ``Q`` over ``Study``. Listing and counting share the same
``Q`` so page totals and dashboard counts can never disagree.

Filter pieces:
    scope       studies with an assignment to the doctor
    date        upload time / study date, or the doctor's assignment time
    status      category membership, exact status, or every doctor status
    attributes  free-text search, modality, priority, lab, patient-name regex
"""

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from django.db.models import Q

from common.config import ValidationConfig, WorklistConfig
from common.date_range import DateRange, reporting_timezone
from common.exceptions import InvalidSearchParameterError
from study.models import StudyAssignment
from study.status import CATEGORY_ALL, CATEGORY_NAMES, all_doctor_statuses, statuses_for_category

SEARCH_FIELDS = [
    'accession_number',
    'study_instance_uid',
    'exam_description',
    'study_description',
    'referred_by',
    'patient__patient_id',
    'patient__full_name',
    'patient__patient_name_raw',
]

PATIENT_NAME_FIELDS = [
    'patient__full_name',
    'patient__patient_name_raw',
    'patient__patient_id',
]

# Named groups, named backreferences and conditionals compile in Python but
# not in PostgreSQL's regex dialect.
PYTHON_ONLY_REGEX = re.compile(r'\(\?P[<=]|\(\?\(')


def _local_date(value: datetime):
    return value.astimezone(reporting_timezone()).date()


@dataclass
class WorklistQuery:
    """Filters for one worklist / dashboard request.

    Attributes:
        doctor_id: Doctor whose assignments scope the query
        category: all / pending / inprogress / completed
        status: exact workflow status, used when no category narrows
        date_range: resolved window, applied only when bounded
        date_type: ``StudyDate`` filters the DICOM study date, anything
            else the upload time
        date_on_assignment: match the window against the doctor's
            assignment time instead (``assignedToday`` forces this)
    """

    doctor_id: int
    category: Optional[str] = None
    status: Optional[str] = None
    search: Optional[str] = None
    modality: Optional[str] = None
    priority: Optional[str] = None
    lab_id: Optional[int] = None
    patient_name: Optional[str] = None
    date_type: Optional[str] = None
    date_range: Optional[DateRange] = None
    date_on_assignment: bool = False

    def __post_init__(self):
        if self.category and self.category not in CATEGORY_NAMES:
            raise InvalidSearchParameterError(
                'category', self.category, f'Must be one of: {", ".join(CATEGORY_NAMES)}'
            )
        for param in ('search', 'patient_name'):
            value = getattr(self, param)
            if value and len(value) > ValidationConfig.MAX_SEARCH_QUERY_LENGTH:
                raise InvalidSearchParameterError(
                    param, value[:20] + '...',
                    f'Must be at most {ValidationConfig.MAX_SEARCH_QUERY_LENGTH} characters',
                )
        if self.patient_name:
            try:
                re.compile(self.patient_name)
            except re.error as e:
                raise InvalidSearchParameterError('patient_name', self.patient_name, str(e)) from e
            if PYTHON_ONLY_REGEX.search(self.patient_name):
                raise InvalidSearchParameterError(
                    'patient_name', self.patient_name, 'Named groups and conditionals are not supported'
                )

    # ========== PIECES ==========

    def _assignments(self):
        return StudyAssignment.objects.filter(doctor_id=self.doctor_id)

    def scope_q(self) -> Q:
        return Q(id__in=self._assignments().values('study_id'))

    def date_q(self) -> Q:
        window = self.date_range
        if window is None or not window.is_bounded:
            return Q()

        if self.date_on_assignment or window.on_assignment:
            # Same assignment row must belong to the doctor and fall in the window
            matching = self._assignments().filter(
                assigned_at__gte=window.start,
                assigned_at__lte=window.end,
            )
            return Q(id__in=matching.values('study_id'))

        if self.date_type == WorklistConfig.DATE_TYPE_STUDY:
            return Q(
                study_date__gte=_local_date(window.start),
                study_date__lte=_local_date(window.end),
            )
        return Q(created_at__gte=window.start, created_at__lte=window.end)

    def status_q(self) -> Q:
        if self.category and self.category != CATEGORY_ALL:
            return Q(workflow_status__in=statuses_for_category(self.category))
        if self.status:
            return Q(workflow_status=self.status)
        return Q(workflow_status__in=all_doctor_statuses())

    def attribute_q(self) -> Q:
        q = Q()
        if self.search:
            text_q = Q()
            for field in SEARCH_FIELDS:
                text_q |= Q(**{f'{field}__icontains': self.search})
            q &= text_q
        if self.modality:
            q &= Q(modality=self.modality)
        if self.priority:
            with_priority = self._assignments().filter(priority__iexact=self.priority)
            q &= Q(id__in=with_priority.values('study_id'))
        if self.lab_id:
            q &= Q(source_lab_id=self.lab_id)
        if self.patient_name:
            name_q = Q()
            for field in PATIENT_NAME_FIELDS:
                name_q |= Q(**{f'{field}__iregex': self.patient_name})
            q &= name_q
        return q

    # ========== COMPOSITION ==========

    def build(self, include_status: bool = True) -> Q:
        """Full filter; ``include_status=False`` for per-category counting."""
        q = self.scope_q() & self.date_q() & self.attribute_q()
        if include_status:
            q &= self.status_q()
        return q

    def describe(self) -> dict:
        """Applied filters for logs and the ``filters_applied`` echo."""
        return {
            'category': self.category,
            'status': self.status,
            'search': self.search,
            'modality': self.modality,
            'priority': self.priority,
            'lab_id': self.lab_id,
            'patient_name': self.patient_name,
            'date_type': self.date_type,
            'date_on_assignment': self.date_on_assignment,
            'date_range': self.date_range.as_dict() if self.date_range else None,
        }
