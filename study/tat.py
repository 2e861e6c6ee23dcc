"""
Turnaround-time (TAT) calculation for a study.

Milestones:
    study date  ->  upload (created_at)  ->  first assignment  ->  report finalized

Every interval is reported in whole minutes (half-up rounding) plus a display
string from :func:`format_tat`. ``total_tat_*`` runs from upload to the report
or, while the study is still open, to now.
"""

import logging
import math
from datetime import date, datetime, time
from datetime import timezone as dt_timezone
from typing import Any, Optional

from django.utils import timezone

from common.config import TATConfig

logger = logging.getLogger(__name__)

PHASE_UPLOADED = 'uploaded'
PHASE_ASSIGNED = 'assigned'
PHASE_IN_PROGRESS = 'in_progress'
PHASE_COMPLETED = 'completed'


def format_tat(minutes: Optional[float]) -> str:
    """Human TAT string.

    Example:
        >>> format_tat(45), format_tat(185), format_tat(1500), format_tat(0)
        ('45m', '3h 5m', '1d 1h', 'N/A')
    """
    if not minutes or minutes <= 0:
        return 'N/A'
    minutes = int(minutes)
    hours, remaining_minutes = divmod(minutes, 60)
    if hours == 0:
        return f'{remaining_minutes}m'
    if hours < 24:
        return f'{hours}h {remaining_minutes}m' if remaining_minutes else f'{hours}h'
    days, remaining_hours = divmod(hours, 24)
    return f'{days}d {remaining_hours}h' if remaining_hours else f'{days}d'


def format_hours_minutes(minutes: Optional[float]) -> str:
    """Average-style string used by analytics: ``"3h 5m"`` or ``N/A``."""
    if minutes is None or minutes <= 0:
        return 'N/A'
    hours, remaining_minutes = divmod(_round_half_up(minutes), 60)
    return f'{hours}h {remaining_minutes}m'


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _minutes_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    if start is None or end is None:
        return None
    return _round_half_up((end - start).total_seconds() / 60)


def _days_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[int]:
    if start is None or end is None:
        return None
    return _round_half_up((end - start).total_seconds() / 86400)


def parse_study_date(value: Any) -> Optional[date]:
    """Accept a ``date``, DICOM ``YYYYMMDD`` or ISO ``YYYY-MM-DD``; else ``None``."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if len(text) == 8 and text.isdigit():
            return date(int(text[:4]), int(text[4:6]), int(text[6:8]))
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.debug(f'Invalid study date: {value!r}')
        return None


def first_assignment_time(study) -> Optional[datetime]:
    """Earliest assignment; iterates ``assignments.all()`` so prefetches are reused."""
    times = [a.assigned_at for a in study.assignments.all() if a.assigned_at]
    return min(times) if times else None


def _phase(assigned_at, started_at, finalized_at) -> str:
    if finalized_at:
        return PHASE_COMPLETED
    if started_at:
        return PHASE_IN_PROGRESS
    if assigned_at:
        return PHASE_ASSIGNED
    return PHASE_UPLOADED


def calculate_study_tat(study, current_time: Optional[datetime] = None) -> dict[str, Any]:
    """Compute the TAT snapshot for ``study``.

    Args:
        study: Study instance (assignments may be prefetched)
        current_time: Reference "now" for open studies

    Returns:
        JSON-serializable dict; see module docstring for the milestones
    """
    now = current_time or timezone.now()

    study_day = parse_study_date(study.study_date)
    # Study dates carry no zone; midnight UTC like the DICOM formatter
    study_at = (
        datetime.combine(study_day, time.min, tzinfo=dt_timezone.utc) if study_day else None
    )
    upload_at = study.created_at
    assigned_at = first_assignment_time(study)
    finalized_at = study.report_finalized_at
    end_at = finalized_at or now

    study_to_upload = _minutes_between(study_at, upload_at)
    upload_to_assignment = _minutes_between(upload_at, assigned_at)
    assignment_to_report = _minutes_between(assigned_at, finalized_at)
    study_to_report = _minutes_between(study_at, finalized_at)
    upload_to_report = _minutes_between(upload_at, finalized_at)
    total_minutes = _minutes_between(upload_at, end_at)
    total_days = _days_between(upload_at, end_at)

    is_completed = finalized_at is not None
    is_overdue = (
        not is_completed
        and total_minutes is not None
        and total_minutes > TATConfig.OVERDUE_THRESHOLD_MINUTES
    )

    return {
        'study_to_upload_tat': study_to_upload,
        'upload_to_assignment_tat': upload_to_assignment,
        'assignment_to_report_tat': assignment_to_report,
        'study_to_report_tat': study_to_report,
        'upload_to_report_tat': upload_to_report,
        'total_tat_minutes': total_minutes,
        'total_tat_days': total_days,
        'reset_aware_tat_days': _days_between(upload_at, now),
        'study_to_upload_tat_formatted': format_tat(study_to_upload),
        'upload_to_assignment_tat_formatted': format_tat(upload_to_assignment),
        'assignment_to_report_tat_formatted': format_tat(assignment_to_report),
        'study_to_report_tat_formatted': format_tat(study_to_report),
        'upload_to_report_tat_formatted': format_tat(upload_to_report),
        'total_tat_formatted': f'{total_days} days' if total_days is not None else 'N/A',
        'phase': _phase(assigned_at, study.report_started_at, finalized_at),
        'is_completed': is_completed,
        'is_overdue': is_overdue,
        'calculated_at': now.isoformat(),
    }


def resolve_study_tat(study, current_time: Optional[datetime] = None) -> dict[str, Any]:
    """Stored snapshot when present, otherwise a fresh calculation."""
    if study.calculated_tat:
        return study.calculated_tat
    return calculate_study_tat(study, current_time)


def refresh_study_tat(study, current_time: Optional[datetime] = None) -> dict[str, Any]:
    """Recompute and persist ``calculated_tat``."""
    study.calculated_tat = calculate_study_tat(study, current_time)
    study.save(update_fields=['calculated_tat', 'updated_at'])
    return study.calculated_tat
