"""
Date-range resolution for worklist and report filters.

Turns the UI's date controls (a quick preset such as ``today`` or
``thisWeek``, or a custom from/to pair) into an aware ``[start, end]`` window.
Calendar presets use day boundaries in the reporting time zone
(``settings.REPORTING_TIME_ZONE``), not UTC and not the server's zone.

Resolution order:
    1. A preset is given, or ``date_filter == 'custom'``:
       - custom dates present -> from-day 00:00 .. to-day 23:59:59.999999
       - otherwise the preset window; unknown presets give an open range
    2. Nothing given -> today
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo

from django.conf import settings
from django.utils import timezone

from common.config import DateRangeConfig, ValidationConfig
from common.exceptions import InvalidSearchParameterError

_DATE_RE = re.compile(ValidationConfig.DATE_FORMAT_REGEX)


@dataclass(frozen=True)
class DateRange:
    """Resolved filter window. Either side may be open (``None``)."""

    start: Optional[datetime] = None
    end: Optional[datetime] = None
    preset: Optional[str] = None

    @property
    def is_bounded(self) -> bool:
        """Only fully bounded ranges are applied as filters."""
        return self.start is not None and self.end is not None

    @property
    def on_assignment(self) -> bool:
        """``assignedToday`` matches the assignment time, not the upload time."""
        return self.preset == DateRangeConfig.PRESET_ASSIGNED_TODAY

    def as_dict(self) -> dict:
        return {
            'preset': self.preset,
            'start': self.start.isoformat() if self.start else None,
            'end': self.end.isoformat() if self.end else None,
        }


def reporting_timezone() -> tzinfo:
    return ZoneInfo(settings.REPORTING_TIME_ZONE)


def parse_date(value: str, param: str) -> date:
    """Parse a ``YYYY-MM-DD`` query value.

    Raises:
        InvalidSearchParameterError: malformed or impossible date
    """
    if not _DATE_RE.match(value or ''):
        raise InvalidSearchParameterError(
            param, value, f'Must be YYYY-MM-DD format (e.g. {ValidationConfig.DATE_FORMAT_EXAMPLE})'
        )
    try:
        return date.fromisoformat(value)
    except ValueError as e:
        raise InvalidSearchParameterError(param, value, str(e)) from e


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """First and last instant of a calendar day in ``tz``."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day, time.max, tzinfo=tz)
    return start, end


def normalize_preset(preset: Optional[str]) -> Optional[str]:
    if not preset:
        return None
    return DateRangeConfig.PRESET_ALIASES.get(preset, preset)


def resolve_date_range(
    quick_date_preset: Optional[str] = None,
    date_filter: Optional[str] = None,
    custom_date_from: Optional[str] = None,
    custom_date_to: Optional[str] = None,
    now: Optional[datetime] = None,
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """Resolve UI date controls to a :class:`DateRange`.

    Args:
        quick_date_preset: last24h, today, yesterday, thisWeek, thisMonth,
            assignedToday, custom (short aliases 24h, week, month accepted)
        date_filter: ``'custom'`` activates custom dates without a preset
        custom_date_from: YYYY-MM-DD, start of day inclusive
        custom_date_to: YYYY-MM-DD, end of day inclusive
        now: Reference time (defaults to ``timezone.now()``)
        tz: Zone for day boundaries (defaults to the reporting time zone)

    Returns:
        DateRange in aware datetimes; apply it only when ``is_bounded``
    """
    tz = tz or reporting_timezone()
    now = now or timezone.now()
    local_now = now.astimezone(tz)
    preset = normalize_preset(quick_date_preset)

    if not preset and date_filter != DateRangeConfig.CUSTOM_FILTER:
        start, end = day_bounds(local_now.date(), tz)
        return DateRange(start, end, DateRangeConfig.PRESET_TODAY)

    wants_custom = (
        date_filter == DateRangeConfig.CUSTOM_FILTER
        or preset == DateRangeConfig.PRESET_CUSTOM
    )
    if wants_custom and (custom_date_from or custom_date_to):
        start = end = None
        if custom_date_from:
            start = day_bounds(parse_date(custom_date_from, 'custom_date_from'), tz)[0]
        if custom_date_to:
            end = day_bounds(parse_date(custom_date_to, 'custom_date_to'), tz)[1]
        if start and end and start > end:
            raise InvalidSearchParameterError(
                'custom_date_from', custom_date_from, 'Must not be after custom_date_to'
            )
        return DateRange(start, end, DateRangeConfig.PRESET_CUSTOM)

    if preset == DateRangeConfig.PRESET_LAST_24H:
        return DateRange(now - timedelta(hours=24), now, preset)

    if preset in (DateRangeConfig.PRESET_TODAY, DateRangeConfig.PRESET_ASSIGNED_TODAY):
        start, end = day_bounds(local_now.date(), tz)
        return DateRange(start, end, preset)

    if preset == DateRangeConfig.PRESET_YESTERDAY:
        start, end = day_bounds(local_now.date() - timedelta(days=1), tz)
        return DateRange(start, end, preset)

    if preset == DateRangeConfig.PRESET_THIS_WEEK:
        # Weeks start on Sunday; weekday() is Monday=0 .. Sunday=6
        days_since_sunday = (local_now.weekday() + 1) % 7
        start = day_bounds(local_now.date() - timedelta(days=days_since_sunday), tz)[0]
        return DateRange(start, now, preset)

    if preset == DateRangeConfig.PRESET_THIS_MONTH:
        start = day_bounds(local_now.date().replace(day=1), tz)[0]
        return DateRange(start, now, preset)

    return DateRange(None, None, preset)


def resolve_day_window(
    from_date: Optional[str],
    to_date: Optional[str],
    tz: Optional[tzinfo] = None,
) -> DateRange:
    """Report-style window: both dates required, otherwise unbounded."""
    if not (from_date and to_date):
        return DateRange()
    tz = tz or reporting_timezone()
    start = day_bounds(parse_date(from_date, 'from_date'), tz)[0]
    end = day_bounds(parse_date(to_date, 'to_date'), tz)[1]
    if start > end:
        raise InvalidSearchParameterError('from_date', from_date, 'Must not be after to_date')
    return DateRange(start, end, DateRangeConfig.PRESET_CUSTOM)
